from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.apt_sources import PackageSourceEntry, SigningKey
from ..lib.env import PATHS
from ..lib.placeholder import PlaceholderPackageBuilder
from ..logging_utils import TRACE
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

# dovecot-fts-xapian (Debian) depends on the virtual package dovecot-abi-2.3.abiv13,
# provided by Debian's dovecot-core. The community dovecot-core provides abiv19.
PLACEHOLDER_PACKAGE = "dovecot-abi-2.3.abiv13"


def dovecot_community_source(codename: str) -> PackageSourceEntry:
    return PackageSourceEntry(
        name="dovecot",
        lines=(f"deb https://repo.dovecot.org/ce-2.3-latest/debian/{codename} {codename} main",),
        signing_key=SigningKey(
            url="https://repo.dovecot.org/DOVECOT-REPO-GPG",
            keyring_path=f"{PATHS.trusted_keys_dir}/dovecot.gpg",
            key_id="ED409DA1",
        ),
    )


class DovecotCommunityRepoStep(BaseStep):
    """Switch Dovecot to the community repository (opt-in).

    The repository stays registered afterwards; it only exists in images
    that explicitly opted in.
    """

    step_id = "40_dovecot_community_repo"

    def condition(self, ctx: ProvisioningContext) -> bool:
        return ctx.community_repo

    def run(self, ctx: ProvisioningContext) -> None:
        logger.log(TRACE, "Create and install dummy package %s to satisfy dovecot-fts-xapian", PLACEHOLDER_PACKAGE)
        PlaceholderPackageBuilder(
            apt=ctx.apt,
            package_name=PLACEHOLDER_PACKAGE,
            description="Dummy package to satisfy dovecot-fts-xapian dependency",
            work_dir=ctx.cfg.work_dir,
            timeout=ctx.cfg.command_timeout,
        ).provide()

        logger.log(TRACE, "Using Dovecot community repository")
        ctx.registry.register(dovecot_community_source(ctx.cfg.debian_codename))

        logger.log(TRACE, "Updating Dovecot package signatures")
        ctx.registry.refresh_index()
        ctx.record("dovecot_source", "community")
