from __future__ import annotations

import logging
from typing import Tuple

from ..context import ProvisioningContext
from ..lib.apt_sources import PackageSourceEntry, SigningKey, select_for_architecture
from ..lib.env import PATHS
from ..logging_utils import TRACE
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


def rspamd_sources(codename: str) -> Tuple[PackageSourceEntry, PackageSourceEntry]:
    """The two Rspamd sources; exactly one is used per architecture.

    The official Rspamd repository has no aarch64 builds, so aarch64 gets
    the (older) Rspamd from Debian backports. Backports stay registered:
    nothing is installed from them without asking for it explicitly.
    """

    url = f"[arch=amd64 signed-by={PATHS.trusted_keys_dir}/rspamd.gpg] http://rspamd.com/apt-stable/ {codename} main"
    backports = PackageSourceEntry(
        name="rspamd",
        lines=(f"deb [arch=arm64] http://deb.debian.org/debian {codename}-backports main",),
        applies_to_architecture="aarch64",
        comment="Official Rspamd repository does not support aarch64, so we use the backports",
    )
    vendor = PackageSourceEntry(
        name="rspamd",
        lines=(f"deb {url}", f"deb-src {url}"),
        signing_key=SigningKey(
            url="https://rspamd.com/apt-stable/gpg.key",
            keyring_path=f"{PATHS.trusted_keys_dir}/rspamd.gpg",
        ),
    )
    return backports, vendor


def rspamd_package(source: PackageSourceEntry, codename: str) -> str:
    if source.applies_to_architecture is not None:
        return f"rspamd/{codename}-backports"
    return "rspamd"


class InstallRspamdStep(BaseStep):
    """One step, not two condition-gated ones: both branches register a
    source named "rspamd", and `select_for_architecture` guarantees exactly
    one of them applies, so the choice stays with the registry."""

    step_id = "50_install_rspamd"

    def run(self, ctx: ProvisioningContext) -> None:
        codename = ctx.cfg.debian_codename
        logger.log(TRACE, "Adding Rspamd package signatures")
        source = select_for_architecture(rspamd_sources(codename), ctx.architecture)
        ctx.registry.register(source)

        package = rspamd_package(source, codename)
        ctx.record("rspamd_package", package)

        logger.debug("Installing Rspamd")
        ctx.registry.install([package, "redis-server"])
