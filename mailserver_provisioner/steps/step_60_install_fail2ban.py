from __future__ import annotations

import logging
from pathlib import Path

from ..context import ProvisioningContext
from ..lib.files import substitute_in_file
from ..lib.signed_artifact import SignedArtifact, SignedArtifactInstaller
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

NFTABLES_ACTION = "/etc/fail2ban/action.d/nftables.conf"

# Network bans need an interval set; the stock action creates a plain one.
NFT_ADD_SET_PATTERN = r"^_nft_add_set = .+$"
NFT_ADD_SET_VALUE = r"_nft_add_set = <nftables> add set <table_family> <table> <addr_set> \{ type <addr_type>\; flags interval\; \}"


def fail2ban_artifact(ctx: ProvisioningContext) -> SignedArtifact:
    url = ctx.cfg.fail2ban_deb_url
    return SignedArtifact(
        name="fail2ban",
        payload_url=url,
        signature_url=f"{url}.asc",
        expected_fingerprint=ctx.cfg.fail2ban_fingerprint,
        key_id=ctx.cfg.fail2ban_key_id,
        keyserver=ctx.cfg.keyserver,
        filename="fail2ban.deb",
    )


def enable_network_bans(root: str | Path) -> None:
    logger.debug("Patching Fail2ban to enable network bans")
    substitute_in_file(root, NFTABLES_ACTION, NFT_ADD_SET_PATTERN, lambda _m: NFT_ADD_SET_VALUE)


class InstallFail2banStep(BaseStep):
    step_id = "60_install_fail2ban"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Installing Fail2ban")
        ctx.apt.install(["python3-pyinotify", "python3-dnspython"])

        installer = SignedArtifactInstaller(
            keyring=ctx.keyring,
            install=ctx.apt.install_deb,
            configure=lambda: enable_network_bans(ctx.root),
            work_dir=ctx.cfg.work_dir,
            network_timeout=ctx.cfg.network_timeout,
        )
        installer.run(fail2ban_artifact(ctx))
        ctx.record("fail2ban_version", ctx.cfg.fail2ban_version)
