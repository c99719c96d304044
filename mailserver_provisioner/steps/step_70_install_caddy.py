from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.apt_sources import PackageSourceEntry, SigningKey
from ..lib.env import PATHS
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

CADDY_SOURCE = PackageSourceEntry(
    name="caddy-stable",
    descriptor_url="https://dl.cloudsmith.io/public/caddy/stable/debian.deb.txt",
    signing_key=SigningKey(
        url="https://dl.cloudsmith.io/public/caddy/stable/gpg.key",
        keyring_path=f"{PATHS.keyrings_dir}/caddy-stable-archive-keyring.gpg",
    ),
)


class InstallCaddyStep(BaseStep):
    step_id = "70_install_caddy"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Installing Caddy Server")
        ctx.registry.register(CADDY_SOURCE)
        ctx.registry.install(["caddy"])
