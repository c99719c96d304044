from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.env import PATHS
from ..lib.files import clear_dir
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class PostInstallationStep(BaseStep):
    step_id = "90_post_installation"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Running post-installation steps (cleanup)")
        ctx.apt.clean()
        clear_dir(ctx.root, PATHS.apt_lists_dir)
        logger.info("Finished installing packages")
