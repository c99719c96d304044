from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..logging_utils import TRACE
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)


class PreInstallationStep(BaseStep):
    step_id = "10_pre_installation"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.info("Starting package installation")

        logger.log(TRACE, "Updating package signatures")
        ctx.registry.refresh_index()

        logger.log(TRACE, "Installing packages that are needed early")
        ctx.apt.install(["apt-utils"])

        logger.log(TRACE, "Upgrading packages")
        ctx.apt.upgrade()
