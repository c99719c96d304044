from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.files import delete_file
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

# Generated at install time; each container generates its own on start-up.
POSTSRSD_SECRET = "/etc/postsrsd.secret"
LOGWATCH_CRONJOB = "/etc/cron.daily/00logwatch"


class RemoveSensitiveDataStep(BaseStep):
    step_id = "80_remove_sensitive_data"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Deleting sensitive files (secrets)")
        delete_file(ctx.root, POSTSRSD_SECRET)

        logger.debug("Deleting default logwatch cronjob")
        delete_file(ctx.root, LOGWATCH_CRONJOB)
