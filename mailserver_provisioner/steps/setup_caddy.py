from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.env import PATHS
from ..lib.files import ensure_dir
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

# Flip once the step writes a Caddyfile.
CADDY_SETUP_IMPLEMENTED = False


class SetupCaddyStep(BaseStep):
    """Start-up configuration of Caddy.

    Work in progress: only the configuration directory is created. The
    result is recorded as `caddy_configured: False` and must not be read
    as a configured web server.
    """

    step_id = "setup_caddy"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("(Caddy setup) Setting up Caddy WebServer")
        ensure_dir(ctx.root, PATHS.caddy_config_dir)
        if not CADDY_SETUP_IMPLEMENTED:
            logger.warning("(Caddy setup) Not implemented yet; no configuration written to %s", PATHS.caddy_config_dir)
        ctx.record("caddy_configured", CADDY_SETUP_IMPLEMENTED)
