from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.env import PATHS
from ..lib.files import delete_file, move_file, write_file
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

FAKE_FQDN = "docker-mailserver.invalid"


class InstallPostfixStep(BaseStep):
    """Install Postfix.

    Debian's postfix post-install script expects `hostname` to print a valid
    FQDN, which a build container does not have. A shim is put in place of
    /bin/hostname for the duration of the install.
    """

    step_id = "20_install_postfix"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.warning("Applying workaround for Postfix post-install hostname check")

        backup = f"{PATHS.hostname_bin}.bak"
        move_file(ctx.root, PATHS.hostname_bin, backup)
        try:
            write_file(ctx.root, PATHS.hostname_bin, f"#!/bin/sh\necho '{FAKE_FQDN}'\n", mode=0o755)
            ctx.apt.install(["postfix"])
        finally:
            move_file(ctx.root, backup, PATHS.hostname_bin)

        # Debian's chroot jail config for Postfix needs its own syslog socket; we don't chroot.
        delete_file(ctx.root, "/etc/rsyslog.d/postfix.conf")
