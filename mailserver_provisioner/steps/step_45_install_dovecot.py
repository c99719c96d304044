from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.pkg import PackageSet
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

DOVECOT = PackageSet(
    "dovecot",
    (
        "dovecot-core", "dovecot-fts-xapian", "dovecot-imapd",
        "dovecot-ldap", "dovecot-lmtpd", "dovecot-managesieved",
        "dovecot-pop3d", "dovecot-sieve", "dovecot-solr",
    ),
)


class InstallDovecotStep(BaseStep):
    step_id = "45_install_dovecot"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Installing Dovecot")
        ctx.decisions.setdefault("dovecot_source", "debian")
        ctx.registry.install(list(DOVECOT))
