from __future__ import annotations

import logging

from ..context import ProvisioningContext
from ..lib.pkg import PackageSet, merge_package_sets
from ..pipeline import BaseStep

logger = logging.getLogger(__name__)

ANTI_VIRUS_SPAM = PackageSet(
    "anti-virus/spam",
    ("amavisd-new", "clamav", "clamav-daemon", "pyzor", "razor", "spamassassin"),
)

CODECS = PackageSet(
    "codecs",
    (
        "altermime", "arj", "bzip2", "cabextract", "cpio", "file",
        "gzip", "lhasa", "liblz4-tool", "lrzip", "lzop", "nomarch",
        "p7zip-full", "pax", "rpm2cpio", "unrar-free", "unzip", "xz-utils",
    ),
)

MISCELLANEOUS = PackageSet(
    "miscellaneous",
    (
        "apt-transport-https", "bind9-dnsutils", "binutils", "bsd-mailx",
        "ca-certificates", "curl", "dbconfig-no-thanks", "dumb-init", "ed",
        "gnupg", "iproute2", "iputils-ping", "libdate-manip-perl",
        "libldap-common", "libmail-spf-perl", "libnet-dns-perl", "locales",
        "logwatch", "netcat-openbsd", "nftables", "rsyslog", "supervisor",
        "uuid", "whois",
    ),
)

POSTFIX = PackageSet(
    "postfix",
    ("pflogsumm", "postgrey", "postfix-ldap", "postfix-pcre", "postfix-policyd-spf-python", "postsrsd"),
)

CADDY_PREREQUISITES = PackageSet(
    "caddy-prerequisites",
    ("debian-keyring", "debian-archive-keyring", "apt-transport-https"),
)

MAIL_PROGRAMS = PackageSet(
    "mail-programs",
    ("fetchmail", "opendkim", "opendkim-tools", "opendmarc", "libsasl2-modules", "sasl2-bin"),
)

PACKAGE_SETS = (ANTI_VIRUS_SPAM, CODECS, MISCELLANEOUS, POSTFIX, CADDY_PREREQUISITES, MAIL_PROGRAMS)


class InstallPackagesStep(BaseStep):
    step_id = "30_install_packages"

    def run(self, ctx: ProvisioningContext) -> None:
        logger.debug("Installing package sets: %s", ", ".join(s.name for s in PACKAGE_SETS))
        ctx.apt.install(merge_package_sets(PACKAGE_SETS))
