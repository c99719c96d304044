from .setup_caddy import SetupCaddyStep
from .step_10_pre_installation import PreInstallationStep
from .step_20_install_postfix import InstallPostfixStep
from .step_30_install_packages import InstallPackagesStep
from .step_40_dovecot_community_repo import DovecotCommunityRepoStep
from .step_45_install_dovecot import InstallDovecotStep
from .step_50_install_rspamd import InstallRspamdStep
from .step_60_install_fail2ban import InstallFail2banStep
from .step_70_install_caddy import InstallCaddyStep
from .step_80_remove_sensitive_data import RemoveSensitiveDataStep
from .step_90_post_installation import PostInstallationStep

__all__ = [
    "PreInstallationStep",
    "InstallPostfixStep",
    "InstallPackagesStep",
    "DovecotCommunityRepoStep",
    "InstallDovecotStep",
    "InstallRspamdStep",
    "InstallFail2banStep",
    "InstallCaddyStep",
    "RemoveSensitiveDataStep",
    "PostInstallationStep",
    "SetupCaddyStep",
]
