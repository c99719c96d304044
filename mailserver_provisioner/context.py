from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ProvisionConfig
from .lib.apt_sources import PackageSourceRegistry
from .lib.gpg import GpgKeyring
from .lib.hwdetect import probe_architecture
from .lib.pkg import AptPackageManager
from .logging_utils import TRACE


@dataclass(frozen=True)
class ProvisioningContext:
    """Everything a step may read or act through. Steps get nothing else."""

    cfg: ProvisionConfig
    architecture: str
    apt: AptPackageManager
    keyring: GpgKeyring
    registry: PackageSourceRegistry
    log: logging.Logger
    decisions: Dict[str, Any] = field(default_factory=dict)

    @property
    def root(self) -> Path:
        return Path(self.cfg.root)

    @property
    def community_repo(self) -> bool:
        return self.cfg.dovecot_community_repo

    def record(self, key: str, value: Any) -> None:
        self.decisions[key] = value
        self.log.debug("Decision %s=%s", key, value)


def build_context(
    cfg: ProvisionConfig,
    *,
    architecture: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> ProvisioningContext:
    log = logger or logging.getLogger("mailserver_provisioner")
    # apt output is only wanted when tracing.
    apt = AptPackageManager(quiet=not log.isEnabledFor(TRACE), timeout=cfg.command_timeout)
    keyring = GpgKeyring(timeout=cfg.network_timeout)
    registry = PackageSourceRegistry(
        apt=apt,
        keyring=keyring,
        root=cfg.root,
        work_dir=cfg.work_dir,
        network_timeout=cfg.network_timeout,
    )
    return ProvisioningContext(
        cfg=cfg,
        architecture=architecture or probe_architecture(),
        apt=apt,
        keyring=keyring,
        registry=registry,
        log=log,
    )
