"""Shared fixtures: a provisioning context whose package manager and
keyring are mocks and whose filesystem root lives under tmp_path."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from mailserver_provisioner.config import ProvisionConfig
from mailserver_provisioner.context import ProvisioningContext
from mailserver_provisioner.lib.apt_sources import PackageSourceRegistry
from mailserver_provisioner.lib.gpg import GpgKeyring
from mailserver_provisioner.lib.pkg import AptPackageManager


@pytest.fixture
def root(tmp_path: Path) -> Path:
    r = tmp_path / "root"
    r.mkdir()
    return r


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    w = tmp_path / "work"
    w.mkdir()
    return w


@pytest.fixture
def make_ctx(root: Path, work_dir: Path):
    def _make(architecture: str = "x86_64", **raw) -> ProvisioningContext:
        raw.setdefault("root", str(root))
        raw.setdefault("work_dir", str(work_dir))
        cfg = ProvisionConfig(raw=raw)
        apt = MagicMock(spec=AptPackageManager)
        keyring = MagicMock(spec=GpgKeyring)
        registry = PackageSourceRegistry(apt=apt, keyring=keyring, root=cfg.root, work_dir=cfg.work_dir)
        return ProvisioningContext(
            cfg=cfg,
            architecture=architecture,
            apt=apt,
            keyring=keyring,
            registry=registry,
            log=logging.getLogger("tests"),
        )

    return _make


def fake_download(url, dest, timeout=None):
    """Stand-in for lib.net.download: writes a small file instead of fetching."""
    p = Path(dest)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(f"downloaded from {url}\n")
    return p
