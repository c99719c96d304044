from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .env import PATHS
from .files import host_path, write_file
from .gpg import GpgKeyring
from .net import DEFAULT_TIMEOUT_S, download, fetch_text
from .pkg import AptPackageManager

logger = logging.getLogger(__name__)

_LINE_TYPES = ("deb", "deb-src")


class RegistrationError(ValueError):
    pass


@dataclass(frozen=True)
class SigningKey:
    """Where a repository's public key comes from and where apt finds it.

    With `key_id` the downloaded key is imported and only that key is
    exported to `keyring_path`; otherwise the armored download is
    dearmored as a whole.
    """

    url: str
    keyring_path: str
    key_id: Optional[str] = None


@dataclass(frozen=True)
class PackageSourceEntry:
    name: str
    lines: tuple[str, ...] = ()
    descriptor_url: Optional[str] = None
    signing_key: Optional[SigningKey] = None
    applies_to_architecture: Optional[str] = None
    comment: Optional[str] = None

    @property
    def descriptor(self) -> str:
        if self.descriptor_url:
            return self.descriptor_url
        return "\n".join(self.lines)

    @property
    def list_path(self) -> str:
        return f"{PATHS.sources_list_dir}/{self.name}.list"

    def applies_to(self, arch: str) -> bool:
        return self.applies_to_architecture is None or self.applies_to_architecture == arch


def validate_entry(entry: PackageSourceEntry) -> None:
    if not entry.name or "/" in entry.name or entry.name.strip() != entry.name:
        raise RegistrationError(f"Invalid source name: {entry.name!r}")
    if bool(entry.lines) == bool(entry.descriptor_url):
        raise RegistrationError(f"Source {entry.name}: give either descriptor lines or a descriptor URL")
    for line in entry.lines:
        parts = line.split()
        if len(parts) < 3 or parts[0] not in _LINE_TYPES:
            raise RegistrationError(f"Source {entry.name}: malformed descriptor line {line!r}")


def select_for_architecture(entries: Sequence[PackageSourceEntry], arch: str) -> PackageSourceEntry:
    """Pick exactly one source: the one pinned to `arch`, else the default."""

    pinned = [e for e in entries if e.applies_to_architecture == arch]
    if len(pinned) > 1:
        raise RegistrationError(f"More than one source pinned to {arch}: {[e.name for e in pinned]}")
    if pinned:
        return pinned[0]

    defaults = [e for e in entries if e.applies_to_architecture is None]
    if len(defaults) != 1:
        raise RegistrationError(
            f"Expected exactly one default source for {arch}, found {len(defaults)}: {[e.name for e in defaults]}"
        )
    return defaults[0]


class PackageSourceRegistry:
    """Registers apt repositories (key + .list file) and installs from them.

    Registered sources are never removed: they stay part of the image.
    """

    def __init__(
        self,
        *,
        apt: AptPackageManager,
        keyring: GpgKeyring,
        root: str | Path = "/",
        work_dir: Optional[str] = None,
        network_timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.apt = apt
        self.keyring = keyring
        self.root = Path(root)
        self.work_dir = work_dir
        self.network_timeout = network_timeout
        self._registered: Dict[str, PackageSourceEntry] = {}
        self._index_stale = False

    @property
    def registered(self) -> List[str]:
        return list(self._registered)

    @property
    def index_stale(self) -> bool:
        return self._index_stale

    def is_registered(self, name: str) -> bool:
        return name in self._registered

    def register(self, entry: PackageSourceEntry) -> bool:
        """Register a source. Returns False if the same descriptor was
        already registered under this name."""

        validate_entry(entry)

        existing = self._registered.get(entry.name)
        if existing is not None:
            if existing.descriptor == entry.descriptor:
                logger.debug("Source %s already registered", entry.name)
                return False
            raise RegistrationError(
                f"Source {entry.name} already registered with a different descriptor"
            )

        if entry.signing_key is not None:
            self._install_key(entry.signing_key)

        write_file(self.root, entry.list_path, self._render(entry))
        self._registered[entry.name] = entry
        self._index_stale = True
        logger.info("Registered package source %s", entry.name)
        return True

    def refresh_index(self) -> None:
        self.apt.update()
        self._index_stale = False

    def install(self, packages: Sequence[str], *, with_recommends: bool = False) -> None:
        if self._index_stale:
            logger.debug("New package source registered; refreshing index first")
            self.refresh_index()
        self.apt.install(packages, with_recommends=with_recommends)

    def _install_key(self, key: SigningKey) -> None:
        dest = host_path(self.root, key.keyring_path)
        with tempfile.TemporaryDirectory(prefix="apt-key-", dir=self.work_dir) as tmp:
            armored = download(key.url, Path(tmp) / "key.asc", timeout=self.network_timeout)
            if key.key_id:
                self.keyring.import_file(armored)
                self.keyring.export_key(key.key_id, dest)
            else:
                self.keyring.dearmor(armored, dest)
        logger.debug("Installed signing key %s", str(dest))

    def _render(self, entry: PackageSourceEntry) -> str:
        out: list[str] = []
        if entry.comment:
            out.append(f"# {entry.comment}")
        if entry.descriptor_url:
            body = fetch_text(entry.descriptor_url, timeout=self.network_timeout)
            if not body.strip():
                raise RegistrationError(f"Source {entry.name}: empty descriptor from {entry.descriptor_url}")
            out.append(body.rstrip("\n"))
        else:
            out.extend(entry.lines)
        return "\n".join(out) + "\n"

