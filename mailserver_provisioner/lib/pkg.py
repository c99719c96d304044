from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


@dataclass(frozen=True)
class PackageSet:
    """A named group of packages; apt resolves the order inside the group."""

    name: str
    packages: tuple[str, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for p in self.packages:
            if not p or not p.strip():
                raise ValueError(f"Package set {self.name}: empty package identifier")
            if p in seen:
                raise ValueError(f"Package set {self.name}: duplicate package {p}")
            seen.add(p)

    def __iter__(self) -> Iterator[str]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)


def merge_package_sets(sets: Iterable[PackageSet]) -> list[str]:
    """Concatenate sets in order, dropping repeats across sets."""

    merged: list[str] = []
    for s in sets:
        for p in s:
            if p not in merged:
                merged.append(p)
    return merged


@dataclass(frozen=True)
class AptPackageManager:
    quiet: bool = True
    timeout: Optional[float] = None

    def _apt(self, *args: str) -> CmdResult:
        flags = ["-y", "-qq"] if self.quiet else ["-y"]
        return run_cmd(["apt-get", *flags, *args], env=_APT_ENV, timeout=self.timeout)

    def update(self) -> None:
        self._apt("update")

    def install(self, packages: Sequence[str], *, with_recommends: bool = False) -> None:
        if not packages:
            return
        argv = ["install"]
        if not with_recommends:
            argv.append("--no-install-recommends")
        logger.debug("Installing %s", " ".join(packages))
        self._apt(*argv, *packages)

    def upgrade(self) -> None:
        self._apt("upgrade")

    def purge(self, packages: Sequence[str]) -> None:
        if not packages:
            return
        self._apt("purge", *packages)

    def autoremove(self) -> None:
        self._apt("autoremove")

    def clean(self) -> None:
        self._apt("clean")

    def install_deb(self, path: str | Path) -> None:
        """Install a local .deb with dpkg (no repository involved)."""

        run_cmd(["dpkg", "--install", str(path)], env=_APT_ENV, timeout=self.timeout)
