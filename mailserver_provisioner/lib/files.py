from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class PatchError(RuntimeError):
    pass


def host_path(root: str | Path, rel: str | Path) -> Path:
    """Resolve an absolute host path (e.g. /etc/caddy) below `root`."""

    return Path(root) / str(rel).lstrip("/")


def ensure_dir(root: str | Path, rel: str | Path) -> Path:
    p = host_path(root, rel)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_file(root: str | Path, rel: str | Path, contents: str, *, mode: int | None = None) -> Path:
    p = host_path(root, rel)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(contents, encoding="utf-8")
    if mode is not None:
        p.chmod(mode)
    logger.debug("Wrote %s", str(p))
    return p


def delete_file(root: str | Path, rel: str | Path) -> None:
    """Delete a file. A missing file is an error (like `rm` without -f)."""

    p = host_path(root, rel)
    p.unlink()
    logger.debug("Deleted %s", str(p))


def move_file(root: str | Path, src: str | Path, dst: str | Path) -> None:
    s = host_path(root, src)
    d = host_path(root, dst)
    s.rename(d)
    logger.debug("Moved %s -> %s", str(s), str(d))


def clear_dir(root: str | Path, rel: str | Path) -> None:
    """Remove everything inside a directory, keeping the directory itself."""

    p = host_path(root, rel)
    if not p.exists():
        return
    for child in p.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def substitute_in_file(
    root: str | Path,
    rel: str | Path,
    pattern: str,
    replacement: str | Callable[[re.Match], str],
    *,
    flags: int = re.MULTILINE,
) -> int:
    """Apply a regex substitution to a config file in place.

    Raises PatchError if the pattern does not occur.
    """

    p = host_path(root, rel)
    original = p.read_text(encoding="utf-8")
    patched, count = re.subn(pattern, replacement, original, flags=flags)
    if count == 0:
        raise PatchError(f"Pattern {pattern!r} not found in {p}")
    p.write_text(patched, encoding="utf-8")
    logger.debug("Patched %s (%d substitution(s))", str(p), count)
    return count
