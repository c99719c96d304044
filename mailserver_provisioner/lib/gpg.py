from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .command import run_cmd

logger = logging.getLogger(__name__)

_PRIMARY_FP_RE = re.compile(r"^\s*Primary key fingerprint:\s*(.+?)\s*$", re.MULTILINE)

# gpg output is parsed, so pin the locale.
_GPG_ENV = {"LANG": "C", "LC_ALL": "C"}


def extract_fingerprint(output: str) -> Optional[str]:
    """Pull the signer's primary key fingerprint out of `gpg --verify` output."""

    m = _PRIMARY_FP_RE.search(output or "")
    if not m:
        return None
    return m.group(1)


def normalize_fingerprint(fingerprint: str) -> str:
    """Drop the grouping whitespace gpg puts between hex blocks.

    Case is left alone on purpose: fingerprints are compared exactly.
    """

    return "".join(fingerprint.split())


@dataclass(frozen=True)
class SignatureCheck:
    valid: bool
    fingerprint: Optional[str]


@dataclass(frozen=True)
class GpgKeyring:
    timeout: float = 120.0
    homedir: Optional[str] = None

    def _argv(self, *args: str) -> list[str]:
        argv = ["gpg", "--batch"]
        if self.homedir:
            argv += ["--homedir", self.homedir]
        return [*argv, *args]

    def import_key(self, key_id: str, keyserver: str) -> None:
        logger.debug("Importing key %s from %s", key_id, keyserver)
        run_cmd(self._argv("--keyserver", keyserver, "--recv-keys", key_id), env=_GPG_ENV, timeout=self.timeout)

    def import_file(self, path: str | Path) -> None:
        run_cmd(self._argv("--import", str(path)), env=_GPG_ENV, timeout=self.timeout)

    def export_key(self, key_id: str, dest: str | Path) -> None:
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
        run_cmd(self._argv("--yes", "--output", str(dest), "--export", key_id), env=_GPG_ENV, timeout=self.timeout)

    def dearmor(self, src: str | Path, dest: str | Path) -> None:
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
        run_cmd(self._argv("--yes", "--output", str(dest), "--dearmor", str(src)), env=_GPG_ENV, timeout=self.timeout)

    def verify(self, signature_file: str | Path, payload_file: str | Path) -> SignatureCheck:
        """Verify a detached signature.

        `valid` is gpg's verdict on the signature; `fingerprint` is the
        signer's primary key fingerprint when gpg printed one.
        """

        r = run_cmd(
            self._argv("--verify", str(signature_file), str(payload_file)),
            check=False,
            env=_GPG_ENV,
            timeout=self.timeout,
        )
        if r.returncode != 0:
            logger.debug("gpg --verify exited %d", r.returncode)
        return SignatureCheck(valid=r.returncode == 0, fingerprint=extract_fingerprint(f"{r.stdout}\n{r.stderr}"))
