from __future__ import annotations

import enum
import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, NoReturn, Optional

from .gpg import GpgKeyring, SignatureCheck, normalize_fingerprint
from .net import DEFAULT_TIMEOUT_S, download

logger = logging.getLogger(__name__)


class ArtifactState(enum.Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    VERIFYING = "verifying"
    INSTALLING = "installing"
    INSTALLED = "installed"
    REJECTED = "rejected"


class VerificationFailure(RuntimeError):
    INVALID_SIGNATURE = "invalid_signature"
    NO_FINGERPRINT = "no_fingerprint"
    FINGERPRINT_MISMATCH = "fingerprint_mismatch"

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


@dataclass(frozen=True)
class SignedArtifact:
    name: str
    payload_url: str
    signature_url: str
    expected_fingerprint: str
    key_id: str
    keyserver: str
    filename: str

    @property
    def signature_filename(self) -> str:
        return f"{self.filename}.asc"


class SignedArtifactInstaller:
    """Fetch, verify and install a detached-signature artifact.

    FETCHING -> VERIFYING -> INSTALLING -> INSTALLED, or REJECTED after
    VERIFYING. Downloads live in a temporary directory that is removed on
    every exit path. A rejection is final: nothing is installed.
    """

    def __init__(
        self,
        *,
        keyring: GpgKeyring,
        install: Callable[[Path], None],
        configure: Optional[Callable[[], None]] = None,
        fetch: Optional[Callable[[str, Path], Path]] = None,
        work_dir: Optional[str] = None,
        network_timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.keyring = keyring
        self.install = install
        self.configure = configure
        self.fetch = fetch or (lambda url, dest: download(url, dest, timeout=network_timeout))
        self.work_dir = work_dir
        self.state = ArtifactState.PENDING
        self.history: List[ArtifactState] = []

    def _transition(self, state: ArtifactState) -> None:
        self.state = state
        self.history.append(state)

    def _reject(self, reason: str, msg: str) -> NoReturn:
        self._transition(ArtifactState.REJECTED)
        logger.error(msg)
        raise VerificationFailure(reason, msg)

    def _check_signature(self, artifact: SignedArtifact, check: SignatureCheck) -> None:
        if not check.valid:
            self._reject(
                VerificationFailure.INVALID_SIGNATURE,
                f"{artifact.name}: invalid GPG signature (gpg rejected the signature)",
            )

        fingerprint = check.fingerprint
        if not fingerprint:
            self._reject(
                VerificationFailure.NO_FINGERPRINT,
                f"{artifact.name}: no signer fingerprint could be extracted from the GPG signature",
            )

        if normalize_fingerprint(fingerprint) != normalize_fingerprint(artifact.expected_fingerprint):
            self._reject(
                VerificationFailure.FINGERPRINT_MISMATCH,
                f"{artifact.name}: wrong GPG fingerprint "
                f"(expected {artifact.expected_fingerprint!r}, got {fingerprint!r})",
            )

    def run(self, artifact: SignedArtifact) -> None:
        self._transition(ArtifactState.FETCHING)
        with tempfile.TemporaryDirectory(prefix=f"{artifact.name}-", dir=self.work_dir) as tmp:
            payload = self.fetch(artifact.payload_url, Path(tmp) / artifact.filename)
            signature = self.fetch(artifact.signature_url, Path(tmp) / artifact.signature_filename)

            self._transition(ArtifactState.VERIFYING)
            self.keyring.import_key(artifact.key_id, artifact.keyserver)
            check = self.keyring.verify(signature, payload)
            self._check_signature(artifact, check)

            self._transition(ArtifactState.INSTALLING)
            logger.debug("%s: signature verified (%s)", artifact.name, check.fingerprint)
            self.install(payload)

        if self.configure is not None:
            self.configure()
        self._transition(ArtifactState.INSTALLED)
        logger.info("%s installed from verified artifact", artifact.name)
