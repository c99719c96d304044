"""
Tests for the signed artifact installer (fetch -> verify -> install).
"""

from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from mailserver_provisioner.lib.gpg import GpgKeyring, SignatureCheck, extract_fingerprint, normalize_fingerprint
from mailserver_provisioner.lib.signed_artifact import (
    ArtifactState,
    SignedArtifact,
    SignedArtifactInstaller,
    VerificationFailure,
)

from conftest import fake_download

EXPECTED = "8738 559E 26F6 71DF 9E2C  6D9E 683B F1BE BD0A 882C"

GPG_GOOD_OUTPUT = """\
gpg: Signature made Tue Sep 27 12:00:00 2022 UTC
gpg:                using RSA key 8738559E26F671DF9E2C6D9E683BF1BEBD0A882C
gpg: Good signature from "Serg G. Brester (sebres) <serg.brester@sebres.de>" [unknown]
gpg: WARNING: This key is not certified with a trusted signature!
gpg:          There is no indication that the signature belongs to the owner.
Primary key fingerprint: 8738 559E 26F6 71DF 9E2C  6D9E 683B F1BE BD0A 882C
"""


def _artifact(expected=EXPECTED):
    return SignedArtifact(
        name="fail2ban",
        payload_url="https://example.invalid/fail2ban.deb",
        signature_url="https://example.invalid/fail2ban.deb.asc",
        expected_fingerprint=expected,
        key_id="0x683BF1BEBD0A882C",
        keyserver="hkps://keyserver.ubuntu.com",
        filename="fail2ban.deb",
    )


def _installer(work_dir: Path, fingerprint, install=None, configure=None, valid=True):
    keyring = MagicMock(spec=GpgKeyring)
    keyring.verify.return_value = SignatureCheck(valid=valid, fingerprint=fingerprint)
    installer = SignedArtifactInstaller(
        keyring=keyring,
        install=install if install is not None else MagicMock(),
        configure=configure if configure is not None else MagicMock(),
        fetch=fake_download,
        work_dir=str(work_dir),
    )
    return installer, keyring


class TestFingerprintParsing:
    def test_extracts_primary_fingerprint(self):
        assert extract_fingerprint(GPG_GOOD_OUTPUT) == EXPECTED

    def test_no_fingerprint_line(self):
        assert extract_fingerprint("gpg: Can't check signature: No public key\n") is None

    def test_normalize_drops_grouping_only(self):
        assert normalize_fingerprint(EXPECTED) == "8738559E26F671DF9E2C6D9E683BF1BEBD0A882C"
        assert normalize_fingerprint("ab cd") == "abcd"


class TestRejection:
    def test_no_fingerprint_rejects_without_installing(self, work_dir):
        install, configure = MagicMock(), MagicMock()
        installer, _ = _installer(work_dir, None, install, configure)

        with pytest.raises(VerificationFailure) as exc:
            installer.run(_artifact())

        assert exc.value.reason == VerificationFailure.NO_FINGERPRINT
        assert "no signer fingerprint" in str(exc.value)
        install.assert_not_called()
        configure.assert_not_called()
        assert installer.state is ArtifactState.REJECTED

    def test_bad_signature_rejects_as_invalid_signature(self, work_dir):
        install, configure = MagicMock(), MagicMock()
        installer, _ = _installer(work_dir, EXPECTED, install, configure, valid=False)

        with pytest.raises(VerificationFailure) as exc:
            installer.run(_artifact())

        assert exc.value.reason == VerificationFailure.INVALID_SIGNATURE
        assert "invalid GPG signature" in str(exc.value)
        assert "fingerprint" not in str(exc.value)
        install.assert_not_called()
        configure.assert_not_called()
        assert installer.state is ArtifactState.REJECTED
        assert list(work_dir.iterdir()) == []

    def test_one_character_mismatch_rejects(self, work_dir):
        install = MagicMock()
        off_by_one = EXPECTED[:-1] + "D"
        installer, _ = _installer(work_dir, off_by_one, install)

        with pytest.raises(VerificationFailure) as exc:
            installer.run(_artifact())

        assert exc.value.reason == VerificationFailure.FINGERPRINT_MISMATCH
        assert "wrong GPG fingerprint" in str(exc.value)
        install.assert_not_called()

    def test_comparison_is_case_sensitive(self, work_dir):
        install = MagicMock()
        installer, _ = _installer(work_dir, EXPECTED.lower(), install)

        with pytest.raises(VerificationFailure):
            installer.run(_artifact())
        install.assert_not_called()

    def test_messages_distinguish_the_checks(self, work_dir):
        bad, _ = _installer(work_dir, EXPECTED, valid=False)
        missing, _ = _installer(work_dir, None)
        wrong, _ = _installer(work_dir, "0000")
        failures = []
        for installer in (bad, missing, wrong):
            with pytest.raises(VerificationFailure) as exc:
                installer.run(_artifact())
            failures.append(exc.value)
        assert len({str(f) for f in failures}) == 3
        assert [f.reason for f in failures] == [
            VerificationFailure.INVALID_SIGNATURE,
            VerificationFailure.NO_FINGERPRINT,
            VerificationFailure.FINGERPRINT_MISMATCH,
        ]


class TestInstall:
    def test_exact_match_installs_then_configures_once(self, work_dir):
        events = MagicMock()
        installer, keyring = _installer(work_dir, EXPECTED, events.install, events.configure)

        installer.run(_artifact())

        assert events.mock_calls[0][0] == "install"
        assert events.mock_calls[1] == call.configure()
        assert len(events.mock_calls) == 2
        installed = events.install.call_args[0][0]
        assert installed.name == "fail2ban.deb"

        keyring.import_key.assert_called_once_with("0x683BF1BEBD0A882C", "hkps://keyserver.ubuntu.com")
        assert installer.history == [
            ArtifactState.FETCHING,
            ArtifactState.VERIFYING,
            ArtifactState.INSTALLING,
            ArtifactState.INSTALLED,
        ]

    def test_verifies_signature_against_payload(self, work_dir):
        installer, keyring = _installer(work_dir, EXPECTED)
        installer.run(_artifact())
        sig, payload = keyring.verify.call_args[0]
        assert Path(sig).name == "fail2ban.deb.asc"
        assert Path(payload).name == "fail2ban.deb"


class TestTemporaryFiles:
    def test_cleaned_up_after_success(self, work_dir):
        installer, _ = _installer(work_dir, EXPECTED)
        installer.run(_artifact())
        assert list(work_dir.iterdir()) == []

    def test_cleaned_up_after_verification_failure(self, work_dir):
        installer, _ = _installer(work_dir, None)
        with pytest.raises(VerificationFailure):
            installer.run(_artifact())
        assert list(work_dir.iterdir()) == []

    def test_cleaned_up_after_install_failure(self, work_dir):
        install = MagicMock(side_effect=RuntimeError("dpkg: error processing archive"))
        installer, _ = _installer(work_dir, EXPECTED, install)
        with pytest.raises(RuntimeError, match="dpkg"):
            installer.run(_artifact())
        assert list(work_dir.iterdir()) == []
        assert installer.state is ArtifactState.INSTALLING

    def test_payload_exists_while_installing(self, work_dir):
        seen = {}

        def install(path):
            seen["exists"] = Path(path).exists()

        installer, _ = _installer(work_dir, EXPECTED, install)
        installer.run(_artifact())
        assert seen["exists"] is True
