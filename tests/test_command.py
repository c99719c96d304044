"""
Tests for the external command wrappers (run_cmd, apt, gpg, curl).
"""

from unittest.mock import patch

import pytest

from mailserver_provisioner.lib.command import CmdResult, CommandFailure, run_cmd
from mailserver_provisioner.lib.gpg import GpgKeyring, SignatureCheck
from mailserver_provisioner.lib.net import download
from mailserver_provisioner.lib.pkg import AptPackageManager


class TestRunCmd:
    def test_captures_output(self):
        r = run_cmd(["sh", "-c", "echo out; echo err >&2"])
        assert r.returncode == 0
        assert r.stdout.strip() == "out"
        assert r.stderr.strip() == "err"

    def test_non_zero_exit_raises(self):
        with pytest.raises(CommandFailure) as exc:
            run_cmd(["sh", "-c", "echo nope >&2; exit 3"])
        assert exc.value.returncode == 3
        assert "nope" in str(exc.value)

    def test_check_false_returns_result(self):
        r = run_cmd(["sh", "-c", "exit 2"], check=False)
        assert r.returncode == 2

    def test_timeout_is_a_failure(self):
        with pytest.raises(CommandFailure) as exc:
            run_cmd(["sleep", "5"], timeout=0.2)
        assert exc.value.returncode is None
        assert "timed out" in str(exc.value)

    def test_env_is_merged(self):
        r = run_cmd(["sh", "-c", 'echo "$PROVISION_TEST"'], env={"PROVISION_TEST": "42"})
        assert r.stdout.strip() == "42"


def _ok(argv, **kwargs):
    return CmdResult(argv=list(argv), returncode=0, stdout="", stderr="")


class TestApt:
    def test_quiet_mode(self):
        with patch("mailserver_provisioner.lib.pkg.run_cmd", side_effect=_ok) as run:
            AptPackageManager(quiet=True).install(["postfix"])
        argv = run.call_args[0][0]
        assert argv == ["apt-get", "-y", "-qq", "install", "--no-install-recommends", "postfix"]
        assert run.call_args[1]["env"] == {"DEBIAN_FRONTEND": "noninteractive"}

    def test_verbose_mode(self):
        with patch("mailserver_provisioner.lib.pkg.run_cmd", side_effect=_ok) as run:
            AptPackageManager(quiet=False).update()
        assert run.call_args[0][0] == ["apt-get", "-y", "update"]

    def test_empty_install_is_a_no_op(self):
        with patch("mailserver_provisioner.lib.pkg.run_cmd") as run:
            AptPackageManager().install([])
            AptPackageManager().purge([])
        run.assert_not_called()

    def test_install_deb_uses_dpkg(self):
        with patch("mailserver_provisioner.lib.pkg.run_cmd", side_effect=_ok) as run:
            AptPackageManager(timeout=600).install_deb("/tmp/x/fail2ban.deb")
        assert run.call_args[0][0] == ["dpkg", "--install", "/tmp/x/fail2ban.deb"]
        assert run.call_args[1]["timeout"] == 600


class TestGpg:
    def test_verify_returns_status_and_fingerprint(self):
        out = CmdResult(
            argv=[],
            returncode=0,
            stdout="",
            stderr="gpg: Good signature\nPrimary key fingerprint: AAAA BBBB\n",
        )
        with patch("mailserver_provisioner.lib.gpg.run_cmd", return_value=out) as run:
            check = GpgKeyring().verify("f.deb.asc", "f.deb")
        assert check == SignatureCheck(valid=True, fingerprint="AAAA BBBB")
        assert run.call_args[1]["env"]["LANG"] == "C"
        assert run.call_args[1]["check"] is False

    def test_verify_bad_signature_is_not_valid(self):
        out = CmdResult(argv=[], returncode=1, stdout="", stderr="gpg: BAD signature\nPrimary key fingerprint: AAAA\n")
        with patch("mailserver_provisioner.lib.gpg.run_cmd", return_value=out):
            check = GpgKeyring().verify("f.deb.asc", "f.deb")
        assert check.valid is False
        assert check.fingerprint == "AAAA"

    def test_import_key_from_keyserver(self):
        with patch("mailserver_provisioner.lib.gpg.run_cmd", side_effect=_ok) as run:
            GpgKeyring(timeout=30).import_key("0xABC", "hkps://keys.example")
        assert run.call_args[0][0] == ["gpg", "--batch", "--keyserver", "hkps://keys.example", "--recv-keys", "0xABC"]
        assert run.call_args[1]["timeout"] == 30


class TestDownload:
    def test_curl_has_timeouts(self, tmp_path):
        with patch("mailserver_provisioner.lib.net.run_cmd", side_effect=_ok) as run:
            download("https://example.invalid/x.deb", tmp_path / "x.deb", timeout=60)
        argv = run.call_args[0][0]
        assert argv[0] == "curl"
        assert argv[argv.index("--max-time") + 1] == "60"
        assert "--connect-timeout" in argv
        assert argv[argv.index("--output") + 1] == str(tmp_path / "x.deb")
        assert argv[-1] == "https://example.invalid/x.deb"
        assert run.call_args[1]["timeout"] == 70

    def test_fractional_timeout_is_not_truncated(self, tmp_path):
        with patch("mailserver_provisioner.lib.net.run_cmd", side_effect=_ok) as run:
            download("https://example.invalid/x.deb", tmp_path / "x.deb", timeout=0.5)
        argv = run.call_args[0][0]
        assert argv[argv.index("--max-time") + 1] == "0.5"
        assert argv[argv.index("--connect-timeout") + 1] == "0.5"
