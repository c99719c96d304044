from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .logging_utils import parse_log_level

ENV_COMMUNITY_REPO = "DOVECOT_COMMUNITY_REPO"
ENV_LOG_LEVEL = "LOG_LEVEL"


class ConfigError(ValueError):
    pass


def parse_flag(value: Any, name: str) -> bool:
    """Feature flags accept 1 (on) and 0 or unset (off), nothing else."""

    if value is None or value is False or value == 0:
        return False
    if value is True or value == 1:
        return True
    text = str(value).strip()
    if text in {"", "0"}:
        return False
    if text == "1":
        return True
    raise ConfigError(f"{name} must be 0 or 1, got {value!r}")


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any]

    @property
    def log_level(self) -> str:
        return str(self.raw.get("log_level") or "info")

    @property
    def log_level_value(self) -> int:
        return parse_log_level(self.log_level)

    @property
    def dovecot_community_repo(self) -> bool:
        return parse_flag(self.raw.get("dovecot_community_repo"), ENV_COMMUNITY_REPO)

    @property
    def root(self) -> str:
        return str(self.raw.get("root") or "/")

    @property
    def work_dir(self) -> Optional[str]:
        wd = self.raw.get("work_dir")
        return str(wd) if wd else None

    @property
    def network_timeout(self) -> float:
        return float(((self.raw.get("timeouts") or {}).get("network")) or 120)

    @property
    def command_timeout(self) -> Optional[float]:
        # Unset means no limit.
        t = (self.raw.get("timeouts") or {}).get("command")
        return float(t) if t else None

    @property
    def debian_codename(self) -> str:
        return str(((self.raw.get("debian") or {}).get("codename")) or "bullseye")

    @property
    def keyserver(self) -> str:
        return str(self.raw.get("keyserver") or "hkps://keyserver.ubuntu.com")

    @property
    def fail2ban_version(self) -> str:
        return str(((self.raw.get("fail2ban") or {}).get("version")) or "1.0.2")

    @property
    def fail2ban_deb_url(self) -> str:
        url = (self.raw.get("fail2ban") or {}).get("deb_url")
        if url:
            return str(url)
        v = self.fail2ban_version
        return f"https://github.com/fail2ban/fail2ban/releases/download/{v}/fail2ban_{v}-1.upstream1_all.deb"

    @property
    def fail2ban_fingerprint(self) -> str:
        return str(
            ((self.raw.get("fail2ban") or {}).get("fingerprint"))
            or "8738 559E 26F6 71DF 9E2C  6D9E 683B F1BE BD0A 882C"
        )

    @property
    def fail2ban_key_id(self) -> str:
        return str(((self.raw.get("fail2ban") or {}).get("key_id")) or "0x683BF1BEBD0A882C")

    def with_overrides(self, **overrides: Any) -> "ProvisionConfig":
        raw = dict(self.raw)
        raw.update({k: v for k, v in overrides.items() if v is not None})
        return validate(ProvisionConfig(raw=raw))


def validate(cfg: ProvisionConfig) -> ProvisionConfig:
    """Touch every parsed property once so bad values fail at load time."""

    try:
        cfg.log_level_value
    except ValueError as e:
        raise ConfigError(str(e)) from e
    cfg.dovecot_community_repo
    timeouts = cfg.raw.get("timeouts") or {}
    if not isinstance(timeouts, dict):
        raise ConfigError("timeouts must be a mapping")
    for key in ("network", "command"):
        value = timeouts.get(key)
        if value is None:
            continue
        try:
            seconds = float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"timeouts.{key} must be a number: {e}") from e
        if seconds <= 0:
            raise ConfigError(f"timeouts.{key} must be greater than 0, got {value!r}")
    return cfg


def load_config(path: Optional[str] = None, *, env: Optional[Mapping[str, str]] = None) -> ProvisionConfig:
    """Load YAML config (optional) and apply environment overrides.

    Environment wins over the file, matching how the image build passes
    flags in as build arguments.
    """

    raw: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError("config must be YAML")
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping/object")

    environ = os.environ if env is None else env
    if ENV_COMMUNITY_REPO in environ:
        raw["dovecot_community_repo"] = environ[ENV_COMMUNITY_REPO]
    if environ.get(ENV_LOG_LEVEL):
        raw["log_level"] = environ[ENV_LOG_LEVEL]

    return validate(ProvisionConfig(raw=raw))
