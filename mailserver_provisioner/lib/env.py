from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    sources_list_dir: str = "/etc/apt/sources.list.d"
    trusted_keys_dir: str = "/etc/apt/trusted.gpg.d"
    keyrings_dir: str = "/usr/share/keyrings"
    apt_lists_dir: str = "/var/lib/apt/lists"
    hostname_bin: str = "/bin/hostname"
    caddy_config_dir: str = "/etc/caddy"


PATHS = Paths()
