from __future__ import annotations

import logging
from pathlib import Path

from .command import run_cmd

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120.0
CONNECT_TIMEOUT_S = 20


def _seconds(value: float) -> str:
    v = float(value)
    return str(int(v)) if v.is_integer() else str(v)


def _curl_argv(url: str, timeout: float) -> list[str]:
    return [
        "curl",
        "--silent",
        "--show-error",
        "--fail",
        "--location",
        "--connect-timeout",
        _seconds(min(CONNECT_TIMEOUT_S, timeout)),
        "--max-time",
        _seconds(timeout),
        url,
    ]


def download(url: str, dest: str | Path, *, timeout: float = DEFAULT_TIMEOUT_S) -> Path:
    """Download `url` to `dest`. curl enforces `timeout`; the process
    timeout covers curl itself hanging."""

    d = Path(dest)
    d.parent.mkdir(parents=True, exist_ok=True)
    argv = _curl_argv(url, timeout)
    run_cmd([*argv[:-1], "--output", str(d), argv[-1]], timeout=timeout + 10)
    logger.debug("Downloaded %s -> %s", url, str(d))
    return d


def fetch_text(url: str, *, timeout: float = DEFAULT_TIMEOUT_S) -> str:
    r = run_cmd(_curl_argv(url, timeout), timeout=timeout + 10)
    return r.stdout
