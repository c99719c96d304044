from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Finer than DEBUG; enables verbose apt output and command stdout/stderr.
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_log_level(name: str) -> int:
    """Map a level name (trace|debug|info|warn|error) to a logging level."""

    key = str(name).strip().lower()
    if key not in _LEVELS:
        raise ValueError(f"Unknown log level: {name!r} (expected one of {', '.join(sorted(_LEVELS))})")
    return _LEVELS[key]


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
    also_console: bool = True,
) -> Optional[str]:
    """Configure logging.

    - Console output always goes to stderr (the image build log).
    - An additional log file is optional. If the requested location is not
      writable we fall back to a file in the working directory.

    Returns the actual file path being used (or None without a file).
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_provisioner_configured", False):
        return getattr(logger, "_provisioner_log_path", log_path)

    chosen_path: Optional[str] = None
    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = logging.FileHandler(log_path)
            chosen_path = log_path
        except OSError:
            fallback = str(Path.cwd() / "mailserver-provisioner.log")
            file_handler = logging.FileHandler(fallback)
            chosen_path = fallback
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_provisioner_configured", True)
    setattr(logger, "_provisioner_log_path", chosen_path)

    logging.getLogger(__name__).debug(
        "Logging initialized (level=%s, requested=%s, actual=%s)",
        logging.getLevelName(level),
        log_path,
        chosen_path,
    )
    return chosen_path
