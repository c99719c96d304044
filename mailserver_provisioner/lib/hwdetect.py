from __future__ import annotations

import logging
import platform

logger = logging.getLogger(__name__)


def probe_architecture() -> str:
    """Return the machine identifier (what `uname --machine` prints).

    The value is used for branching only, so it is not normalized to
    Debian architecture names (`aarch64` stays `aarch64`).
    """

    machine = platform.machine() or "unknown"
    logger.debug("Architecture probe: %s", machine)
    return machine
