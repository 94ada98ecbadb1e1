from __future__ import annotations

import ctypes
import logging
import os
import sys

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    return sys.platform.startswith("win")


def is_elevated() -> bool:
    """True when running as Administrator (Windows) or root (elsewhere)."""

    if is_windows():
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            logger.warning("Could not query elevation state")
            return False

    if hasattr(os, "geteuid"):
        return os.geteuid() == 0

    return False
