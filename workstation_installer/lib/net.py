from __future__ import annotations

import logging

from .privilege import is_windows
from .probe import query

logger = logging.getLogger(__name__)

DEFAULT_PING_HOST = "1.1.1.1"


def is_online(host: str = DEFAULT_PING_HOST, *, dry_run: bool = False) -> bool:
    """Best-effort online check."""

    if dry_run:
        return True
    if is_windows():
        argv = ["ping", "-n", "1", "-w", "2000", host]
    else:
        argv = ["ping", "-c", "1", "-W", "2", host]
    r = query(argv, timeout_s=10)
    return r is not None and r.returncode == 0
