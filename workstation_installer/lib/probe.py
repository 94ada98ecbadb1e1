from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from ..errors import InstallerError
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_S = 120.0


class InstallationState(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"


def query(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S,
) -> Optional[CmdResult]:
    """Run a read-only lookup command.

    Returns None when the command could not be run at all (missing
    executable, timeout, OS error). A non-zero exit is returned as-is.
    """

    try:
        return run_cmd(argv, check=False, env=env, timeout_s=timeout_s)
    except (OSError, InstallerError) as e:
        logger.warning("Probe %s failed: %s", argv[0], e)
        return None


def classify(
    argv: Sequence[str],
    present_when: Callable[[CmdResult], bool] = lambda r: r.returncode == 0,
    *,
    env: Mapping[str, str] | None = None,
    timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S,
) -> InstallationState:
    """Map a lookup command to present/absent/unknown. Never raises."""

    r = query(argv, env=env, timeout_s=timeout_s)
    if r is None:
        return InstallationState.UNKNOWN
    return InstallationState.PRESENT if present_when(r) else InstallationState.ABSENT
