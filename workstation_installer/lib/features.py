from __future__ import annotations

import logging
import re
from typing import Optional

from .command import run_cmd
from .probe import DEFAULT_PROBE_TIMEOUT_S, InstallationState, query

logger = logging.getLogger(__name__)

DISM = "dism.exe"

# ERROR_SUCCESS_REBOOT_REQUIRED
REBOOT_REQUIRED = 3010

_STATE_RE = re.compile(r"^\s*State\s*:\s*(.+?)\s*$", re.MULTILINE)


def parse_feature_state(text: str) -> InstallationState:
    m = _STATE_RE.search(text)
    if not m:
        return InstallationState.UNKNOWN
    value = m.group(1).strip().lower()
    if value == "enabled":
        return InstallationState.PRESENT
    if value in {"disabled", "disable pending", "disabled with payload removed"}:
        return InstallationState.ABSENT
    # "Enable Pending" needs a reboot before it can be trusted.
    return InstallationState.UNKNOWN


def get_feature_state(name: str, *, timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S) -> InstallationState:
    r = query([DISM, "/online", "/English", "/get-featureinfo", f"/featurename:{name}"], timeout_s=timeout_s)
    if r is None or r.returncode != 0:
        return InstallationState.UNKNOWN
    return parse_feature_state(r.stdout)


def set_feature_state(
    name: str,
    enabled: bool,
    *,
    dry_run: bool = False,
    timeout_s: Optional[float] = None,
) -> bool:
    """Enable or disable an optional feature. Returns True if a reboot is required."""

    argv = [DISM, "/online"]
    if enabled:
        argv += ["/enable-feature", f"/featurename:{name}", "/all", "/norestart"]
    else:
        argv += ["/disable-feature", f"/featurename:{name}", "/norestart"]
    r = run_cmd(argv, dry_run=dry_run, timeout_s=timeout_s, ok_codes=(0, REBOOT_REQUIRED))
    reboot = r.returncode == REBOOT_REQUIRED
    logger.info("Feature %s %s (reboot_required=%s)", name, "enabled" if enabled else "disabled", reboot)
    return reboot
