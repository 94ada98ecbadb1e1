from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import ProbeError
from .command import run_cmd
from .probe import DEFAULT_PROBE_TIMEOUT_S, InstallationState, classify, query

logger = logging.getLogger(__name__)

WSL = "wsl.exe"

# wsl.exe writes UTF-16 unless told otherwise.
WSL_ENV = {"WSL_UTF8": "1"}

_DEFAULT_VERSION_RE = re.compile(r"default version\s*:\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class Distribution:
    name: str
    state: str
    version: Optional[int]
    is_default: bool


def _clean(text: str) -> str:
    return text.replace("\x00", "").replace("\ufeff", "")


def parse_distribution_table(text: str) -> List[Distribution]:
    """Parse `wsl --list --verbose` output.

    The first non-empty line is the NAME/STATE/VERSION header; the default
    distribution is prefixed with '*'.
    """

    lines = [ln.rstrip() for ln in _clean(text).splitlines() if ln.strip()]
    if not lines or "NAME" not in lines[0].upper():
        return []

    out: List[Distribution] = []
    for ln in lines[1:]:
        stripped = ln.strip()
        is_default = stripped.startswith("*")
        if is_default:
            stripped = stripped[1:].strip()
        parts = stripped.split()
        if not parts:
            continue
        version: Optional[int] = None
        if len(parts) >= 3 and parts[-1].isdigit():
            version = int(parts[-1])
            state = parts[-2]
            name = " ".join(parts[:-2])
        elif len(parts) >= 2:
            state = parts[-1]
            name = " ".join(parts[:-1])
        else:
            state = ""
            name = parts[0]
        out.append(Distribution(name=name, state=state, version=version, is_default=is_default))
    return out


def status(*, timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S) -> InstallationState:
    return classify([WSL, "--status"], env=WSL_ENV, timeout_s=timeout_s)


def default_version(*, timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S) -> Optional[int]:
    r = query([WSL, "--status"], env=WSL_ENV, timeout_s=timeout_s)
    if r is None or r.returncode != 0:
        return None
    m = _DEFAULT_VERSION_RE.search(_clean(r.stdout))
    return int(m.group(1)) if m else None


def list_distributions(*, timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S) -> List[Distribution]:
    """Installed distributions; empty when wsl reports none.

    Raises ProbeError when wsl.exe cannot be run.
    """

    r = query([WSL, "--list", "--verbose"], env=WSL_ENV, timeout_s=timeout_s)
    if r is None:
        raise ProbeError("wsl.exe is not available")
    if r.returncode != 0:
        return []
    return parse_distribution_table(r.stdout)


def _find(name: str) -> Optional[Distribution]:
    for d in list_distributions():
        if d.name.lower() == name.lower():
            return d
    return None


def probe_distribution(name: str) -> InstallationState:
    try:
        return InstallationState.PRESENT if _find(name) else InstallationState.ABSENT
    except ProbeError:
        return InstallationState.UNKNOWN


def probe_default_distribution(name: str) -> InstallationState:
    try:
        d = _find(name)
    except ProbeError:
        return InstallationState.UNKNOWN
    return InstallationState.PRESENT if d is not None and d.is_default else InstallationState.ABSENT


def probe_default_version(version: int) -> InstallationState:
    current = default_version()
    if current is None:
        return InstallationState.UNKNOWN
    return InstallationState.PRESENT if current == version else InstallationState.ABSENT


def install(flags: Sequence[str] = (), *, dry_run: bool = False, timeout_s: Optional[float] = None) -> None:
    run_cmd([WSL, "--install", *flags], env=WSL_ENV, dry_run=dry_run, timeout_s=timeout_s)


def set_default_version(version: int, *, dry_run: bool = False, timeout_s: Optional[float] = None) -> None:
    run_cmd([WSL, "--set-default-version", str(version)], env=WSL_ENV, dry_run=dry_run, timeout_s=timeout_s)


def install_distribution(name: str, *, dry_run: bool = False, timeout_s: Optional[float] = None) -> None:
    run_cmd(
        [WSL, "--install", "--distribution", name, "--no-launch"],
        env=WSL_ENV,
        dry_run=dry_run,
        timeout_s=timeout_s,
    )


def set_default_distribution(name: str, *, dry_run: bool = False, timeout_s: Optional[float] = None) -> None:
    run_cmd([WSL, "--set-default", name], env=WSL_ENV, dry_run=dry_run, timeout_s=timeout_s)
