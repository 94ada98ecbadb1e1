from __future__ import annotations

import logging
from typing import Optional

from .command import run_cmd
from .probe import DEFAULT_PROBE_TIMEOUT_S, InstallationState, classify

logger = logging.getLogger(__name__)

WINGET = "winget"


def probe_package(package_id: str, *, timeout_s: Optional[float] = DEFAULT_PROBE_TIMEOUT_S) -> InstallationState:
    """Return whether winget reports the package as installed.

    `winget list` exits non-zero when nothing matches; the id is also
    checked in the output because some winget builds exit 0 with
    "No installed package found".
    """

    return classify(
        [WINGET, "list", "--id", package_id, "--exact", "--accept-source-agreements", "--disable-interactivity"],
        lambda r: r.returncode == 0 and package_id.lower() in r.stdout.lower(),
        timeout_s=timeout_s,
    )


def install_package(
    package_id: str,
    *,
    silent: bool = True,
    accept_agreements: bool = True,
    dry_run: bool = False,
    timeout_s: Optional[float] = None,
) -> None:
    argv = [WINGET, "install", "--id", package_id, "--exact", "--source", "winget"]
    if silent:
        argv.append("--silent")
    if accept_agreements:
        argv += ["--accept-package-agreements", "--accept-source-agreements"]
    run_cmd(argv, dry_run=dry_run, timeout_s=timeout_s)
    logger.info("Installed package %s", package_id)
