from __future__ import annotations

import logging
from typing import Optional

from ..lib import winget
from ..lib.probe import InstallationState
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class InstallPackageStep:
    critical = False

    def __init__(self, package_id: str) -> None:
        self.package_id = package_id
        self.step_id = f"install_package:{package_id}"
        self.label = f"Install {package_id} with winget"

    def probe(self, ctx: InstallContext) -> InstallationState:
        return winget.probe_package(self.package_id, timeout_s=ctx.config.probe_timeout_s)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        winget.install_package(self.package_id, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)
        return None
