from __future__ import annotations

import logging
from typing import Optional

from ..lib import wsl
from ..lib.probe import InstallationState
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class InstallWslStep:
    step_id = "install_wsl"
    label = "Install the Windows Subsystem for Linux"
    critical = False

    def probe(self, ctx: InstallContext) -> InstallationState:
        return wsl.status(timeout_s=ctx.config.probe_timeout_s)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        wsl.install(ctx.config.wsl_install_flags, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)
        # wsl --install registers components that only load after a restart.
        return ActionResult(reboot_required=True)


class SetWslDefaultVersionStep:
    step_id = "wsl_default_version"
    label = "Set the default WSL version"
    critical = False

    def probe(self, ctx: InstallContext) -> InstallationState:
        return wsl.probe_default_version(ctx.config.wsl_default_version)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        version = ctx.config.wsl_default_version
        wsl.set_default_version(version, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)
        logger.info("WSL default version set to %d", version)
        return None
