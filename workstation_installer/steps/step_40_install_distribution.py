from __future__ import annotations

import logging
from typing import Optional

from ..lib import wsl
from ..lib.probe import InstallationState
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class InstallDistributionStep:
    step_id = "install_distribution"
    label = "Install the WSL Linux distribution"
    critical = False

    def probe(self, ctx: InstallContext) -> InstallationState:
        return wsl.probe_distribution(ctx.config.wsl_distribution)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        name = ctx.config.wsl_distribution
        wsl.install_distribution(name, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)
        return ActionResult(detail=f"installed {name}; launch it once to create the Linux user")


class SetDefaultDistributionStep:
    step_id = "default_distribution"
    label = "Make the distribution the WSL default"
    critical = False

    def probe(self, ctx: InstallContext) -> InstallationState:
        return wsl.probe_default_distribution(ctx.config.wsl_distribution)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        wsl.set_default_distribution(
            ctx.config.wsl_distribution,
            dry_run=ctx.dry_run,
            timeout_s=ctx.config.command_timeout_s,
        )
        return None
