from __future__ import annotations

import logging
from typing import Optional

from ..lib import winget
from ..lib.probe import InstallationState
from ..pipeline import ActionResult, InstallContext
from ..terminal_settings import (
    ColorScheme,
    MergeOutcome,
    ProfileSelector,
    apply_color_scheme,
    marker_selector,
    scheme_applied,
)

logger = logging.getLogger(__name__)


class ApplyColorSchemeStep:
    step_id = "apply_color_scheme"
    label = "Apply the terminal color scheme to WSL profiles"
    critical = False

    def _scheme(self, ctx: InstallContext) -> ColorScheme:
        return ColorScheme.from_mapping(ctx.config.color_scheme)

    def _selector(self, ctx: InstallContext) -> ProfileSelector:
        return marker_selector(*ctx.config.profile_markers)

    def probe(self, ctx: InstallContext) -> InstallationState:
        return scheme_applied(ctx.config.settings_path, self._scheme(ctx), self._selector(ctx))

    def _install_host(self, ctx: InstallContext) -> None:
        host = ctx.config.terminal_host_package
        if winget.probe_package(host, timeout_s=ctx.config.probe_timeout_s) is InstallationState.PRESENT:
            logger.info("%s is installed but has not written its settings yet", host)
            return
        winget.install_package(host, dry_run=ctx.dry_run, timeout_s=ctx.config.command_timeout_s)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        outcome = apply_color_scheme(
            ctx.config.settings_path,
            self._scheme(ctx),
            self._selector(ctx),
            on_missing=lambda: self._install_host(ctx),
            dry_run=ctx.dry_run,
        )
        if outcome is MergeOutcome.HOST_MISSING:
            return ActionResult(detail="settings file missing; start Windows Terminal once and re-run this step")
        return ActionResult(detail=outcome.value)
