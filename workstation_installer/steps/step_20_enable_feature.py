from __future__ import annotations

import logging
from typing import Optional

from ..lib.features import get_feature_state, set_feature_state
from ..lib.probe import InstallationState
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class EnableFeatureStep:
    critical = False

    def __init__(self, feature: str) -> None:
        self.feature = feature
        self.step_id = f"enable_feature:{feature}"
        self.label = f"Enable Windows feature {feature}"

    def probe(self, ctx: InstallContext) -> InstallationState:
        return get_feature_state(self.feature, timeout_s=ctx.config.probe_timeout_s)

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        reboot = set_feature_state(
            self.feature,
            True,
            dry_run=ctx.dry_run,
            timeout_s=ctx.config.command_timeout_s,
        )
        return ActionResult(reboot_required=reboot)
