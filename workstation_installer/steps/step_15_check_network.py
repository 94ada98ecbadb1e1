from __future__ import annotations

import logging
from typing import Optional

from ..errors import NetworkUnavailable, PrerequisiteMissing
from ..lib.net import is_online
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class CheckNetworkStep:
    step_id = "check_network"
    label = "Check network connectivity"
    critical = True

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        host = ctx.config.ping_host
        if is_online(host, dry_run=ctx.dry_run):
            return None

        warning = NetworkUnavailable(f"No response from {host}; downloads will likely fail")
        logger.warning("%s", warning)

        if ctx.config.allow_offline:
            return ActionResult(detail="offline (allowed by config)")
        if ctx.confirm_offline is not None and ctx.confirm_offline():
            return ActionResult(detail="offline (confirmed)")
        raise PrerequisiteMissing("Network unavailable and continuing offline was declined") from warning
