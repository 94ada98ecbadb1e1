from __future__ import annotations

import logging
from typing import Optional

from ..errors import PrerequisiteMissing
from ..lib.privilege import is_elevated
from ..pipeline import ActionResult, InstallContext

logger = logging.getLogger(__name__)


class CheckElevationStep:
    step_id = "check_elevation"
    label = "Check for administrator rights"
    critical = True

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        if is_elevated():
            return None
        if ctx.dry_run:
            logger.warning("Not elevated; continuing because this is a dry run")
            return ActionResult(detail="not elevated (dry run)")
        raise PrerequisiteMissing("The installer must run from an elevated (Administrator) shell")
