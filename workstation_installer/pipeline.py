from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .config import InstallerConfig
from .errors import InstallerError
from .lib.probe import InstallationState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallContext:
    config: InstallerConfig
    dry_run: bool = False
    # Asked when the network check fails; True continues offline.
    confirm_offline: Optional[Callable[[], bool]] = None


@dataclass(frozen=True)
class ActionResult:
    reboot_required: bool = False
    detail: str = ""


class Step(Protocol):
    """A single idempotent step.

    Steps may also define ``probe(ctx) -> InstallationState``; when it
    reports PRESENT the action is not invoked.
    """

    step_id: str
    label: str
    critical: bool

    def run(self, ctx: InstallContext) -> Optional[ActionResult]:
        ...


class StepStatus(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PipelinePhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"
    DONE = "done"


@dataclass(frozen=True)
class StepError:
    step_id: str
    cause: str


@dataclass(frozen=True)
class StepResult:
    step_id: str
    label: str
    status: StepStatus
    elapsed_s: float = 0.0
    error: Optional[StepError] = None
    reboot_required: bool = False
    detail: str = ""

    @property
    def already_satisfied(self) -> bool:
        return self.status is StepStatus.SKIPPED


@dataclass
class RunReport:
    results: List[StepResult] = field(default_factory=list)
    phase: PipelinePhase = PipelinePhase.IDLE
    current_step: Optional[str] = None
    elapsed_s: float = 0.0
    dry_run: bool = False
    log_path: Optional[str] = None

    def _ids(self, status: StepStatus) -> List[str]:
        return [r.step_id for r in self.results if r.status is status]

    @property
    def succeeded(self) -> List[str]:
        return self._ids(StepStatus.SUCCEEDED)

    @property
    def skipped(self) -> List[str]:
        return self._ids(StepStatus.SKIPPED)

    @property
    def failed(self) -> List[str]:
        return self._ids(StepStatus.FAILED)

    @property
    def cancelled(self) -> List[str]:
        return self._ids(StepStatus.CANCELLED)

    @property
    def reboot_required(self) -> bool:
        return any(r.reboot_required for r in self.results)

    @property
    def aborted(self) -> bool:
        return self.phase is PipelinePhase.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "dry_run": self.dry_run,
            "log_path": self.log_path,
            "elapsed_s": round(self.elapsed_s, 3),
            "elapsed": format_elapsed(self.elapsed_s),
            "reboot_required": self.reboot_required,
            "summary": {
                "succeeded": self.succeeded,
                "skipped": self.skipped,
                "failed": self.failed,
                "cancelled": self.cancelled,
            },
            "steps": [
                {
                    "step_id": r.step_id,
                    "label": r.label,
                    "status": r.status.value,
                    "elapsed_s": round(r.elapsed_s, 3),
                    "error": r.error.cause if r.error else None,
                    "reboot_required": r.reboot_required,
                    "detail": r.detail,
                }
                for r in self.results
            ],
        }


def format_elapsed(seconds: float) -> str:
    total = int(round(seconds))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def _probe(step: Step, ctx: InstallContext) -> InstallationState:
    probe = getattr(step, "probe", None)
    if probe is None:
        return InstallationState.UNKNOWN
    try:
        state = probe(ctx)
    except InstallerError as e:
        logger.warning("Probe for %s failed, treating as unknown: %s", step.step_id, e)
        return InstallationState.UNKNOWN
    except Exception:
        logger.exception("Probe for %s raised unexpectedly, treating as unknown", step.step_id)
        return InstallationState.UNKNOWN
    logger.info("Probe %s -> %s", step.step_id, state.value)
    return state


def run_step(step: Step, ctx: InstallContext) -> StepResult:
    """Run one step, converting every failure into a FAILED result."""

    label = getattr(step, "label", step.step_id)
    started = time.monotonic()

    if _probe(step, ctx) is InstallationState.PRESENT:
        logger.info("Skipping step %s (already satisfied)", step.step_id)
        return StepResult(
            step_id=step.step_id,
            label=label,
            status=StepStatus.SKIPPED,
            elapsed_s=time.monotonic() - started,
            detail="already satisfied",
        )

    logger.info("Running step %s: %s", step.step_id, label)
    try:
        outcome = step.run(ctx) or ActionResult()
    except InstallerError as e:
        logger.error("Step %s failed: %s", step.step_id, e)
        error = StepError(step_id=step.step_id, cause=str(e))
    except Exception as e:
        logger.exception("Step %s raised unexpectedly", step.step_id)
        error = StepError(step_id=step.step_id, cause=f"{type(e).__name__}: {e}")
    else:
        return StepResult(
            step_id=step.step_id,
            label=label,
            status=StepStatus.SUCCEEDED,
            elapsed_s=time.monotonic() - started,
            reboot_required=outcome.reboot_required,
            detail=outcome.detail,
        )

    return StepResult(
        step_id=step.step_id,
        label=label,
        status=StepStatus.FAILED,
        elapsed_s=time.monotonic() - started,
        error=error,
    )


def run_pipeline(
    steps: Sequence[Step],
    ctx: InstallContext,
    *,
    should_continue: Optional[Callable[[Step], bool]] = None,
) -> RunReport:
    """Run steps in declared order.

    Non-critical failures are recorded and the run goes on; a critical
    failure stops it. should_continue is consulted before each step and
    returning False cancels the rest. Completed steps are never rolled back.
    """

    report = RunReport(phase=PipelinePhase.RUNNING, dry_run=ctx.dry_run)
    started = time.monotonic()

    for i, step in enumerate(steps):
        if should_continue is not None and not should_continue(step):
            logger.info("Run cancelled before %s", step.step_id)
            report.results.extend(
                StepResult(
                    step_id=s.step_id,
                    label=getattr(s, "label", s.step_id),
                    status=StepStatus.CANCELLED,
                )
                for s in steps[i:]
            )
            break

        report.current_step = step.step_id
        result = run_step(step, ctx)
        report.results.append(result)

        if result.status is StepStatus.FAILED and getattr(step, "critical", False):
            logger.error("Critical step %s failed; stopping", step.step_id)
            report.phase = PipelinePhase.FAILED
            break

    if report.phase is PipelinePhase.RUNNING:
        report.phase = PipelinePhase.DONE
    report.current_step = None
    report.elapsed_s = time.monotonic() - started

    logger.info(
        "Finished in %s: %d succeeded, %d already satisfied, %d failed",
        format_elapsed(report.elapsed_s),
        len(report.succeeded),
        len(report.skipped),
        len(report.failed),
    )
    return report
