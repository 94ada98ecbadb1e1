from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional, Sequence

from .config import load_config
from .errors import ConfigurationError
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import InstallContext, RunReport, format_elapsed, run_pipeline
from .registry import STEP_LABELS, StepId, build_steps, parse_step_ids
from .report_store import save_report

logger = logging.getLogger(__name__)


def run(
    *,
    config_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    report_path: Optional[str] = None,
    steps: Optional[Sequence[StepId]] = None,
    dry_run: bool = False,
    allow_offline: bool = False,
    confirm_offline: Optional[Callable[[], bool]] = None,
) -> RunReport:
    """Run the selected steps (all of them by default) and return the report."""

    actual_log_path = configure_logging(log_path=log_path)

    cfg = load_config(config_path)
    if allow_offline:
        cfg = cfg.with_overrides(allow_offline=True)

    ctx = InstallContext(config=cfg, dry_run=dry_run, confirm_offline=confirm_offline)
    logger.info("Run started (dry_run=%s, config=%s)", dry_run, config_path or "built-in defaults")
    report = run_pipeline(build_steps(cfg, steps), ctx)
    report.log_path = actual_log_path

    for r in report.results:
        if r.error is not None:
            logger.error("%s: %s", r.label, r.error.cause)
    if report.reboot_required:
        logger.warning("A restart is required to finish the installation")
    logger.info("Total time %s", format_elapsed(report.elapsed_s))

    if report_path:
        save_report(report_path, report)
    return report


def _print_steps() -> None:
    for step_id in StepId:
        print(f"{step_id.value:<22} {STEP_LABELS[step_id]}")


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="workstation-installer")
    p.add_argument("--config", default=None, help="YAML file merged over the built-in defaults")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to installer log")
    p.add_argument("--report", default=None, help="Write the run report here (json|yaml)")
    p.add_argument(
        "--step",
        action="append",
        default=None,
        metavar="STEP_ID",
        help="Run only this step (repeatable); default runs everything",
    )
    p.add_argument("--list-steps", action="store_true", help="List step ids and exit")
    p.add_argument("--dry-run", action="store_true", help="Log actions without executing them")
    p.add_argument(
        "--allow-offline",
        action="store_true",
        help="Continue when the network check fails; the CLI never prompts, so this is the only way to run offline",
    )

    args = p.parse_args(argv)

    if args.list_steps:
        _print_steps()
        return 0

    selected: Optional[List[StepId]] = None
    if args.step:
        try:
            selected = parse_step_ids(args.step)
        except ValueError as e:
            p.error(str(e))

    try:
        report = run(
            config_path=args.config,
            log_path=args.log,
            report_path=args.report,
            steps=selected,
            dry_run=bool(args.dry_run),
            allow_offline=bool(args.allow_offline),
        )
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    return 1 if report.aborted else 0
