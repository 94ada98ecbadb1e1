from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .pipeline import RunReport

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def save_report(path: str, report: RunReport) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    data = report.to_dict()
    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", p)
