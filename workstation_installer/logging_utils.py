from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional


def default_log_path() -> str:
    base = os.environ.get("LOCALAPPDATA") or str(Path.home() / ".local" / "state")
    return str(Path(base) / "workstation-installer" / "installer.log")


DEFAULT_LOG_PATH = default_log_path()


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Configure logging.

    Every command and decision goes to the log file. If the requested
    location is not writable, a file in the working directory is used
    instead.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_workstation_configured", False):
        return getattr(logger, "_workstation_log_path", log_path)

    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler: Optional[logging.Handler] = None
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        chosen_path = log_path
    except OSError:
        chosen_path = str(Path.cwd() / "workstation-installer.log")
        file_handler = logging.FileHandler(chosen_path, encoding="utf-8")
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if also_console:
        console = logging.StreamHandler()
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_workstation_configured", True)
    setattr(logger, "_workstation_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
