from __future__ import annotations

from typing import Sequence


class InstallerError(Exception):
    """Base class for every error raised by the installer."""


class PrerequisiteMissing(InstallerError):
    """A mandatory prerequisite is absent; the run must stop."""


class ProbeError(InstallerError):
    """A read-only status query failed. Callers downgrade it to ``unknown``."""


class StepExecutionError(InstallerError):
    """An action failed. Reported, the remaining steps still run."""


class CommandError(StepExecutionError):
    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip()
        msg = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if detail:
            msg += f"\n{detail}"
        super().__init__(msg)


class CommandTimeout(StepExecutionError):
    def __init__(self, argv: Sequence[str], timeout_s: float) -> None:
        self.argv = list(argv)
        self.timeout_s = timeout_s
        super().__init__(f"Command timed out after {timeout_s:g}s: {' '.join(self.argv)}")


class ConfigError(InstallerError):
    """The terminal settings document cannot be merged safely."""


class ConfigParseError(ConfigError):
    pass


class ConfigDepthError(ConfigError):
    pass


class ConfigurationError(InstallerError):
    """The installer's own YAML configuration is invalid."""


class NetworkUnavailable(InstallerError):
    pass
