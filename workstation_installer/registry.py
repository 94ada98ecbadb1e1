from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from .config import InstallerConfig
from .pipeline import Step
from .steps import (
    ApplyColorSchemeStep,
    CheckElevationStep,
    CheckNetworkStep,
    EnableFeatureStep,
    InstallDistributionStep,
    InstallPackageStep,
    InstallWslStep,
    SetDefaultDistributionStep,
    SetWslDefaultVersionStep,
)


class StepId(str, Enum):
    """Selectable steps, in the order "install everything" runs them."""

    CHECK_ELEVATION = "check_elevation"
    CHECK_NETWORK = "check_network"
    ENABLE_FEATURES = "enable_features"
    INSTALL_WSL = "install_wsl"
    WSL_DEFAULT_VERSION = "wsl_default_version"
    INSTALL_DISTRIBUTION = "install_distribution"
    DEFAULT_DISTRIBUTION = "default_distribution"
    INSTALL_PACKAGES = "install_packages"
    APPLY_COLOR_SCHEME = "apply_color_scheme"


StepFactory = Callable[[InstallerConfig], List[Step]]

STEP_FACTORIES: Dict[StepId, StepFactory] = {
    StepId.CHECK_ELEVATION: lambda cfg: [CheckElevationStep()],
    StepId.CHECK_NETWORK: lambda cfg: [CheckNetworkStep()],
    StepId.ENABLE_FEATURES: lambda cfg: [EnableFeatureStep(f) for f in cfg.optional_features],
    StepId.INSTALL_WSL: lambda cfg: [InstallWslStep()],
    StepId.WSL_DEFAULT_VERSION: lambda cfg: [SetWslDefaultVersionStep()],
    StepId.INSTALL_DISTRIBUTION: lambda cfg: [InstallDistributionStep()],
    StepId.DEFAULT_DISTRIBUTION: lambda cfg: [SetDefaultDistributionStep()],
    StepId.INSTALL_PACKAGES: lambda cfg: [InstallPackageStep(p) for p in cfg.packages],
    StepId.APPLY_COLOR_SCHEME: lambda cfg: [ApplyColorSchemeStep()],
}

_missing = set(StepId) - set(STEP_FACTORIES)
if _missing:  # pragma: no cover
    raise RuntimeError(f"No step factory for: {sorted(s.value for s in _missing)}")

STEP_LABELS: Dict[StepId, str] = {
    StepId.CHECK_ELEVATION: "Check for administrator rights",
    StepId.CHECK_NETWORK: "Check network connectivity",
    StepId.ENABLE_FEATURES: "Enable WSL optional features",
    StepId.INSTALL_WSL: "Install WSL",
    StepId.WSL_DEFAULT_VERSION: "Set the default WSL version",
    StepId.INSTALL_DISTRIBUTION: "Install the Linux distribution",
    StepId.DEFAULT_DISTRIBUTION: "Make the distribution the default",
    StepId.INSTALL_PACKAGES: "Install developer tools with winget",
    StepId.APPLY_COLOR_SCHEME: "Apply the terminal color scheme",
}

# Always run first when any step is selected.
PREREQUISITES = (StepId.CHECK_ELEVATION,)


def parse_step_ids(values: Iterable[str]) -> List[StepId]:
    out: List[StepId] = []
    for v in values:
        try:
            out.append(StepId(v))
        except ValueError:
            valid = ", ".join(s.value for s in StepId)
            raise ValueError(f"Unknown step {v!r} (valid: {valid})") from None
    return out


def build_steps(cfg: InstallerConfig, selected: Optional[Iterable[StepId]] = None) -> List[Step]:
    """Expand step ids into concrete steps in declared order.

    selected=None means everything. Prerequisite checks are always kept.
    """

    wanted = set(StepId) if selected is None else set(selected) | set(PREREQUISITES)
    steps: List[Step] = []
    for step_id in StepId:
        if step_id in wanted:
            steps.extend(STEP_FACTORIES[step_id](cfg))
    return steps
