from .step_10_check_elevation import CheckElevationStep
from .step_15_check_network import CheckNetworkStep
from .step_20_enable_feature import EnableFeatureStep
from .step_30_install_wsl import InstallWslStep, SetWslDefaultVersionStep
from .step_40_install_distribution import InstallDistributionStep, SetDefaultDistributionStep
from .step_60_install_package import InstallPackageStep
from .step_70_apply_color_scheme import ApplyColorSchemeStep

__all__ = [
    "CheckElevationStep",
    "CheckNetworkStep",
    "EnableFeatureStep",
    "InstallWslStep",
    "SetWslDefaultVersionStep",
    "InstallDistributionStep",
    "SetDefaultDistributionStep",
    "InstallPackageStep",
    "ApplyColorSchemeStep",
]
