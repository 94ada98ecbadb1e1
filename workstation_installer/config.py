from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "manifests" / "default.yaml"

WINDOWS_TERMINAL_SETTINGS = (
    Path("Packages") / "Microsoft.WindowsTerminal_8wekyb3d8bbwe" / "LocalState" / "settings.json"
)


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping/object")
    return raw


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def _optional_float(value: Any, key: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number or null, got {value!r}") from e


def _str_list(value: Any, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list")
    return [str(v).strip() for v in value if str(v).strip()]


def default_settings_path() -> Path:
    local = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    return Path(local) / WINDOWS_TERMINAL_SETTINGS


@dataclass(frozen=True)
class InstallerConfig:
    raw: Dict[str, Any]

    def _section(self, key: str) -> Dict[str, Any]:
        section = self.raw.get(key) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"{key} must be a mapping")
        return section

    @property
    def command_timeout_s(self) -> Optional[float]:
        return _optional_float(self.raw.get("command_timeout_s"), "command_timeout_s")

    @property
    def probe_timeout_s(self) -> Optional[float]:
        return _optional_float(self.raw.get("probe_timeout_s"), "probe_timeout_s")

    @property
    def allow_offline(self) -> bool:
        return bool(self.raw.get("allow_offline", False))

    @property
    def ping_host(self) -> str:
        return str(self.raw.get("ping_host") or "1.1.1.1")

    @property
    def optional_features(self) -> List[str]:
        return _str_list(self.raw.get("optional_features"), "optional_features")

    @property
    def packages(self) -> List[str]:
        return _str_list(self.raw.get("packages"), "packages")

    @property
    def wsl_install_flags(self) -> List[str]:
        return _str_list(self._section("wsl").get("install_flags"), "wsl.install_flags")

    @property
    def wsl_default_version(self) -> int:
        value = self._section("wsl").get("default_version", 2)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"wsl.default_version must be an integer, got {value!r}") from e

    @property
    def wsl_distribution(self) -> str:
        return str(self._section("wsl").get("distribution") or "Ubuntu")

    @property
    def settings_path(self) -> Path:
        configured = self._section("terminal").get("settings_path")
        if configured:
            return Path(os.path.expandvars(str(configured))).expanduser()
        return default_settings_path()

    @property
    def terminal_host_package(self) -> str:
        return str(self._section("terminal").get("host_package") or "Microsoft.WindowsTerminal")

    @property
    def profile_markers(self) -> List[str]:
        return _str_list(self._section("terminal").get("profile_markers"), "terminal.profile_markers")

    @property
    def color_scheme(self) -> Dict[str, Any]:
        scheme = self._section("terminal").get("color_scheme") or {}
        if not isinstance(scheme, dict) or not scheme.get("name"):
            raise ConfigurationError("terminal.color_scheme must be a mapping with a name")
        return dict(scheme)

    def with_overrides(self, **overrides: Any) -> "InstallerConfig":
        return InstallerConfig(raw=_deep_merge(self.raw, overrides))


def load_config(path: Optional[str] = None) -> InstallerConfig:
    """Load the packaged defaults, merged with an optional user YAML file."""

    raw = _read_yaml(DEFAULT_CONFIG_PATH)
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)
        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigurationError("installer config must be YAML")
        raw = _deep_merge(raw, _read_yaml(p))
    return InstallerConfig(raw=raw)
