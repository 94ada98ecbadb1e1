from __future__ import annotations

import copy
import json
from datetime import datetime
from pathlib import Path

import pytest

from workstation_installer import terminal_settings
from workstation_installer.errors import ConfigDepthError, ConfigError, ConfigParseError
from workstation_installer.lib.probe import InstallationState
from workstation_installer.terminal_settings import (
    ACTIVE_SCHEME_KEY,
    MAX_DOCUMENT_DEPTH,
    ColorScheme,
    MergeOutcome,
    apply_color_scheme,
    backup_file,
    document_depth,
    marker_selector,
    merge_color_scheme,
    scheme_applied,
)

COOLNIGHT = ColorScheme(name="coolnight", colors={"background": "#010C18", "foreground": "#ECDEF4"})
WSL_SELECTOR = marker_selector("wsl")


def _document() -> dict:
    return {
        "$schema": "https://aka.ms/terminal-profiles-schema",
        "defaultProfile": "{61c54bbd-c2c6-5271-96e7-009a87ff44bf}",
        "actions": [{"command": {"action": "copy"}, "keys": "ctrl+c"}],
        "profiles": {
            "defaults": {"font": {"face": "CaskaydiaCove Nerd Font"}},
            "list": [
                {"name": "Windows PowerShell", "commandline": "powershell.exe"},
                {"name": "Ubuntu-22.04", "source": "Windows.Terminal.Wsl"},
                {"name": "Ubuntu", "commandline": "wsl.exe -d Ubuntu", "colorScheme": "Campbell"},
            ],
        },
        "schemes": [{"name": "Campbell", "background": "#0C0C0C"}],
    }


def _write(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_scenario_commandline_marker():
    doc = {"profiles": {"list": [{"name": "Ubuntu-22.04", "commandline": "wsl.exe -d Ubuntu"}]}}
    scheme = ColorScheme.from_mapping({"name": "coolnight", "background": "#010C18"})

    out = merge_color_scheme(doc, scheme, WSL_SELECTOR)

    assert out["schemes"] == [{"name": "coolnight", "background": "#010C18"}]
    assert out["profiles"]["list"][0][ACTIVE_SCHEME_KEY] == "coolnight"


def test_merge_twice_keeps_single_scheme_entry():
    once = merge_color_scheme(_document(), COOLNIGHT, WSL_SELECTOR)
    twice = merge_color_scheme(once, COOLNIGHT, WSL_SELECTOR)

    assert [s["name"] for s in twice["schemes"]].count("coolnight") == 1
    assert twice == once


def test_selected_profiles_updated_and_others_untouched():
    before = _document()
    out = merge_color_scheme(before, COOLNIGHT, marker_selector("Windows.Terminal.Wsl", "wsl"))

    powershell, ubuntu_source, ubuntu_cmd = out["profiles"]["list"]
    assert powershell == before["profiles"]["list"][0]
    assert ubuntu_source[ACTIVE_SCHEME_KEY] == "coolnight"
    assert ubuntu_cmd[ACTIVE_SCHEME_KEY] == "coolnight"


def test_marker_match_is_case_sensitive():
    doc = {"profiles": {"list": [{"name": "WSL Shell"}]}}
    out = merge_color_scheme(doc, COOLNIGHT, WSL_SELECTOR)
    assert ACTIVE_SCHEME_KEY not in out["profiles"]["list"][0]


def test_unrelated_keys_preserved_and_input_not_mutated():
    before = _document()
    snapshot = copy.deepcopy(before)

    out = merge_color_scheme(before, COOLNIGHT, WSL_SELECTOR)

    assert before == snapshot
    for key in ("$schema", "defaultProfile", "actions"):
        assert out[key] == snapshot[key]
    assert out["profiles"]["defaults"] == snapshot["profiles"]["defaults"]
    assert list(out) == list(snapshot)


def test_existing_scheme_is_not_refreshed():
    doc = {"schemes": [{"name": "coolnight", "background": "#FFFFFF"}]}
    out = merge_color_scheme(doc, COOLNIGHT, WSL_SELECTOR)
    assert out["schemes"] == [{"name": "coolnight", "background": "#FFFFFF"}]


def test_null_schemes_and_legacy_profile_list():
    doc = {"schemes": None, "profiles": [{"name": "Debian", "source": "Windows.Terminal.Wsl"}]}
    out = merge_color_scheme(doc, COOLNIGHT, marker_selector("Windows.Terminal.Wsl"))
    assert out["schemes"][0]["name"] == "coolnight"
    assert out["profiles"][0][ACTIVE_SCHEME_KEY] == "coolnight"


def test_schemes_of_wrong_type_rejected():
    with pytest.raises(ConfigParseError):
        merge_color_scheme({"schemes": {"name": "x"}}, COOLNIGHT, WSL_SELECTOR)


def test_apply_writes_backup_and_is_idempotent(settings_path: Path):
    _write(settings_path, _document())

    assert apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR) is MergeOutcome.APPLIED
    written = json.loads(settings_path.read_text(encoding="utf-8"))
    assert written["schemes"][-1]["name"] == "coolnight"

    backups = list(settings_path.parent.glob("settings.json.backup.*"))
    assert len(backups) == 1
    assert json.loads(backups[0].read_text(encoding="utf-8")) == _document()

    assert apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR) is MergeOutcome.UNCHANGED
    assert json.loads(settings_path.read_text(encoding="utf-8")) == written
    assert len(list(settings_path.parent.glob("settings.json.backup.*"))) == 1


def test_apply_missing_file_delegates_to_fallback(settings_path: Path):
    calls = []

    outcome = apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR, on_missing=lambda: calls.append(1))

    assert outcome is MergeOutcome.HOST_MISSING
    assert calls == [1]
    assert not settings_path.exists()


def test_apply_malformed_json_leaves_file_untouched(settings_path: Path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text('{"profiles": {"list": [', encoding="utf-8")

    with pytest.raises(ConfigParseError):
        apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR)

    assert settings_path.read_text(encoding="utf-8") == '{"profiles": {"list": ['
    backups = list(settings_path.parent.glob("settings.json.backup.*"))
    assert [b.read_text(encoding="utf-8") for b in backups] == ['{"profiles": {"list": [']


def test_apply_too_deep_document_is_fatal(settings_path: Path):
    deep: dict = {}
    node = deep
    for _ in range(MAX_DOCUMENT_DEPTH + 5):
        node["x"] = {}
        node = node["x"]
    _write(settings_path, {"nested": deep})
    original = settings_path.read_text(encoding="utf-8")

    with pytest.raises(ConfigDepthError):
        apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR)

    assert settings_path.read_text(encoding="utf-8") == original


def test_apply_beyond_parser_recursion_limit_is_depth_error(settings_path: Path):
    settings_path.parent.mkdir(parents=True)
    original = "[" * 5000 + "]" * 5000
    settings_path.write_text(original, encoding="utf-8")

    with pytest.raises(ConfigDepthError):
        apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR)

    assert settings_path.read_text(encoding="utf-8") == original
    assert scheme_applied(settings_path, COOLNIGHT, WSL_SELECTOR) is InstallationState.UNKNOWN


def test_write_failure_keeps_original_and_backup(settings_path: Path, monkeypatch: pytest.MonkeyPatch):
    _write(settings_path, _document())
    original = settings_path.read_bytes()

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(terminal_settings.os, "replace", fail_replace)

    with pytest.raises(ConfigError, match="disk full"):
        apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR)

    assert settings_path.read_bytes() == original
    backups = list(settings_path.parent.glob("settings.json.backup.*"))
    assert len(backups) == 1
    assert backups[0].read_bytes() == original
    assert not list(settings_path.parent.glob(".settings.json.*.tmp"))


def test_apply_dry_run_does_not_write(settings_path: Path):
    _write(settings_path, _document())
    original = settings_path.read_text(encoding="utf-8")

    assert apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR, dry_run=True) is MergeOutcome.APPLIED

    assert settings_path.read_text(encoding="utf-8") == original
    assert not list(settings_path.parent.glob("settings.json.backup.*"))


def test_scheme_applied_probe(settings_path: Path):
    assert scheme_applied(settings_path, COOLNIGHT, WSL_SELECTOR) is InstallationState.ABSENT

    _write(settings_path, _document())
    assert scheme_applied(settings_path, COOLNIGHT, WSL_SELECTOR) is InstallationState.ABSENT

    apply_color_scheme(settings_path, COOLNIGHT, WSL_SELECTOR)
    assert scheme_applied(settings_path, COOLNIGHT, WSL_SELECTOR) is InstallationState.PRESENT

    settings_path.write_text("not json", encoding="utf-8")
    assert scheme_applied(settings_path, COOLNIGHT, WSL_SELECTOR) is InstallationState.UNKNOWN


def test_backup_names_do_not_collide(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text("{}", encoding="utf-8")
    now = datetime(2024, 5, 1, 12, 30, 0)

    first = backup_file(path, now=now)
    second = backup_file(path, now=now)

    assert first.name == "settings.json.backup.20240501-123000"
    assert second.name == "settings.json.backup.20240501-123000-1"


def test_document_depth():
    assert document_depth(1) == 0
    assert document_depth({}) == 1
    assert document_depth({"a": [{"b": 1}]}) == 3


def test_color_scheme_requires_name():
    with pytest.raises(ValueError):
        ColorScheme.from_mapping({"background": "#000000"})
