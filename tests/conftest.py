"""Shared fixtures: a scripted stand-in for external commands."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

import pytest

from workstation_installer.config import load_config
from workstation_installer.errors import CommandError
from workstation_installer.lib import features, probe, winget, wsl
from workstation_installer.lib.command import CmdResult
from workstation_installer.pipeline import InstallContext

Response = Union[CmdResult, BaseException]


class FakeRunner:
    """Replaces run_cmd. Responses are matched by argv prefix, first match wins."""

    def __init__(self) -> None:
        self.calls: List[dict] = []
        self._responses: List[Tuple[Tuple[str, ...], Response]] = []

    def on(self, prefix: Sequence[str], *, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._responses.append(
            (tuple(prefix), CmdResult(argv=list(prefix), returncode=returncode, stdout=stdout, stderr=stderr))
        )

    def raise_on(self, prefix: Sequence[str], exc: BaseException) -> None:
        self._responses.append((tuple(prefix), exc))

    def argvs(self) -> List[List[str]]:
        return [c["argv"] for c in self.calls]

    def __call__(self, argv: Sequence[str], **kwargs: Any) -> CmdResult:
        argv = list(argv)
        self.calls.append({"argv": argv, **kwargs})
        if kwargs.get("dry_run"):
            return CmdResult(argv=argv, returncode=0, stdout="", stderr="")

        result: Response = CmdResult(argv=argv, returncode=0, stdout="", stderr="")
        for prefix, response in self._responses:
            if tuple(argv[: len(prefix)]) == prefix:
                result = response
                break
        if isinstance(result, BaseException):
            raise result

        ok_codes = kwargs.get("ok_codes", (0,))
        if kwargs.get("check", True) and result.returncode not in ok_codes:
            raise CommandError(argv, result.returncode, result.stderr)
        return CmdResult(argv=argv, returncode=result.returncode, stdout=result.stdout, stderr=result.stderr)


@pytest.fixture
def fake_cmd(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    for module in (probe, winget, wsl, features):
        monkeypatch.setattr(module, "run_cmd", runner)
    return runner


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    return tmp_path / "LocalState" / "settings.json"


@pytest.fixture
def ctx(settings_path: Path) -> InstallContext:
    cfg = load_config().with_overrides(terminal={"settings_path": str(settings_path)})
    return InstallContext(config=cfg)
