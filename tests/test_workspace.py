from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest

from polyglot_runner import RunnerSettings
from polyglot_runner.errors import CleanupFailure, WorkspaceFailure
from polyglot_runner.execution import workspace as workspace_mod
from polyglot_runner.execution.workspace import WorkspaceNamer, workspace_directory, workspace_file


def test_directory_workspace_is_removed_after_block(settings: RunnerSettings) -> None:
    with workspace_directory(settings) as ws:
        source = ws.write_source("Main.java", "class Main {}")
        assert ws.path.is_dir()
        assert source.read_text(encoding="utf-8") == "class Main {}"
        assert ws.path.parent == Path(settings.workspace_root or "")
    assert not ws.path.exists()
    assert ws.released is True


def test_file_workspace_keeps_suffix_and_is_removed(settings: RunnerSettings) -> None:
    with workspace_file(".py", settings) as ws:
        ws.write_source(None, "print('hi')\r\n")
        assert ws.path.suffix == ".py"
        assert ws.path.read_bytes() == b"print('hi')\r\n"
    assert not ws.path.exists()


def test_workspace_removed_when_block_raises(settings: RunnerSettings) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        with workspace_directory(settings) as ws:
            ws.write_source("main.cpp", "int main() {}")
            raise RuntimeError("boom")
    assert not ws.path.exists()


def test_release_runs_exactly_once(settings: RunnerSettings, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[Path] = []
    real_rmtree = shutil.rmtree

    def _counting_rmtree(path: Path) -> None:
        calls.append(path)
        real_rmtree(path)

    monkeypatch.setattr(workspace_mod.shutil, "rmtree", _counting_rmtree)
    with workspace_directory(settings) as ws:
        ws.release()
    ws.release()
    assert calls == [ws.path]


def test_cleanup_failure_is_logged_not_raised(
    settings: RunnerSettings,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def _denied(path: Path) -> None:
        raise PermissionError("removal denied")

    monkeypatch.setattr(workspace_mod.shutil, "rmtree", _denied)
    with caplog.at_level(logging.WARNING, logger="polyglot_runner.execution.workspace"):
        with workspace_directory(settings) as ws:
            result = "kept"
    assert result == "kept"
    assert isinstance(ws.cleanup_error, CleanupFailure)
    assert "removal denied" in caplog.text
    monkeypatch.undo()
    shutil.rmtree(ws.path)


def test_cleanup_failure_does_not_mask_block_error(
    settings: RunnerSettings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _denied(path: str) -> None:
        raise PermissionError("removal denied")

    monkeypatch.setattr(workspace_mod.os, "unlink", _denied)
    with pytest.raises(ValueError, match="original"):
        with workspace_file(".js", settings) as ws:
            raise ValueError("original")
    assert ws.cleanup_error is not None
    monkeypatch.undo()
    ws.path.unlink()


def test_names_never_collide(settings: RunnerSettings) -> None:
    namer = WorkspaceNamer()
    names = {namer.next_name(".py") for _ in range(1000)}
    assert len(names) == 1000
    assert all(name.startswith("pgr-") and name.endswith(".py") for name in names)


def test_colliding_name_is_an_error_not_a_reuse(settings: RunnerSettings) -> None:
    class _FixedNamer(WorkspaceNamer):
        def next_name(self, suffix: str = "") -> str:
            return f"fixed{suffix}"

    with workspace_file(".py", settings, namer=_FixedNamer()):
        with pytest.raises(WorkspaceFailure) as exc:
            workspace_file(".py", settings, namer=_FixedNamer())
    assert isinstance(exc.value.__cause__, FileExistsError)


def test_write_source_checks_workspace_kind(settings: RunnerSettings) -> None:
    with workspace_file(".py", settings) as ws:
        with pytest.raises(ValueError):
            ws.write_source("main.py", "")
    with workspace_directory(settings) as ws_dir:
        with pytest.raises(ValueError):
            ws_dir.write_source(None, "")


def test_default_root_is_system_temp_dir() -> None:
    with workspace_directory(RunnerSettings()) as ws:
        assert ws.path.name.startswith("pgr-")
        assert ws.path.exists()
    assert not ws.path.exists()


def test_missing_root_is_workspace_failure(tmp_path: Path) -> None:
    missing = RunnerSettings(workspace_root=str(tmp_path / "nope"))
    with pytest.raises(WorkspaceFailure, match="Error preparing workspace"):
        workspace_directory(missing)
    with pytest.raises(WorkspaceFailure, match="Error preparing workspace"):
        workspace_file(".py", missing)


def test_unencodable_source_is_workspace_failure(settings: RunnerSettings) -> None:
    with workspace_file(".py", settings) as ws:
        with pytest.raises(WorkspaceFailure) as exc:
            ws.write_source(None, "print('\ud800')")
    assert isinstance(exc.value.__cause__, UnicodeEncodeError)
    assert not ws.path.exists()
