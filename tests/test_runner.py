from __future__ import annotations

import shutil
import sys
import time
from pathlib import Path

import pytest

from polyglot_runner import (
    SUPPORTED_LANGUAGES,
    ExecutionError,
    RunnerSettings,
    UnsupportedLanguage,
    dispatch,
    run_code,
)
from polyglot_runner.errors import ProcessFailure
from polyglot_runner.execution import command, workspace
from polyglot_runner.execution.types import ProcessInvocation
from polyglot_runner.runner import build_request

HELLO = {
    "java": 'public class Main { public static void main(String[] a) { System.out.print("hello"); } }',
    "cpp": '#include <cstdio>\nint main() { std::printf("hello"); return 0; }',
    "javascript": 'process.stdout.write("hello")',
    "python": 'import sys; sys.stdout.write("hello")',
}
TOOLCHAIN = {
    "java": ("javac", "java"),
    "cpp": ("g++",),
    "javascript": ("node",),
    "python": (),
}


def test_supported_languages() -> None:
    assert SUPPORTED_LANGUAGES == ("java", "cpp", "javascript", "python")


@pytest.mark.parametrize("language", SUPPORTED_LANGUAGES)
def test_hello_world_in_every_language(language: str, settings: RunnerSettings, workspace_root: Path) -> None:
    missing = [tool for tool in TOOLCHAIN[language] if shutil.which(tool) is None]
    if missing:
        pytest.skip(f"{', '.join(missing)} not installed")
    outcome = run_code(language, HELLO[language], settings=settings.with_timeout(60))
    assert outcome.ok is True, outcome.error
    assert outcome.output == "hello"
    assert outcome.error is None
    assert list(workspace_root.iterdir()) == []


def test_unsupported_language_touches_nothing(
    settings: RunnerSettings,
    workspace_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _forbidden(*args: object, **kwargs: object) -> None:
        raise AssertionError("must not be called")

    monkeypatch.setattr(command, "run_command", _forbidden)
    monkeypatch.setattr(workspace.DEFAULT_NAMER, "next_name", _forbidden)

    with pytest.raises(UnsupportedLanguage):
        dispatch(build_request("ruby", "puts 1", None, settings), settings)

    outcome = run_code("ruby", "puts 1", settings=settings)
    assert outcome.ok is False
    assert outcome.kind == "unsupported_language"
    assert "ruby" in (outcome.error or "")
    assert list(workspace_root.iterdir()) == []


def test_dispatch_wraps_failures_with_language_and_phase(
    settings: RunnerSettings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _compile_error(invocation: ProcessInvocation) -> str:
        raise ProcessFailure(exit_code=1, stderr="main.cpp:1:1: error: oops")

    monkeypatch.setattr(command, "run_command", _compile_error)
    with pytest.raises(ExecutionError) as exc:
        dispatch(build_request("cpp", "int main( {", None, settings), settings)
    assert exc.value.language == "cpp"
    assert exc.value.phase == "compile"
    assert exc.value.kind == "compile"
    assert str(exc.value) == (
        "Error executing C++ code during compile: Process failed with code 1: main.cpp:1:1: error: oops"
    )


def test_runtime_failure_outcome(settings: RunnerSettings) -> None:
    outcome = run_code("python", "import sys; print('partial'); sys.exit(4)", settings=settings)
    assert outcome.ok is False
    assert outcome.kind == "runtime"
    assert outcome.phase == "run"
    assert outcome.exit_code == 4
    assert outcome.output == ""
    assert (outcome.error or "").startswith("Error executing Python code during run: Process failed with code 4")


def test_timeout_outcome_is_bounded(settings: RunnerSettings, workspace_root: Path) -> None:
    start = time.monotonic()
    outcome = run_code("python", "name = input()\nprint(name)", settings=settings.with_timeout(1))
    assert time.monotonic() - start < 5
    assert outcome.ok is False
    assert outcome.timed_out is True
    assert outcome.kind == "timeout"
    assert list(workspace_root.iterdir()) == []


def test_python_stdin_echo(settings: RunnerSettings) -> None:
    outcome = run_code("python", "import sys; sys.stdout.write(sys.stdin.read())", "a b\nc", settings=settings)
    assert outcome.output == "a b\nc"


def test_empty_input_is_not_written(settings: RunnerSettings) -> None:
    code = "import sys; print(sys.stdin.readline() == '')"
    outcome = run_code("python", code, "", settings=settings.with_timeout(1))
    assert outcome.timed_out is True


def test_repeated_runs_are_idempotent(
    settings: RunnerSettings,
    workspace_root: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: list[str] = []
    real_next_name = workspace.DEFAULT_NAMER.next_name

    def _tracking(suffix: str = "") -> str:
        name = real_next_name(suffix)
        seen.append(name)
        return name

    monkeypatch.setattr(workspace.DEFAULT_NAMER, "next_name", _tracking)
    code = "import sys\nprint(sum(int(x) for x in sys.stdin.read().split()))"
    first = run_code("python", code, "1 2 3", settings=settings)
    second = run_code("python", code, "1 2 3", settings=settings)
    assert first.ok and second.ok
    assert first.output == second.output == "6\n"
    assert len(seen) == 2 and seen[0] != seen[1]
    assert list(workspace_root.iterdir()) == []


def test_settings_file_is_used(tmp_path: Path, workspace_root: Path) -> None:
    config = tmp_path / "runner.toml"
    config.write_text(
        (
            "[runner]\n"
            "timeout_seconds = 3\n"
            f"workspace_root = {str(workspace_root)!r}\n"
            "[runner.toolchain]\n"
            f"python = {sys.executable!r}\n"
        ),
        encoding="utf-8",
    )
    outcome = run_code("python", "print(7)", settings_file=str(config))
    assert outcome.output == "7\n"


def test_run_code_rejects_settings_and_settings_file_together(tmp_path: Path) -> None:
    config = tmp_path / "runner.toml"
    config.write_text("[runner]\ntimeout_seconds = 3\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Provide either 'settings' or 'settings_file'"):
        run_code("python", "print(1)", settings=RunnerSettings(), settings_file=str(config))


def test_missing_workspace_root_is_an_outcome(tmp_path: Path) -> None:
    settings = RunnerSettings(workspace_root=str(tmp_path / "nope"), python=sys.executable)
    outcome = run_code("python", "print(1)", settings=settings)
    assert outcome.ok is False
    assert outcome.kind == "workspace"
    assert outcome.phase == "workspace"
    assert (outcome.error or "").startswith("Error executing Python code during workspace: Error preparing workspace")


def test_unencodable_source_is_an_outcome(settings: RunnerSettings, workspace_root: Path) -> None:
    outcome = run_code("python", "print('\udcff')", settings=settings)
    assert outcome.ok is False
    assert outcome.kind == "workspace"
    assert list(workspace_root.iterdir()) == []
