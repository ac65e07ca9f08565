from __future__ import annotations

import logging
from typing import Callable

from .errors import ExecutionError, ExecutionFailure, UnsupportedLanguage
from .execution.backend import LanguageBackend
from .execution.capabilities import SUPPORTED_LANGUAGES, capabilities_for_language
from .execution.compiled import CppBackend, JavaBackend
from .execution.interpreted import JavaScriptBackend, PythonBackend
from .execution.types import ExecutionOutcome, ExecutionRequest, Phase
from .settings import RunnerSettings

_log = logging.getLogger(__name__)

_BACKENDS: dict[str, Callable[[RunnerSettings], LanguageBackend]] = {
    "java": JavaBackend,
    "cpp": CppBackend,
    "javascript": JavaScriptBackend,
    "python": PythonBackend,
}


def resolve_settings(settings: RunnerSettings | None, settings_file: str | None) -> RunnerSettings:
    """Resolve the effective settings object for a run.

    Example:
        ```python
        settings = resolve_settings(None, "/tmp/runner.toml")
        ```
    """
    if settings is not None and settings_file is not None:
        raise ValueError("Provide either 'settings' or 'settings_file', not both")
    if settings is None and settings_file is not None:
        return RunnerSettings.from_file(settings_file)
    if settings is None:
        return RunnerSettings()
    return settings


def get_backend(language: str, settings: RunnerSettings) -> LanguageBackend:
    """Return the backend for a supported language.

    Example:
        ```python
        backend = get_backend("cpp", RunnerSettings())
        ```
    """
    if language not in _BACKENDS:
        raise UnsupportedLanguage(language)
    return _BACKENDS[language](settings)


def build_request(
    language: str,
    code: str,
    user_input: str | None,
    settings: RunnerSettings,
) -> ExecutionRequest:
    """Build an immutable request carrying the configured timeouts.

    Example:
        ```python
        req = build_request("python", "print(1)", None, RunnerSettings())
        ```
    """
    return ExecutionRequest(
        language=language,
        source_code=code,
        stdin_payload=user_input or None,
        timeout_seconds=settings.timeout_seconds,
        compile_timeout_seconds=settings.compile_timeout_seconds,
    )


def dispatch(request: ExecutionRequest, settings: RunnerSettings) -> str:
    """Validate the language, route to its backend and return the output.

    Unknown languages raise `UnsupportedLanguage` before any file is created
    or process spawned. Backend failures are wrapped in one `ExecutionError`
    naming the language and phase.

    Example:
        ```python
        output = dispatch(build_request("python", "print(1)", None, settings), settings)
        ```
    """
    if request.language not in SUPPORTED_LANGUAGES:
        raise UnsupportedLanguage(request.language)
    caps = capabilities_for_language(request.language)
    backend = get_backend(request.language, settings)
    try:
        return backend.execute(request)
    except ExecutionFailure as exc:
        error = ExecutionError(request.language, caps.display_name, exc)
        _log.debug("%s", error)
        raise error from exc


def run_code(
    language: str,
    code: str,
    user_input: str | None = None,
    *,
    settings: RunnerSettings | None = None,
    settings_file: str | None = None,
) -> ExecutionOutcome:
    """Execute source code in the given language and return a normalized outcome.

    Execution failures come back as `ok=False` outcomes; only argument
    misuse raises.

    Example:
        ```python
        from polyglot_runner import run_code
        outcome = run_code("python", "print(input())", "hello")
        assert outcome.output == "hello\\n"
        ```
    """
    resolved = resolve_settings(settings, settings_file)
    request = build_request(language, code, user_input, resolved)
    try:
        output = dispatch(request, resolved)
    except UnsupportedLanguage as exc:
        return ExecutionOutcome(
            ok=False,
            language=language,
            error=str(exc),
            kind="unsupported_language",
        )
    except ExecutionError as exc:
        cause = exc.cause
        return ExecutionOutcome(
            ok=False,
            language=language,
            error=str(exc),
            kind=exc.kind,
            phase=exc.phase,
            exit_code=getattr(cause, "exit_code", None),
            timed_out=exc.kind == "timeout",
        )
    return ExecutionOutcome(ok=True, language=language, output=output, phase=Phase.RUN.value)
