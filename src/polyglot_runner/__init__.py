from .errors import (
    CleanupFailure,
    CompileFailure,
    ExecutionError,
    ExecutionFailure,
    RunnerError,
    RuntimeFailure,
    SpawnFailure,
    TimeoutFailure,
    UnsupportedLanguage,
    WorkspaceFailure,
)
from .execution.capabilities import SUPPORTED_LANGUAGES
from .execution.types import ExecutionOutcome, ExecutionRequest
from .handler import handle_event
from .runner import dispatch, run_code
from .settings import RunnerSettings

__all__ = [
    "SUPPORTED_LANGUAGES",
    "CleanupFailure",
    "CompileFailure",
    "ExecutionError",
    "ExecutionFailure",
    "ExecutionOutcome",
    "ExecutionRequest",
    "RunnerError",
    "RunnerSettings",
    "RuntimeFailure",
    "SpawnFailure",
    "TimeoutFailure",
    "UnsupportedLanguage",
    "WorkspaceFailure",
    "dispatch",
    "handle_event",
    "run_code",
]
