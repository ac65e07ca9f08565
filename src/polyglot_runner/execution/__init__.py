from .backend import LanguageBackend
from .command import run_command, run_process
from .types import ExecutionOutcome, ExecutionRequest, Phase, ProcessInvocation, ProcessResult

__all__ = [
    "LanguageBackend",
    "ExecutionOutcome",
    "ExecutionRequest",
    "Phase",
    "ProcessInvocation",
    "ProcessResult",
    "run_command",
    "run_process",
]
