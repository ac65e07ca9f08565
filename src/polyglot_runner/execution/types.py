from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Phase(str, Enum):
    """Step of a request a failure is attributed to.

    Example:
        ```python
        assert Phase.COMPILE.value == "compile"
        ```
    """

    COMPILE = "compile"
    RUN = "run"
    SPAWN = "spawn"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Immutable request routed by the dispatcher to a language backend.

    Example:
        ```python
        req = ExecutionRequest(language="python", source_code="print(1)", timeout_seconds=5)
        ```
    """

    language: str
    source_code: str
    stdin_payload: str | None = None
    timeout_seconds: float = 20
    compile_timeout_seconds: float | None = None

    @property
    def effective_compile_timeout(self) -> float:
        """Return the compile budget, falling back to the run budget.

        Example:
            ```python
            budget = req.effective_compile_timeout
            ```
        """
        if self.compile_timeout_seconds is None:
            return self.timeout_seconds
        return self.compile_timeout_seconds


@dataclass(frozen=True, slots=True)
class ProcessInvocation:
    """One subprocess launch handed to the command runner.

    Example:
        ```python
        inv = ProcessInvocation("python3", ["/tmp/x.py"], stdin_payload="hi", timeout_seconds=5)
        ```
    """

    command: str
    args: list[str] = field(default_factory=list)
    stdin_payload: str | None = None
    timeout_seconds: float = 20
    cwd: str | None = None

    @property
    def argv(self) -> list[str]:
        """Return the full argument vector passed to the OS.

        Example:
            ```python
            assert inv.argv[0] == "python3"
            ```
        """
        return [self.command, *self.args]


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Raw exit status and captured streams of a finished process.

    Example:
        ```python
        res = ProcessResult(exit_code=0, stdout=b"hi\\n", stderr=b"")
        ```
    """

    exit_code: int
    stdout: bytes
    stderr: bytes

    @property
    def stdout_text(self) -> str:
        """Decode stdout as UTF-8, replacing undecodable bytes.

        Example:
            ```python
            text = res.stdout_text
            ```
        """
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        """Decode stderr as UTF-8, replacing undecodable bytes.

        Example:
            ```python
            text = res.stderr_text
            ```
        """
        return self.stderr.decode("utf-8", errors="replace")


@dataclass(slots=True)
class ExecutionOutcome:
    """Normalized result returned by `run_code`.

    Example:
        ```python
        outcome = ExecutionOutcome(ok=True, language="python", output="hello\\n")
        ```
    """

    ok: bool
    language: str
    output: str = ""
    error: str | None = None
    kind: str | None = None
    phase: str | None = None
    exit_code: int | None = None
    timed_out: bool = False
