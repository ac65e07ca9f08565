from __future__ import annotations


class RunnerError(Exception):
    """Base class for every error raised by polyglot-runner.

    Example:
        ```python
        try:
            run_code_or_raise()
        except RunnerError as exc:
            print(exc)
        ```
    """


class UnsupportedLanguage(RunnerError, ValueError):
    """Requested language is not one of the supported identifiers.

    Example:
        ```python
        raise UnsupportedLanguage("ruby")
        ```
    """

    def __init__(self, language: str) -> None:
        """Store the rejected language identifier.

        Example:
            ```python
            exc = UnsupportedLanguage("ruby")
            ```
        """
        super().__init__(f"Unsupported language: {language!r}")
        self.language = language


class ExecutionFailure(RunnerError):
    """Terminal failure of a compile or run step.

    `phase` is filled in by the backend that observed the failure.

    Example:
        ```python
        raise SpawnFailure("Error spawning process: No such file or directory")
        ```
    """

    kind = "execution"

    def __init__(self, message: str, *, phase: str | None = None) -> None:
        """Store the failure message and optional phase marker.

        Example:
            ```python
            exc = ExecutionFailure("boom", phase="run")
            ```
        """
        super().__init__(message)
        self.message = message
        self.phase = phase


class SpawnFailure(ExecutionFailure):
    """Compiler or interpreter executable could not be started.

    Example:
        ```python
        raise SpawnFailure("Error spawning process: [Errno 2] ...", phase="compile")
        ```
    """

    kind = "spawn"


class WorkspaceFailure(ExecutionFailure):
    """Workspace could not be created or the source could not be written.

    Example:
        ```python
        raise WorkspaceFailure("Error preparing workspace: [Errno 2] No such file or directory")
        ```
    """

    kind = "workspace"


class TimeoutFailure(ExecutionFailure):
    """Process exceeded its wall-clock budget and was killed.

    Example:
        ```python
        raise TimeoutFailure("Process timed out after 5s", timeout_seconds=5)
        ```
    """

    kind = "timeout"

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float,
        phase: str | None = None,
    ) -> None:
        """Store the budget that was exceeded.

        Example:
            ```python
            exc = TimeoutFailure("Process timed out after 1s", timeout_seconds=1)
            ```
        """
        super().__init__(message, phase=phase)
        self.timeout_seconds = timeout_seconds


class ProcessFailure(ExecutionFailure):
    """Process exited non-zero or wrote to its error stream.

    Example:
        ```python
        raise ProcessFailure(exit_code=1, stderr="Traceback ...")
        ```
    """

    kind = "process"

    def __init__(self, *, exit_code: int, stderr: str, phase: str | None = None) -> None:
        """Build the message from the exit code and captured error text.

        Example:
            ```python
            exc = ProcessFailure(exit_code=2, stderr="error: expected ';'")
            ```
        """
        super().__init__(f"Process failed with code {exit_code}: {stderr}", phase=phase)
        self.exit_code = exit_code
        self.stderr = stderr

    @classmethod
    def from_failure(cls, failure: ProcessFailure, *, phase: str) -> ProcessFailure:
        """Re-tag a generic process failure with a concrete subclass and phase.

        Example:
            ```python
            compile_error = CompileFailure.from_failure(exc, phase="compile")
            ```
        """
        return cls(exit_code=failure.exit_code, stderr=failure.stderr, phase=phase)


class CompileFailure(ProcessFailure):
    """Compiler rejected the source; the run step was skipped.

    Example:
        ```python
        raise CompileFailure(exit_code=1, stderr="Main.java:1: error", phase="compile")
        ```
    """

    kind = "compile"


class RuntimeFailure(ProcessFailure):
    """Program (or interpreter) failed while running.

    Example:
        ```python
        raise RuntimeFailure(exit_code=1, stderr="ZeroDivisionError", phase="run")
        ```
    """

    kind = "runtime"


class CleanupFailure(RunnerError):
    """Workspace removal failed. Recorded and logged, never raised to callers.

    Example:
        ```python
        failure = CleanupFailure(Path("/tmp/pgr-abc"), PermissionError("denied"))
        ```
    """

    def __init__(self, path: object, error: BaseException) -> None:
        """Keep the path that could not be removed and the underlying error.

        Example:
            ```python
            failure = CleanupFailure("/tmp/pgr-abc", OSError("busy"))
            ```
        """
        super().__init__(f"Could not remove workspace {path}: {error}")
        self.path = path
        self.error = error


class ExecutionError(RunnerError):
    """Dispatcher-level failure carrying language and phase context.

    Example:
        ```python
        raise ExecutionError("python", cause)
        ```
    """

    def __init__(self, language: str, display_name: str, cause: ExecutionFailure) -> None:
        """Wrap a backend failure for the caller.

        Example:
            ```python
            err = ExecutionError("cpp", "C++", CompileFailure(exit_code=1, stderr="", phase="compile"))
            ```
        """
        phase = cause.phase or cause.kind
        super().__init__(f"Error executing {display_name} code during {phase}: {cause.message}")
        self.language = language
        self.phase = phase
        self.kind = cause.kind
        self.cause = cause
