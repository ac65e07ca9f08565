from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import RuntimeFailure
from ..settings import RunnerSettings
from .backend import run_phase
from .types import ExecutionRequest, Phase, ProcessInvocation
from .workspace import workspace_file


class InterpretedBackend(ABC):
    """Write source to a single temp file and run the interpreter once.

    Example:
        ```python
        output = PythonBackend(RunnerSettings()).execute(request)
        ```
    """

    language = ""
    suffix = ""

    def __init__(self, settings: RunnerSettings) -> None:
        """Keep the settings used for the interpreter command and workspace.

        Example:
            ```python
            backend = PythonBackend(RunnerSettings(python="/usr/bin/python3"))
            ```
        """
        self._settings = settings

    def execute(self, request: ExecutionRequest) -> str:
        """Interpret one request; the source file is removed on every path.

        Example:
            ```python
            output = backend.execute(ExecutionRequest(language="python", source_code="print(1)"))
            ```
        """
        with workspace_file(self.suffix, self._settings) as ws:
            source = ws.write_source(None, request.source_code)
            return run_phase(self.invocation(source, request), Phase.RUN, RuntimeFailure)

    @abstractmethod
    def invocation(self, source: Path, request: ExecutionRequest) -> ProcessInvocation:
        """Return the interpreter invocation for `source`.

        Example:
            ```python
            inv = backend.invocation(Path("/tmp/pgr-abc.py"), request)
            ```
        """


class PythonBackend(InterpretedBackend):
    """`python3 <file>` with user input piped on stdin.

    Example:
        ```python
        backend = PythonBackend(RunnerSettings())
        ```
    """

    language = "python"
    suffix = ".py"

    def invocation(self, source: Path, request: ExecutionRequest) -> ProcessInvocation:
        """Pipe the request's input to the interpreter's stdin.

        Example:
            ```python
            inv = PythonBackend(settings).invocation(Path("/tmp/x.py"), request)
            ```
        """
        return ProcessInvocation(
            command=self._settings.python,
            args=[str(source)],
            stdin_payload=request.stdin_payload,
            timeout_seconds=request.timeout_seconds,
        )


class JavaScriptBackend(InterpretedBackend):
    """`node <file> <tokens...>`: user input becomes argv, not stdin.

    Example:
        ```python
        backend = JavaScriptBackend(RunnerSettings())
        ```
    """

    language = "javascript"
    suffix = ".js"

    def invocation(self, source: Path, request: ExecutionRequest) -> ProcessInvocation:
        """Split the request's input on whitespace into command-line arguments.

        Example:
            ```python
            inv = JavaScriptBackend(settings).invocation(Path("/tmp/x.js"), request)
            assert inv.args[1:] == ["1", "2"]
            ```
        """
        tokens = (request.stdin_payload or "").split()
        return ProcessInvocation(
            command=self._settings.node,
            args=[str(source), *tokens],
            timeout_seconds=request.timeout_seconds,
        )
