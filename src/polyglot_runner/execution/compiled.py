from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from ..errors import CompileFailure, RuntimeFailure
from ..settings import RunnerSettings
from .backend import run_phase
from .types import ExecutionRequest, Phase, ProcessInvocation
from .workspace import Workspace, workspace_directory

_log = logging.getLogger(__name__)


class CompiledState(str, Enum):
    """States of a compile-then-run request.

    Example:
        ```python
        assert CompiledState.DONE.value == "done"
        ```
    """

    PENDING = "pending"
    COMPILING = "compiling"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[CompiledState, frozenset[CompiledState]] = {
    CompiledState.PENDING: frozenset({CompiledState.COMPILING}),
    CompiledState.COMPILING: frozenset({CompiledState.RUNNING, CompiledState.FAILED}),
    CompiledState.RUNNING: frozenset({CompiledState.DONE, CompiledState.FAILED}),
    CompiledState.DONE: frozenset(),
    CompiledState.FAILED: frozenset(),
}


class CompiledRun:
    """State machine for one compiled-language request.

    Example:
        ```python
        run = CompiledRun()
        run.advance(CompiledState.COMPILING)
        ```
    """

    def __init__(self) -> None:
        """Start in PENDING with an empty history.

        Example:
            ```python
            run = CompiledRun()
            ```
        """
        self.state = CompiledState.PENDING
        self.history: list[CompiledState] = [CompiledState.PENDING]

    def advance(self, new_state: CompiledState) -> None:
        """Move to `new_state`, rejecting transitions the protocol forbids.

        Example:
            ```python
            run.advance(CompiledState.RUNNING)
            ```
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)


class CompiledBackend(ABC):
    """Compile source in a workspace directory, then run the artifact.

    The run step starts only after the compile step has terminated
    successfully. The directory is removed on every path.

    Example:
        ```python
        output = CppBackend(RunnerSettings()).execute(request)
        ```
    """

    language = ""
    source_name = ""

    def __init__(self, settings: RunnerSettings) -> None:
        """Keep the settings used for toolchain commands and workspaces.

        Example:
            ```python
            backend = JavaBackend(RunnerSettings(timeout_seconds=10))
            ```
        """
        self._settings = settings

    def execute(self, request: ExecutionRequest) -> str:
        """Compile and run one request.

        Example:
            ```python
            output = backend.execute(ExecutionRequest(language="cpp", source_code=code))
            ```
        """
        return self.execute_with(request, CompiledRun())

    def execute_with(self, request: ExecutionRequest, lifecycle: CompiledRun) -> str:
        """Compile and run one request, recording states in `lifecycle`.

        Example:
            ```python
            run = CompiledRun()
            backend.execute_with(request, run)
            assert run.state is CompiledState.DONE
            ```
        """
        with workspace_directory(self._settings) as ws:
            source = ws.write_source(self.source_name, request.source_code)

            lifecycle.advance(CompiledState.COMPILING)
            try:
                run_phase(
                    self.compile_invocation(ws, source, request),
                    Phase.COMPILE,
                    CompileFailure,
                )
            except Exception:
                lifecycle.advance(CompiledState.FAILED)
                raise
            _log.debug("%s compiled in %s", self.language, ws.path)

            lifecycle.advance(CompiledState.RUNNING)
            try:
                output = run_phase(self.run_invocation(ws, request), Phase.RUN, RuntimeFailure)
            except Exception:
                lifecycle.advance(CompiledState.FAILED)
                raise
            lifecycle.advance(CompiledState.DONE)
            return output

    @abstractmethod
    def compile_invocation(
        self,
        ws: Workspace,
        source: Path,
        request: ExecutionRequest,
    ) -> ProcessInvocation:
        """Return the compiler invocation for `source`.

        Example:
            ```python
            inv = backend.compile_invocation(ws, ws.path / "main.cpp", request)
            ```
        """

    @abstractmethod
    def run_invocation(self, ws: Workspace, request: ExecutionRequest) -> ProcessInvocation:
        """Return the invocation that runs the compiled artifact.

        Example:
            ```python
            inv = backend.run_invocation(ws, request)
            ```
        """


class JavaBackend(CompiledBackend):
    """`javac Main.java` then `java -cp <workspace> Main`.

    The submitted source must declare a public class `Main`; a mismatch
    surfaces as a compile or run failure.

    Example:
        ```python
        backend = JavaBackend(RunnerSettings())
        ```
    """

    language = "java"
    source_name = "Main.java"
    entry_class = "Main"

    def compile_invocation(
        self,
        ws: Workspace,
        source: Path,
        request: ExecutionRequest,
    ) -> ProcessInvocation:
        """Compile `Main.java` into the workspace directory.

        Example:
            ```python
            inv = JavaBackend(settings).compile_invocation(ws, ws.path / "Main.java", request)
            ```
        """
        return ProcessInvocation(
            command=self._settings.javac,
            args=[str(source)],
            timeout_seconds=request.effective_compile_timeout,
            cwd=str(ws.path),
        )

    def run_invocation(self, ws: Workspace, request: ExecutionRequest) -> ProcessInvocation:
        """Run the `Main` class with the workspace as classpath.

        Example:
            ```python
            inv = JavaBackend(settings).run_invocation(ws, request)
            ```
        """
        return ProcessInvocation(
            command=self._settings.java,
            args=["-cp", str(ws.path), self.entry_class],
            stdin_payload=request.stdin_payload,
            timeout_seconds=request.timeout_seconds,
            cwd=str(ws.path),
        )


class CppBackend(CompiledBackend):
    """`g++ main.cpp -o main` then `./main`.

    Example:
        ```python
        backend = CppBackend(RunnerSettings(cxx="clang++"))
        ```
    """

    language = "cpp"
    source_name = "main.cpp"
    binary_name = "main"

    def compile_invocation(
        self,
        ws: Workspace,
        source: Path,
        request: ExecutionRequest,
    ) -> ProcessInvocation:
        """Compile `main.cpp` to the fixed binary path inside the workspace.

        Example:
            ```python
            inv = CppBackend(settings).compile_invocation(ws, ws.path / "main.cpp", request)
            ```
        """
        return ProcessInvocation(
            command=self._settings.cxx,
            args=[*self._settings.cxx_flags, str(source), "-o", str(ws.path / self.binary_name)],
            timeout_seconds=request.effective_compile_timeout,
            cwd=str(ws.path),
        )

    def run_invocation(self, ws: Workspace, request: ExecutionRequest) -> ProcessInvocation:
        """Run the compiled binary with no arguments.

        Example:
            ```python
            inv = CppBackend(settings).run_invocation(ws, request)
            ```
        """
        return ProcessInvocation(
            command=str(ws.path / self.binary_name),
            stdin_payload=request.stdin_payload,
            timeout_seconds=request.timeout_seconds,
            cwd=str(ws.path),
        )
