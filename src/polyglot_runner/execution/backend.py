from __future__ import annotations

from typing import Protocol

from ..errors import ExecutionFailure, ProcessFailure
from . import command
from .types import ExecutionRequest, Phase, ProcessInvocation


class LanguageBackend(Protocol):
    language: str

    def execute(self, request: ExecutionRequest) -> str:
        """Run one request and return its captured stdout.

        Raises an `ExecutionFailure` subclass tagged with the failing phase.

        Example:
            ```python
            output = backend.execute(ExecutionRequest(language="python", source_code="print(1)"))
            ```
        """
        ...


def run_phase(
    invocation: ProcessInvocation,
    phase: Phase,
    failure_cls: type[ProcessFailure],
) -> str:
    """Run one invocation and tag any failure with `phase`.

    Generic process failures are re-raised as `failure_cls`; spawn and
    timeout failures keep their kind.

    Example:
        ```python
        output = run_phase(invocation, Phase.RUN, RuntimeFailure)
        ```
    """
    try:
        return command.run_command(invocation)
    except ProcessFailure as exc:
        raise failure_cls.from_failure(exc, phase=phase.value) from exc
    except ExecutionFailure as exc:
        exc.phase = phase.value
        raise
