from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import threading
from functools import partial
from typing import IO

from ..errors import ProcessFailure, SpawnFailure, TimeoutFailure
from .types import ProcessInvocation, ProcessResult

_log = logging.getLogger(__name__)
_CHUNK_SIZE = 64 * 1024


def _drain(stream: IO[bytes], sink: list[bytes]) -> None:
    """Read a pipe to EOF, appending every chunk to `sink`.

    Example:
        ```python
        chunks: list[bytes] = []
        _drain(proc.stdout, chunks)
        ```
    """
    try:
        for chunk in iter(partial(stream.read1, _CHUNK_SIZE), b""):  # type: ignore[attr-defined]
            sink.append(chunk)
    finally:
        stream.close()


def _feed(stream: IO[bytes], payload: bytes) -> None:
    """Write the whole payload to the child's stdin and close it.

    Example:
        ```python
        _feed(proc.stdin, b"42\\n")
        ```
    """
    try:
        stream.write(payload)
        stream.flush()
    except (BrokenPipeError, ValueError):
        # Child exited or was killed before consuming its input.
        _log.debug("stdin closed before %d bytes were consumed", len(payload))
    finally:
        with contextlib.suppress(BrokenPipeError):
            stream.close()


def _kill(proc: subprocess.Popen[bytes]) -> None:
    """Force-kill the process and everything in its session.

    The group is only signalled while the leader is unreaped, so its id
    cannot have been recycled for another process group.

    Example:
        ```python
        _kill(proc)
        ```
    """
    if proc.returncode is not None:
        return
    if hasattr(os, "killpg"):
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            return
        except PermissionError:
            pass
    proc.kill()


def _wait_unreaped(pid: int) -> None:
    """Block until `pid` exits, leaving it a zombie for `Popen.wait` to reap.

    Example:
        ```python
        _wait_unreaped(proc.pid)
        ```
    """
    with contextlib.suppress(ChildProcessError):
        os.waitid(os.P_PID, pid, os.WEXITED | os.WNOWAIT)


def _await_exit(proc: subprocess.Popen[bytes], timeout: float) -> bool:
    """Wait up to `timeout` seconds for the process to exit; False on timeout.

    Where `os.waitid` is available the leader stays unreaped, keeping its
    process group id reserved until `_kill` has swept the group.

    Example:
        ```python
        if not _await_exit(proc, 5):
            _kill(proc)
        ```
    """
    if not hasattr(os, "waitid"):
        try:
            proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        return True
    waiter = _start_thread(_wait_unreaped, proc.pid)
    waiter.join(timeout)
    return not waiter.is_alive()


def _start_thread(target, *args) -> threading.Thread:  # type: ignore[no-untyped-def]
    """Start a daemon helper thread for stream I/O.

    Example:
        ```python
        reader = _start_thread(_drain, proc.stdout, chunks)
        ```
    """
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


def run_process(invocation: ProcessInvocation) -> ProcessResult:
    """Spawn one process, feed its stdin, and capture both output streams.

    A non-empty `stdin_payload` is written in full and stdin is closed. An
    empty payload writes nothing and leaves stdin open until the process
    ends, so programs waiting on input block until the timeout.

    Raises `SpawnFailure` when the executable cannot be started and
    `TimeoutFailure` when the process outlives `timeout_seconds`. The exit
    code and streams are returned as-is; see `run_command` for the
    success/failure classification.

    Example:
        ```python
        result = run_process(ProcessInvocation("python3", ["-c", "print(1)"], timeout_seconds=5))
        ```
    """
    payload = (invocation.stdin_payload or "").encode("utf-8", errors="surrogatepass")
    _log.debug("spawning %s (timeout=%ss)", invocation.argv, invocation.timeout_seconds)
    try:
        proc = subprocess.Popen(
            invocation.argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=invocation.cwd,
            start_new_session=True,
        )
    except OSError as exc:
        raise SpawnFailure(f"Error spawning process: {exc}") from exc

    assert proc.stdin is not None and proc.stdout is not None and proc.stderr is not None
    stdout_chunks: list[bytes] = []
    stderr_chunks: list[bytes] = []
    helpers: list[threading.Thread] = []
    try:
        helpers.append(_start_thread(_drain, proc.stdout, stdout_chunks))
        helpers.append(_start_thread(_drain, proc.stderr, stderr_chunks))
        if payload:
            helpers.append(_start_thread(_feed, proc.stdin, payload))
        if not _await_exit(proc, invocation.timeout_seconds):
            _log.debug("pid %s exceeded %ss, killing", proc.pid, invocation.timeout_seconds)
            raise TimeoutFailure(
                f"Process timed out after {invocation.timeout_seconds:g}s",
                timeout_seconds=invocation.timeout_seconds,
            )
    finally:
        # Also reaps stragglers left in the session after a normal exit.
        _kill(proc)
        exit_code = proc.wait()
        for helper in helpers:
            helper.join()
        if not payload:
            with contextlib.suppress(BrokenPipeError):
                proc.stdin.close()

    _log.debug("pid %s exited with code %s", proc.pid, exit_code)
    return ProcessResult(
        exit_code=exit_code,
        stdout=b"".join(stdout_chunks),
        stderr=b"".join(stderr_chunks),
    )


def run_command(invocation: ProcessInvocation) -> str:
    """Run one process and return its stdout, or raise on failure.

    Exit code 0 with an empty error stream is success. Any stderr content
    fails the invocation even on exit code 0, so compiler warnings and
    interpreter deprecation notices are reported as failures.

    Example:
        ```python
        output = run_command(ProcessInvocation("python3", ["/tmp/hello.py"], timeout_seconds=5))
        ```
    """
    result = run_process(invocation)
    if result.exit_code != 0 or result.stderr:
        raise ProcessFailure(exit_code=result.exit_code, stderr=result.stderr_text)
    return result.stdout_text
