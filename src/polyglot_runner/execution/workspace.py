from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from types import TracebackType

from ..errors import CleanupFailure, WorkspaceFailure
from ..settings import RunnerSettings

_log = logging.getLogger(__name__)

WORKSPACE_PREFIX = "pgr-"


class WorkspaceNamer:
    """Generate collision-free workspace names.

    Names are `<prefix><uuid4 hex>`, so two requests never share a name
    regardless of timing or process.

    Example:
        ```python
        name = WorkspaceNamer().next_name(suffix=".py")
        ```
    """

    def __init__(self, prefix: str = WORKSPACE_PREFIX) -> None:
        """Store the name prefix.

        Example:
            ```python
            namer = WorkspaceNamer(prefix="job-")
            ```
        """
        self._prefix = prefix

    def next_name(self, suffix: str = "") -> str:
        """Return a fresh unique name.

        Example:
            ```python
            name = namer.next_name(".js")
            ```
        """
        return f"{self._prefix}{uuid.uuid4().hex}{suffix}"


DEFAULT_NAMER = WorkspaceNamer()


class Workspace:
    """A disposable file or directory owned by exactly one request.

    Use as a context manager; leaving the block removes the location. The
    release runs at most once no matter how often `release()` is called.
    A failed removal is logged and kept in `cleanup_error`. It never
    replaces the result or the exception of the block.

    Example:
        ```python
        with workspace_directory(settings) as ws:
            (ws.path / "main.cpp").write_text(code)
        ```
    """

    def __init__(self, path: Path, *, is_dir: bool) -> None:
        """Wrap an already-created location.

        Example:
            ```python
            ws = Workspace(Path("/tmp/pgr-abc"), is_dir=True)
            ```
        """
        self.path = path
        self.is_dir = is_dir
        self.released = False
        self.cleanup_error: CleanupFailure | None = None

    def __enter__(self) -> Workspace:
        """Return the workspace itself.

        Example:
            ```python
            with ws as active:
                ...
            ```
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Release the workspace on every exit path.

        Example:
            ```python
            ws.__exit__(None, None, None)
            ```
        """
        self.release()

    def write_source(self, name: str | None, text: str) -> Path:
        """Write source text verbatim into the workspace.

        For a directory workspace `name` is the file inside it. For a file
        workspace `name` must be None and the file itself is written.

        Example:
            ```python
            source = ws.write_source("Main.java", code)
            ```
        """
        if self.is_dir != (name is not None):
            raise ValueError("directory workspaces need a file name; file workspaces take name=None")
        target = self.path / name if name is not None else self.path
        try:
            with open(target, "w", encoding="utf-8", newline="") as handle:
                handle.write(text)
        except (OSError, UnicodeEncodeError) as exc:
            raise WorkspaceFailure(f"Error writing source {target.name}: {exc}") from exc
        return target

    def release(self) -> None:
        """Remove the location once; later calls are no-ops.

        Example:
            ```python
            ws.release()
            ```
        """
        if self.released:
            return
        self.released = True
        try:
            if self.is_dir:
                shutil.rmtree(self.path)
            else:
                os.unlink(self.path)
        except FileNotFoundError:
            _log.debug("workspace %s already gone", self.path)
        except OSError as exc:
            self.cleanup_error = CleanupFailure(self.path, exc)
            _log.warning("%s", self.cleanup_error)
        else:
            _log.debug("released workspace %s", self.path)


def _root(settings: RunnerSettings | None) -> Path:
    """Return the parent directory for new workspaces.

    Example:
        ```python
        parent = _root(RunnerSettings(workspace_root="/srv/runs"))
        ```
    """
    if settings is not None and settings.workspace_root:
        return Path(settings.workspace_root).expanduser()
    return Path(tempfile.gettempdir())


def workspace_directory(
    settings: RunnerSettings | None = None,
    namer: WorkspaceNamer = DEFAULT_NAMER,
) -> Workspace:
    """Create a fresh, empty workspace directory.

    Example:
        ```python
        with workspace_directory(settings) as ws:
            print(ws.path)
        ```
    """
    path = _root(settings) / namer.next_name()
    try:
        path.mkdir(mode=0o700)
    except OSError as exc:
        raise WorkspaceFailure(f"Error preparing workspace: {exc}") from exc
    _log.debug("acquired workspace directory %s", path)
    return Workspace(path, is_dir=True)


def workspace_file(
    suffix: str,
    settings: RunnerSettings | None = None,
    namer: WorkspaceNamer = DEFAULT_NAMER,
) -> Workspace:
    """Create a fresh, empty workspace file with the given suffix.

    Example:
        ```python
        with workspace_file(".py", settings) as ws:
            ws.write_source(None, "print('hi')")
        ```
    """
    path = _root(settings) / namer.next_name(suffix)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except OSError as exc:
        raise WorkspaceFailure(f"Error preparing workspace: {exc}") from exc
    os.close(fd)
    _log.debug("acquired workspace file %s", path)
    return Workspace(path, is_dir=False)
