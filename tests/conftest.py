from __future__ import annotations

import sys
from pathlib import Path

import pytest

from polyglot_runner import RunnerSettings


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def settings(workspace_root: Path) -> RunnerSettings:
    return RunnerSettings(
        timeout_seconds=10,
        workspace_root=str(workspace_root),
        python=sys.executable,
    )
