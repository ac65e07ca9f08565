from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the normalized `[runner]` table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/runner.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_seconds": 20,
            "workspace_root": "",
            "toolchain": {
                "javac": "javac",
                "java": "java",
                "cxx": "g++",
                "cxx_flags": [],
                "node": "node",
                "python": "python3",
            },
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    runner_obj = raw.get("runner", raw)
    if not isinstance(runner_obj, dict):
        raise ValueError("Runner config must be a TOML table")
    return runner_obj


def _list_of_str(value: Any, field_name: str) -> list[str]:
    """Validate and normalize a list-of-strings settings field.

    Example:
        ```python
        flags = _list_of_str(["-O2", "-std=c++17"], "cxx_flags")
        ```
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings")
        out.append(item)
    return out


def _optional_str(value: Any) -> str | None:
    """Map empty strings and missing values to None.

    Example:
        ```python
        assert _optional_str("") is None
        ```
    """
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _toolchain_table(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the `[runner.toolchain]` table, or an empty dict.

    Example:
        ```python
        tools = _toolchain_table({"toolchain": {"node": "/usr/bin/node"}})
        ```
    """
    table = raw.get("toolchain", {})
    if not isinstance(table, dict):
        raise ValueError("'toolchain' must be a TOML table")
    return table


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
_DEFAULT_TOOLCHAIN = _toolchain_table(_DEFAULT_SETTINGS_RAW)
DEFAULT_TIMEOUT_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("timeout_seconds", 20))
DEFAULT_WORKSPACE_ROOT = _optional_str(_DEFAULT_SETTINGS_RAW.get("workspace_root"))
DEFAULT_JAVAC = str(_DEFAULT_TOOLCHAIN.get("javac", "javac"))
DEFAULT_JAVA = str(_DEFAULT_TOOLCHAIN.get("java", "java"))
DEFAULT_CXX = str(_DEFAULT_TOOLCHAIN.get("cxx", "g++"))
DEFAULT_CXX_FLAGS = _list_of_str(_DEFAULT_TOOLCHAIN.get("cxx_flags", []), "cxx_flags")
DEFAULT_NODE = str(_DEFAULT_TOOLCHAIN.get("node", "node"))
DEFAULT_PYTHON = str(_DEFAULT_TOOLCHAIN.get("python", "python3"))


@dataclass(frozen=True, slots=True)
class RunnerSettings:
    """Timeouts, workspace location and toolchain commands for a run.

    Example:
        ```python
        settings = RunnerSettings(timeout_seconds=5, python="/usr/bin/python3")
        ```
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    compile_timeout_seconds: float | None = None
    workspace_root: str | None = DEFAULT_WORKSPACE_ROOT
    javac: str = DEFAULT_JAVAC
    java: str = DEFAULT_JAVA
    cxx: str = DEFAULT_CXX
    cxx_flags: list[str] = field(default_factory=lambda: DEFAULT_CXX_FLAGS.copy())
    node: str = DEFAULT_NODE
    python: str = DEFAULT_PYTHON
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate timeouts after dataclass initialization.

        Example:
            ```python
            RunnerSettings(timeout_seconds=1)
            ```
        """
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.compile_timeout_seconds is not None and self.compile_timeout_seconds <= 0:
            raise ValueError("compile_timeout_seconds must be positive")

    def with_timeout(self, timeout_seconds: float) -> "RunnerSettings":
        """Return a copy with a different run timeout.

        Example:
            ```python
            quick = settings.with_timeout(2)
            ```
        """
        return replace(self, timeout_seconds=timeout_seconds)

    @classmethod
    def from_file(cls, config_path: str) -> "RunnerSettings":
        """Create settings from a TOML file.

        Example:
            ```python
            settings = RunnerSettings.from_file("/tmp/runner.toml")
            ```
        """
        raw = _read_settings_toml(Path(config_path))
        toolchain = _toolchain_table(raw)
        compile_timeout = raw.get("compile_timeout_seconds")
        return cls(
            timeout_seconds=float(raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            compile_timeout_seconds=None if compile_timeout is None else float(compile_timeout),
            workspace_root=_optional_str(raw.get("workspace_root", DEFAULT_WORKSPACE_ROOT)),
            javac=str(toolchain.get("javac", DEFAULT_JAVAC)),
            java=str(toolchain.get("java", DEFAULT_JAVA)),
            cxx=str(toolchain.get("cxx", DEFAULT_CXX)),
            cxx_flags=_list_of_str(toolchain.get("cxx_flags", DEFAULT_CXX_FLAGS), "cxx_flags"),
            node=str(toolchain.get("node", DEFAULT_NODE)),
            python=str(toolchain.get("python", DEFAULT_PYTHON)),
            config_path=config_path,
        )
