from __future__ import annotations

from dataclasses import dataclass

from ..errors import UnsupportedLanguage


@dataclass(frozen=True, slots=True)
class LanguageCapabilities:
    """Contract a language backend offers to callers.

    `input_mode` says how the optional user input reaches the program:
    `"stdin"` pipes it verbatim, `"argv"` splits it on whitespace into
    command-line arguments.

    Example:
        ```python
        caps = LanguageCapabilities("python", "Python", False, "stdin", None, "file")
        ```
    """

    language: str
    display_name: str
    compiled: bool
    input_mode: str
    source_name: str | None
    workspace_kind: str


_CAPABILITIES: dict[str, LanguageCapabilities] = {
    "java": LanguageCapabilities("java", "Java", True, "stdin", "Main.java", "directory"),
    "cpp": LanguageCapabilities("cpp", "C++", True, "stdin", "main.cpp", "directory"),
    "javascript": LanguageCapabilities("javascript", "JavaScript", False, "argv", None, "file"),
    "python": LanguageCapabilities("python", "Python", False, "stdin", None, "file"),
}

SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(_CAPABILITIES)


def capabilities_for_language(language: str) -> LanguageCapabilities:
    """Return the capability record for a supported language.

    Example:
        ```python
        caps = capabilities_for_language("javascript")
        assert caps.input_mode == "argv"
        ```
    """
    try:
        return _CAPABILITIES[language]
    except KeyError:
        raise UnsupportedLanguage(language) from None


def all_capabilities() -> list[LanguageCapabilities]:
    """Return capability records for every supported language.

    Example:
        ```python
        names = [caps.language for caps in all_capabilities()]
        ```
    """
    return list(_CAPABILITIES.values())
