"""AST domain enums."""

from __future__ import annotations

from enum import Enum


class CodeLanguage(str, Enum):
    """Source languages with structural parsing support."""

    PYTHON = "python"
    UNKNOWN = "unknown"

    @classmethod
    def from_extension(cls, extension: str) -> CodeLanguage:
        return EXTENSION_LANGUAGES.get(extension.lower(), cls.UNKNOWN)


class ExportKind(str, Enum):
    """Kind of a module-level exported name."""

    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"


EXTENSION_LANGUAGES: dict[str, CodeLanguage] = {
    ".py": CodeLanguage.PYTHON,
    ".pyi": CodeLanguage.PYTHON,
}
