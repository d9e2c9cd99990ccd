"""
AST domain models.

Language-neutral structural view of one source file: functions, classes,
imports and exports. Providers translate their language's syntax tree into
ParsedSourceFile; the gap analyzer only ever reads this shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from specgap.ast.domain.enums import CodeLanguage, ExportKind


@dataclass(frozen=True)
class SourceLocation:
    """Position of a declaration (1-based line, 0-based column)."""

    file_path: str
    line: int
    column: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"file_path": self.file_path, "line": self.line, "column": self.column}


@dataclass(frozen=True)
class FunctionParameter:
    name: str
    type_annotation: str | None = None
    optional: bool = False
    default_value: str | None = None
    is_rest: bool = False  # *args / **kwargs


@dataclass(frozen=True)
class FunctionSignature:
    """
    A function, method or named lambda.

    Attributes:
        params: Parameters in declaration order (method receivers excluded)
        is_exported: Module-level and public
        is_stub: Body has no real statements or only returns guidance text
        doc_comment: Docstring, when present
    """

    name: str
    params: tuple[FunctionParameter, ...] = ()
    return_type: str | None = None
    is_async: bool = False
    is_exported: bool = False
    is_stub: bool = False
    location: SourceLocation | None = None
    doc_comment: str | None = None

    @property
    def param_names(self) -> list[str]:
        return [p.name for p in self.params]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "params": self.param_names,
            "return_type": self.return_type,
            "is_async": self.is_async,
            "is_exported": self.is_exported,
            "is_stub": self.is_stub,
            "location": self.location.to_dict() if self.location else None,
        }


@dataclass(frozen=True)
class PropertyDeclaration:
    """Class-level attribute."""

    name: str
    type_annotation: str | None = None
    is_static: bool = False
    is_private: bool = False
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ClassDeclaration:
    """A class with its methods and class-level properties."""

    name: str
    is_exported: bool = False
    superclass: str | None = None
    interfaces: tuple[str, ...] = ()
    methods: tuple[FunctionSignature, ...] = ()
    properties: tuple[PropertyDeclaration, ...] = ()
    location: SourceLocation | None = None

    def find_method(self, name: str) -> FunctionSignature | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None


@dataclass(frozen=True)
class ImportSpecifier:
    name: str
    alias: str | None = None


@dataclass(frozen=True)
class ImportDeclaration:
    """``import x`` / ``from .x import y``; level counts leading dots."""

    source: str
    specifiers: tuple[ImportSpecifier, ...] = ()
    level: int = 0
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ExportDeclaration:
    name: str
    kind: ExportKind
    location: SourceLocation | None = None


@dataclass(frozen=True)
class ParseError:
    """
    Parse error information.

    File-level failures (unreadable, undecodable, syntax error, unsupported
    extension) are recorded here instead of being raised.
    """

    message: str
    location: SourceLocation | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "message": self.message,
            "location": self.location.to_dict() if self.location else None,
            "error_code": self.error_code,
        }


@dataclass
class ParsedSourceFile:
    """Structural summary of one source file."""

    file_path: str
    language: CodeLanguage = CodeLanguage.UNKNOWN
    functions: list[FunctionSignature] = field(default_factory=list)
    classes: list[ClassDeclaration] = field(default_factory=list)
    imports: list[ImportDeclaration] = field(default_factory=list)
    exports: list[ExportDeclaration] = field(default_factory=list)
    parse_errors: list[ParseError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if the file failed to parse."""
        return len(self.parse_errors) > 0

    def find_function(self, name: str) -> FunctionSignature | None:
        """
        Look up a function by name.

        ``Class.method`` names a method. A bare name matches free functions
        first, then methods of any class.
        """
        if "." in name:
            class_name, _, method_name = name.rpartition(".")
            declaration = self.find_class(class_name)
            return declaration.find_method(method_name) if declaration else None

        for function in self.functions:
            if function.name == name:
                return function
        for declaration in self.classes:
            method = declaration.find_method(name)
            if method:
                return method
        return None

    def find_class(self, name: str) -> ClassDeclaration | None:
        for declaration in self.classes:
            if declaration.name == name:
                return declaration
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "file_path": self.file_path,
            "language": self.language.value,
            "functions": [f.to_dict() for f in self.functions],
            "classes": [c.name for c in self.classes],
            "imports": [i.source for i in self.imports],
            "exports": [e.name for e in self.exports],
            "parse_errors": [e.to_dict() for e in self.parse_errors],
        }


@dataclass
class ASTProviderMetadata:
    """
    Metadata about an AST provider.

    Used for provider registration and lookup by file extension.
    """

    name: str
    supported_languages: list[CodeLanguage]
    extensions: list[str]
    version: str = "1.0.0"
    description: str = ""

    def supports_language(self, language: CodeLanguage) -> bool:
        """Check if provider supports a language."""
        return language in self.supported_languages
