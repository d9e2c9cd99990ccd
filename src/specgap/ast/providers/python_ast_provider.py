"""
Python Native AST Provider.

Uses Python's built-in ast module to extract functions, classes, imports
and exports from Python source.
"""

from __future__ import annotations

import ast

from specgap.ast.application.provider_interface import IASTProvider
from specgap.ast.domain.enums import CodeLanguage, ExportKind
from specgap.ast.domain.models import (
    ASTProviderMetadata,
    ClassDeclaration,
    ExportDeclaration,
    FunctionParameter,
    FunctionSignature,
    ImportDeclaration,
    ImportSpecifier,
    ParsedSourceFile,
    ParseError,
    PropertyDeclaration,
    SourceLocation,
)

# Lower-cased phrases that mark a returned string as placeholder guidance.
STUB_PHRASES = ("todo", "implement", "not yet", "coming soon")

FunctionNode = ast.FunctionDef | ast.AsyncFunctionDef


def _unparse(node: ast.AST | None) -> str | None:
    return ast.unparse(node) if node is not None else None


def _is_placeholder(statement: ast.stmt) -> bool:
    """``pass``, ``...`` or a bare string (docstring)."""
    if isinstance(statement, ast.Pass):
        return True
    if isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Constant):
        value = statement.value.value
        return isinstance(value, str) or value is Ellipsis
    return False


def is_guidance_text(node: ast.AST | None) -> bool:
    """String literal whose lower-cased text contains a stub phrase."""
    if not isinstance(node, ast.Constant) or not isinstance(node.value, str):
        return False
    lowered = node.value.lower()
    return any(phrase in lowered for phrase in STUB_PHRASES)


def is_stub_body(body: list[ast.stmt]) -> bool:
    """
    Stub rule for function bodies.

    A body with no real statements (only a docstring, ``pass`` and/or
    ``...``) is a stub, as is a body whose single real statement returns
    guidance text such as ``return "TODO: implement"``. Anything else is
    not, ``raise NotImplementedError()`` included.
    """
    statements = [statement for statement in body if not _is_placeholder(statement)]
    if not statements:
        return True
    if len(statements) == 1 and isinstance(statements[0], ast.Return):
        return is_guidance_text(statements[0].value)
    return False


def _named_lambda(node: ast.stmt) -> tuple[str, ast.Lambda] | None:
    """``name = lambda ...`` (annotated or not)."""
    if (
        isinstance(node, ast.Assign)
        and len(node.targets) == 1
        and isinstance(node.targets[0], ast.Name)
        and isinstance(node.value, ast.Lambda)
    ):
        return node.targets[0].id, node.value
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and isinstance(node.value, ast.Lambda):
        return node.target.id, node.value
    return None


def _is_staticmethod(node: FunctionNode) -> bool:
    for decorator in node.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id == "staticmethod":
            return True
        if isinstance(decorator, ast.Attribute) and decorator.attr == "staticmethod":
            return True
    return False


def declared_all(tree: ast.Module) -> list[str] | None:
    """Names listed in a literal ``__all__``, or None when the module declares none."""
    names: list[str] | None = None
    for node in tree.body:
        value: ast.expr | None = None
        if isinstance(node, ast.Assign) and any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
            value = node.value
            names = []
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.target.id == "__all__":
            value = node.value
            names = []
        elif isinstance(node, ast.AugAssign) and isinstance(node.target, ast.Name) and node.target.id == "__all__":
            value = node.value
            names = names if names is not None else []

        if isinstance(value, (ast.List, ast.Tuple)):
            for element in value.elts:
                if isinstance(element, ast.Constant) and isinstance(element.value, str):
                    names.append(element.value)
    return names


class PythonASTProvider(IASTProvider):
    """
    Native Python AST provider using built-in ast module.

    No external dependencies required - uses stdlib only.

    Limitations:
        - Python only
        - Syntax must be valid for the running interpreter
    """

    def __init__(self) -> None:
        """Initialize Python AST provider."""
        self._metadata = ASTProviderMetadata(
            name="python-native",
            supported_languages=[CodeLanguage.PYTHON],
            extensions=[".py", ".pyi"],
            version="1.0.0",
            description="Native Python AST parser using stdlib ast module",
        )

    @property
    def metadata(self) -> ASTProviderMetadata:
        """Get provider metadata."""
        return self._metadata

    async def parse(self, source_code: str, file_path: str) -> ParsedSourceFile:
        """
        Parse Python source code.

        Args:
            source_code: Python source code
            file_path: File path for locations and error reporting

        Returns:
            ParsedSourceFile; on a syntax error only parse_errors is filled
        """
        parsed = ParsedSourceFile(file_path=file_path, language=CodeLanguage.PYTHON)

        try:
            tree = ast.parse(source_code, filename=file_path)
        except SyntaxError as e:
            parsed.parse_errors.append(
                ParseError(
                    message=f"Syntax error: {e.msg}",
                    location=SourceLocation(file_path, e.lineno, e.offset or 0) if e.lineno else None,
                    error_code="syntax",
                )
            )
            return parsed
        except ValueError as e:
            # e.g. source containing null bytes
            parsed.parse_errors.append(ParseError(message=f"Parse error: {e!s}", error_code="parse"))
            return parsed

        _DeclarationCollector(file_path, declared_all(tree)).collect(tree, parsed)
        return parsed


class _DeclarationCollector:
    """Walks a module once, filling a ParsedSourceFile."""

    def __init__(self, file_path: str, all_names: list[str] | None):
        self.file_path = file_path
        self.all_names = all_names

    def collect(self, tree: ast.Module, parsed: ParsedSourceFile) -> None:
        self._visit_body(tree.body, parsed, module_level=True)
        parsed.imports.extend(self._imports(tree))
        parsed.exports.extend(self._exports(tree))

    def is_public(self, name: str) -> bool:
        if self.all_names is not None:
            return name in self.all_names
        return not name.startswith("_")

    def _location(self, node: ast.AST) -> SourceLocation:
        return SourceLocation(self.file_path, node.lineno, node.col_offset)

    def _visit_body(self, body: list[ast.stmt], parsed: ParsedSourceFile, module_level: bool) -> None:
        for node in body:
            self._visit(node, parsed, module_level)

    def _visit(self, node: ast.stmt, parsed: ParsedSourceFile, module_level: bool) -> None:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            parsed.functions.append(self._function(node, exported=module_level and self.is_public(node.name)))
            self._visit_body(node.body, parsed, module_level=False)
            return

        if isinstance(node, ast.ClassDef):
            parsed.classes.append(self._class(node, exported=module_level and self.is_public(node.name)))
            for child in node.body:
                if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    self._visit_body(child.body, parsed, module_level=False)
                elif isinstance(child, ast.ClassDef):
                    self._visit(child, parsed, module_level=False)
            return

        named = _named_lambda(node)
        if named:
            name, function = named
            parsed.functions.append(
                FunctionSignature(
                    name=name,
                    params=self._parameters(function.args),
                    is_exported=module_level and self.is_public(name),
                    is_stub=is_guidance_text(function.body),
                    location=self._location(node),
                )
            )
            return

        # definitions under if / try / with / loops are collected but never exported
        for field_name in ("body", "orelse", "finalbody", "handlers"):
            children = getattr(node, field_name, None)
            if not isinstance(children, list):
                continue
            for child in children:
                if isinstance(child, ast.ExceptHandler):
                    self._visit_body(child.body, parsed, module_level=False)
                elif isinstance(child, ast.stmt):
                    self._visit(child, parsed, module_level=False)

    def _function(self, node: FunctionNode, exported: bool, drop_receiver: bool = False) -> FunctionSignature:
        params = self._parameters(node.args)
        if drop_receiver and (node.args.posonlyargs or node.args.args):
            params = params[1:]
        return FunctionSignature(
            name=node.name,
            params=params,
            return_type=_unparse(node.returns),
            is_async=isinstance(node, ast.AsyncFunctionDef),
            is_exported=exported,
            is_stub=is_stub_body(node.body),
            location=self._location(node),
            doc_comment=ast.get_docstring(node),
        )

    def _parameters(self, args: ast.arguments) -> tuple[FunctionParameter, ...]:
        positional = [*args.posonlyargs, *args.args]
        defaults: list[ast.expr | None] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)

        params = [self._parameter(arg, default) for arg, default in zip(positional, defaults)]
        if args.vararg:
            params.append(
                FunctionParameter(
                    name=args.vararg.arg,
                    type_annotation=_unparse(args.vararg.annotation),
                    optional=True,
                    is_rest=True,
                )
            )
        params.extend(self._parameter(arg, default) for arg, default in zip(args.kwonlyargs, args.kw_defaults))
        if args.kwarg:
            params.append(
                FunctionParameter(
                    name=args.kwarg.arg,
                    type_annotation=_unparse(args.kwarg.annotation),
                    optional=True,
                    is_rest=True,
                )
            )
        return tuple(params)

    def _parameter(self, arg: ast.arg, default: ast.expr | None) -> FunctionParameter:
        return FunctionParameter(
            name=arg.arg,
            type_annotation=_unparse(arg.annotation),
            optional=default is not None,
            default_value=_unparse(default),
        )

    def _class(self, node: ast.ClassDef, exported: bool) -> ClassDeclaration:
        methods: list[FunctionSignature] = []
        properties: list[PropertyDeclaration] = []

        for child in node.body:
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                methods.append(self._function(child, exported=False, drop_receiver=not _is_staticmethod(child)))
            elif isinstance(child, ast.Assign):
                for target in child.targets:
                    if isinstance(target, ast.Name):
                        properties.append(
                            PropertyDeclaration(
                                name=target.id,
                                is_static=True,
                                is_private=target.id.startswith("_"),
                                location=self._location(child),
                            )
                        )
            elif isinstance(child, ast.AnnAssign) and isinstance(child.target, ast.Name):
                annotation = _unparse(child.annotation)
                properties.append(
                    PropertyDeclaration(
                        name=child.target.id,
                        type_annotation=annotation,
                        is_static="ClassVar" in (annotation or ""),
                        is_private=child.target.id.startswith("_"),
                        location=self._location(child),
                    )
                )

        return ClassDeclaration(
            name=node.name,
            is_exported=exported,
            superclass=_unparse(node.bases[0]) if node.bases else None,
            interfaces=tuple(ast.unparse(base) for base in node.bases[1:]),
            methods=tuple(methods),
            properties=tuple(properties),
            location=self._location(node),
        )

    def _imports(self, tree: ast.Module) -> list[ImportDeclaration]:
        nodes = sorted(
            (node for node in ast.walk(tree) if isinstance(node, (ast.Import, ast.ImportFrom))),
            key=lambda node: (node.lineno, node.col_offset),
        )
        imports: list[ImportDeclaration] = []
        for node in nodes:
            if isinstance(node, ast.Import):
                for alias in node.names:
                    imports.append(
                        ImportDeclaration(
                            source=alias.name,
                            specifiers=(ImportSpecifier(name=alias.name, alias=alias.asname),),
                            location=self._location(node),
                        )
                    )
            else:
                imports.append(
                    ImportDeclaration(
                        source=node.module or "",
                        specifiers=tuple(ImportSpecifier(name=a.name, alias=a.asname) for a in node.names),
                        level=node.level,
                        location=self._location(node),
                    )
                )
        return imports

    def _exports(self, tree: ast.Module) -> list[ExportDeclaration]:
        symbols: dict[str, tuple[ExportKind, SourceLocation]] = {}
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                symbols.setdefault(node.name, (ExportKind.FUNCTION, self._location(node)))
            elif isinstance(node, ast.ClassDef):
                symbols.setdefault(node.name, (ExportKind.CLASS, self._location(node)))
            elif _named_lambda(node):
                symbols.setdefault(_named_lambda(node)[0], (ExportKind.FUNCTION, self._location(node)))
            elif isinstance(node, (ast.Assign, ast.AnnAssign)):
                targets = node.targets if isinstance(node, ast.Assign) else [node.target]
                for target in targets:
                    if isinstance(target, ast.Name) and not target.id.startswith("__"):
                        symbols.setdefault(target.id, (ExportKind.VARIABLE, self._location(node)))

        if self.all_names is not None:
            exports = []
            for name in self.all_names:
                kind, location = symbols.get(name, (ExportKind.VARIABLE, None))
                exports.append(ExportDeclaration(name=name, kind=kind, location=location))
            return exports

        return [
            ExportDeclaration(name=name, kind=kind, location=location)
            for name, (kind, location) in symbols.items()
            if not name.startswith("_")
        ]
