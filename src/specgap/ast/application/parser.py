"""
Code AST Parser.

Reads a source file, picks a provider by extension and returns its
ParsedSourceFile. File-level failures never raise; they come back as
parse_errors so one bad file cannot abort a batch.
"""

from __future__ import annotations

from pathlib import Path

from specgap.ast.application.registry import ASTProviderRegistry, default_registry
from specgap.ast.domain.models import (
    ClassDeclaration,
    FunctionSignature,
    ParsedSourceFile,
    ParseError,
)
from specgap.shared.infrastructure.logging import get_logger
from specgap.shared.utils.file_io import read_text_async

logger = get_logger(__name__)


def verify_signature(function: FunctionSignature, expected_params: list[str] | tuple[str, ...]) -> bool:
    """
    Positional parameter-name check.

    True when the function has at least as many parameters as expected and
    each expected name matches at its position. Extra trailing parameters
    are tolerated.
    """
    names = function.param_names
    if len(names) < len(expected_params):
        return False
    return all(actual == expected for actual, expected in zip(names, expected_params))


class ParsedFileCache:
    """
    Path-keyed cache of parse results, scoped to one analysis run.

    Only saves repeated reads; cached and fresh parses are identical.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ParsedSourceFile] = {}

    @staticmethod
    def key(path: str | Path) -> str:
        return str(Path(path).resolve())

    def get(self, path: str | Path) -> ParsedSourceFile | None:
        return self._entries.get(self.key(path))

    def put(self, path: str | Path, parsed: ParsedSourceFile) -> None:
        self._entries[self.key(path)] = parsed

    def __len__(self) -> int:
        return len(self._entries)


class CodeASTParser:
    """
    Structural parser front-end.

    Args:
        registry: Providers by extension (built-ins when omitted)
        cache: Optional per-run parse cache
    """

    def __init__(self, registry: ASTProviderRegistry | None = None, cache: ParsedFileCache | None = None):
        self.registry = registry or default_registry()
        self.cache = cache

    async def parse_file(self, path: str | Path) -> ParsedSourceFile:
        file_path = str(path)
        if self.cache is not None:
            cached = self.cache.get(file_path)
            if cached is not None:
                return cached

        parsed = await self._parse_uncached(file_path)
        if parsed.has_errors:
            logger.debug(
                "source_parse_failed",
                file=file_path,
                errors=[e.message for e in parsed.parse_errors],
            )

        if self.cache is not None:
            self.cache.put(file_path, parsed)
        return parsed

    async def _parse_uncached(self, file_path: str) -> ParsedSourceFile:
        extension = Path(file_path).suffix.lower()
        provider = self.registry.get_by_extension(extension)
        if provider is None:
            return ParsedSourceFile(
                file_path=file_path,
                parse_errors=[
                    ParseError(message=f"Unsupported file extension: {extension or '<none>'}", error_code="unsupported")
                ],
            )

        try:
            source_code = await read_text_async(file_path)
        except UnicodeDecodeError as e:
            return ParsedSourceFile(
                file_path=file_path,
                parse_errors=[ParseError(message=f"Cannot decode file: {e.reason}", error_code="decode")],
            )
        except OSError as e:
            return ParsedSourceFile(
                file_path=file_path,
                parse_errors=[ParseError(message=f"Cannot read file: {e.strerror or e}", error_code="io")],
            )

        return await provider.parse(source_code, file_path)

    def verify_signature(self, function: FunctionSignature, expected_params: list[str] | tuple[str, ...]) -> bool:
        return verify_signature(function, expected_params)

    async def find_function(self, path: str | Path, name: str) -> FunctionSignature | None:
        parsed = await self.parse_file(path)
        return parsed.find_function(name)

    async def find_class(self, path: str | Path, name: str) -> ClassDeclaration | None:
        parsed = await self.parse_file(path)
        return parsed.find_class(name)
