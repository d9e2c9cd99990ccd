"""
AST provider interface.

A provider turns source text of one language family into a
ParsedSourceFile. Classification logic depends only on this interface, so
new languages are added by registering another provider.
"""

from abc import ABC, abstractmethod

from specgap.ast.domain.enums import CodeLanguage
from specgap.ast.domain.models import ASTProviderMetadata, ParsedSourceFile


class IASTProvider(ABC):
    """Structural parser for one language family."""

    @property
    @abstractmethod
    def metadata(self) -> ASTProviderMetadata:
        """Get provider metadata."""
        pass

    @abstractmethod
    async def parse(self, source_code: str, file_path: str) -> ParsedSourceFile:
        """
        Parse source text.

        Must not raise for invalid source: syntax problems are reported
        through ParsedSourceFile.parse_errors.
        """
        pass

    def supports_language(self, language: CodeLanguage) -> bool:
        """Check if provider supports a language."""
        return self.metadata.supports_language(language)
