"""AST provider registry, keyed by file extension."""

from __future__ import annotations

from specgap.ast.application.provider_interface import IASTProvider
from specgap.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ASTProviderRegistry:
    """
    Maps file extensions to AST providers.

    A later registration for the same extension replaces the earlier one.
    """

    def __init__(self) -> None:
        self._providers: dict[str, IASTProvider] = {}

    def register(self, provider: IASTProvider) -> None:
        for extension in provider.metadata.extensions:
            self._providers[extension.lower()] = provider
        logger.debug(
            "ast_provider_registered",
            provider=provider.metadata.name,
            extensions=provider.metadata.extensions,
        )

    def get_by_extension(self, extension: str) -> IASTProvider | None:
        return self._providers.get(extension.lower())

    @property
    def supported_extensions(self) -> list[str]:
        return sorted(self._providers)


def default_registry() -> ASTProviderRegistry:
    """Registry with the built-in providers."""
    from specgap.ast.providers.python_ast_provider import PythonASTProvider

    registry = ASTProviderRegistry()
    registry.register(PythonASTProvider())
    return registry
