"""Language-specific AST providers."""
