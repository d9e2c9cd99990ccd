"""
Domain exceptions for specgap.

All engine errors inherit from SpecGapError. Recoverable per-document
failures raise SpecParsingError; directory-level failures that leave the
batch without its input raise GapDetectionError.
"""


class SpecGapError(Exception):
    """Base class for all specgap exceptions."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class SpecParsingError(SpecGapError):
    """Raised when one specification document cannot be read or minimally parsed."""

    def __init__(self, path: str, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(
            f"Failed to parse spec at {self.path}: {reason}",
            {"path": self.path, "reason": reason},
        )


class GapDetectionError(SpecGapError):
    """Raised when a directory-level operation fails and the batch cannot proceed."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Gap detection failed during {operation}: {reason}",
            {"operation": operation, "reason": reason},
        )


class ConfigurationError(SpecGapError):
    """Raised when configuration is invalid or corrupt."""

    pass
