"""
Typed exceptions for the depreciation scheduler.

Callers catch by type; ``code`` is a stable machine-readable identifier.
"""


class DepreciationError(Exception):
    """Base class for all scheduler errors."""
    code = "DEPRECIATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DepreciationError):
    """Raised when asset input cannot produce a schedule."""
    code = "VALIDATION_ERROR"


class PersistenceError(DepreciationError):
    """Raised when the record store rejects a write, read or delete."""
    code = "PERSISTENCE_ERROR"
