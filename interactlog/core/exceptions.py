"""
interactlog Exception Hierarchy

All exceptions inherit from InteractLogError for easy catching.

The ledger's own append and read paths raise none of these. Environment
failures (OSError, MemoryError) reach the caller unmodified.
"""


class InteractLogError(Exception):
    """Base exception for all interactlog errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class StoreError(InteractLogError):
    """Raised when the backing store cannot be read"""
    pass


class StoreCorruptedError(StoreError):
    """Raised when a stored line is malformed or out of index order"""
    pass


class ConfigError(InteractLogError):
    """Raised when configuration is invalid"""
    pass


class UnknownOperationError(InteractLogError):
    """Raised when an external operation name is not recognised"""
    pass
