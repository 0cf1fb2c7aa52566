"""
Directory Errors
Exception hierarchy shared by the store adapter, pipelines and routes
"""
from typing import Optional


class DirectoryError(Exception):
    """Base error for the handle directory."""


class InvalidHandleFormat(DirectoryError):
    """Raised when a handle fails its platform's validation pattern."""

    def __init__(self, platform: str, handle: str):
        self.platform = platform
        self.handle = handle
        super().__init__(f"Invalid {platform} handle: {handle!r}")


class ValidationError(DirectoryError):
    """Raised when query input is out of bounds, before any store access."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class StoreError(DirectoryError):
    """Raised when a directory store call fails."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Directory store {operation} failed{detail}")


class StoreUnavailable(StoreError):
    """Raised when the store is not configured or cannot be reached."""


class DuplicateKey(StoreError):
    """Raised when an insert hits the unique (platform, handle) constraint."""


class RecordNotFound(DirectoryError):
    """Raised when an administrative operation targets a missing record."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Handle record not found: {record_id}")
