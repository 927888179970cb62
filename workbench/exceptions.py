"""Custom exception hierarchy for workbench.

Exception Hierarchy:
    WorkbenchError (base)
    ├── StorageError - local object store
    │   ├── NotFoundError
    │   ├── SchemaVersionMismatchError
    │   ├── ValidationFailedError
    │   └── StorageIOError (retryable)
    └── ConfigurationError - settings/environment issues

The placement engine has no error taxonomy: its operations are total.

Usage:
    from workbench.exceptions import NotFoundError, StorageIOError

    try:
        # store operation
    except sqlite3.Error as e:
        raise StorageIOError("Failed to delete collection", collection_id=cid) from e
"""

from typing import Any, Optional


class WorkbenchError(Exception):
    """Base exception for all workbench errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about the error (e.g., IDs, paths)
        retryable: Whether this error might succeed on retry
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        **context: Any,
    ) -> None:
        self.message = message
        self.context = context
        self.retryable = retryable
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(WorkbenchError):
    """Base exception for store operations."""

    pass


class NotFoundError(StorageError):
    """An update targeted a record that does not exist."""

    def __init__(
        self,
        message: str = "Record not found",
        *,
        entity: Optional[str] = None,
        record_id: Optional[str] = None,
        **context: Any,
    ) -> None:
        if entity:
            context["entity"] = entity
        if record_id is not None:
            context["record_id"] = record_id
        super().__init__(message, **context)


class SchemaVersionMismatchError(StorageError):
    """The on-disk schema (or an import document) is newer than this code understands."""

    def __init__(
        self,
        message: str = "Unsupported schema version",
        *,
        found: Optional[int] = None,
        supported: Optional[int] = None,
        **context: Any,
    ) -> None:
        if found is not None:
            context["found"] = found
        if supported is not None:
            context["supported"] = supported
        super().__init__(message, **context)


class ValidationFailedError(StorageError):
    """Input was rejected before any write happened."""

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        **context: Any,
    ) -> None:
        if field:
            context["field"] = field
        super().__init__(message, **context)


class StorageIOError(StorageError):
    """The underlying database or filesystem failed mid-operation."""

    def __init__(self, message: str = "Storage I/O failed", **context: Any) -> None:
        super().__init__(message, retryable=True, **context)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(WorkbenchError):
    """Configuration or settings error."""

    def __init__(
        self,
        message: str = "Configuration error",
        *,
        setting: Optional[str] = None,
        **context: Any,
    ) -> None:
        if setting:
            context["setting"] = setting
        super().__init__(message, **context)
