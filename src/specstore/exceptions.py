"""Specstore exceptions."""

from pathlib import Path
from typing import Any


class SpecStoreError(Exception):
    """Base exception for specstore errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(SpecStoreError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Storage Exceptions
# =============================================================================


class StoreError(SpecStoreError):
    """Base exception for file store errors."""


class StoreIOError(StoreError):
    """Raised when a file cannot be read, written or removed.

    Attributes:
        path: Path to the file that caused the error.
        operation: The operation that failed ("read", "write", "delete").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        operation: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            path: Path to the file that caused the error.
            operation: The operation that failed.
            cause: The underlying exception.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.operation: str | None = operation
        self.cause: Exception | None = cause


class StoreParseError(StoreError):
    """Raised when file content cannot be parsed.

    Attributes:
        path: Path to the file that caused the error.
        content_type: The content type that failed to parse ("yaml", "json").
        cause: The underlying exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        content_type: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and parse context.

        Args:
            message: Human-readable error message.
            path: Path to the file that caused the error.
            content_type: The content type that failed to parse.
            cause: The underlying exception.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.content_type: str | None = content_type
        self.cause: Exception | None = cause


# =============================================================================
# Entity Exceptions
# =============================================================================


class EntityError(SpecStoreError):
    """Base exception for entity errors."""


class UnknownEntityTypeError(EntityError, ValueError):
    """Raised when an entity type or ID prefix is not recognized.

    Attributes:
        value: The type name or prefix that was not recognized.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        """Initialize with error message and the unrecognized value."""
        super().__init__(message)
        self.value: str | None = value


class InvalidEntityIdError(EntityError, ValueError):
    """Raised when a composed entity ID cannot be parsed.

    Attributes:
        value: The text that failed to parse.
    """

    def __init__(self, message: str, *, value: str | None = None) -> None:
        """Initialize with error message and the offending text."""
        super().__init__(message)
        self.value: str | None = value


class EntityNotFoundError(EntityError, KeyError):
    """Raised when an entity cannot be found.

    Attributes:
        entity_type: The type of the entity that was not found.
        number: The number of the entity that was not found.
    """

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        number: int | None = None,
    ) -> None:
        """Initialize with error message and entity context.

        Args:
            message: Human-readable error message.
            entity_type: The type of the entity that was not found.
            number: The number of the entity that was not found.
        """
        super().__init__(message)
        self.entity_type: str | None = entity_type
        self.number: int | None = number

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class EntityValidationError(EntityError, ValueError):
    """Raised when entity data fails schema validation.

    Attributes:
        entity_type: The type of the entity that failed validation.
        number: The number of the entity, if one was assigned.
        errors: One human-readable message per failing field.
    """

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        number: int | None = None,
        errors: list[str] | None = None,
    ) -> None:
        """Initialize with error message and validation context.

        Args:
            message: Human-readable error message.
            entity_type: The type of the entity that failed validation.
            number: The number of the entity, if one was assigned.
            errors: Per-field error messages.
        """
        super().__init__(message)
        self.entity_type: str | None = entity_type
        self.number: int | None = number
        self.errors: list[str] = errors if errors is not None else []


class DuplicateSlugError(EntityValidationError):
    """Raised when a finalized entity would reuse another entity's slug.

    Attributes:
        slug: The slug that is already taken.
    """

    def __init__(
        self,
        message: str,
        *,
        entity_type: str | None = None,
        number: int | None = None,
        slug: str | None = None,
    ) -> None:
        """Initialize with error message and slug context."""
        super().__init__(
            message,
            entity_type=entity_type,
            number=number,
            errors=[message],
        )
        self.slug: str | None = slug


class EntityExistsError(EntityValidationError):
    """Raised when an entity number is already occupied on disk."""


# =============================================================================
# Draft Exceptions
# =============================================================================


class DraftNotFoundError(EntityError, KeyError):
    """Raised when an envelope draft cannot be found.

    Attributes:
        draft_id: The ID of the draft that was not found.
    """

    def __init__(self, message: str, *, draft_id: str | None = None) -> None:
        """Initialize with error message and draft context."""
        super().__init__(message)
        self.draft_id: str | None = draft_id

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
