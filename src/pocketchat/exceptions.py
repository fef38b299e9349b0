"""
Custom exceptions for PocketChat.

This module defines all custom exceptions used by the storage layer and
the command-line shell so callers can tell failure kinds apart.
"""

from typing import Any, Optional


class PocketChatError(Exception):
    """Base exception for all PocketChat errors."""

    def __init__(self, message: str,
                 details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Storage Exceptions
class StorageError(PocketChatError):
    """Base exception for storage-related errors."""


class StoreUnavailableError(StorageError):
    """Raised when the database file or handle cannot be opened or written."""

    def __init__(
        self,
        db_path: str,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize store unavailable error.

        Args:
            db_path: Path of the database file.
            reason: Optional reason reported by the driver.
            details: Optional dictionary with additional error details.
        """
        message = f"Store unavailable at '{db_path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, details)
        self.db_path = db_path
        self.reason = reason


class SchemaCorruptionError(StorageError):
    """Raised when a schema probe fails for a reason other than a missing column."""

    def __init__(
        self,
        table: str,
        reason: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize schema corruption error.

        Args:
            table: The table being probed.
            reason: What was wrong with it.
            details: Optional dictionary with additional error details.
        """
        super().__init__(f"Schema of table '{table}' is unusable: {reason}", details)
        self.table = table
        self.reason = reason


class DuplicateUsernameError(StorageError):
    """Raised when registering a username that is already taken."""

    def __init__(
        self, username: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(f"Username '{username}' already exists", details)
        self.username = username


class NotFoundError(StorageError):
    """Raised when an operation references a record that does not exist."""

    def __init__(
        self,
        table: str,
        key: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            table: The table where the record was expected.
            key: The lookup key of the missing record.
            details: Optional dictionary with additional error details.
        """
        message = f"Record not found in table '{table}'"
        if key:
            message += f" for '{key}'"
        super().__init__(message, details)
        self.table = table
        self.key = key


# Validation Exceptions
class ValidationError(PocketChatError):
    """Base exception for validation-related errors."""

    def __init__(
        self,
        field: str,
        value: Any,
        reason: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            field: The field that failed validation.
            value: The invalid value.
            reason: The reason for validation failure.
            details: Optional dictionary with additional error details.
        """
        super().__init__(f"Validation failed for '{field}': {reason}", details)
        self.field = field
        self.value = value
        self.reason = reason


class InvalidInputError(ValidationError):
    """Raised when a required field is empty or blank."""

    def __init__(
        self, field: str, value: Any, details: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(field, value, "must not be blank", details)


class EmptyContentError(ValidationError):
    """Raised when a message has neither text nor an image."""

    def __init__(self, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(
            "message", None, "a message needs text or an image", details
        )


# Configuration Exceptions
class ConfigurationError(PocketChatError):
    """Base exception for configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    def __init__(
        self, config_key: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize missing config error.

        Args:
            config_key: The missing configuration key.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"Missing required configuration: '{config_key}'", details)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid config error.

        Args:
            config_key: The configuration key with invalid value.
            value: The invalid value.
            reason: Optional reason why the value is invalid.
            details: Optional dictionary with additional error details.
        """
        message = f"Invalid configuration value for '{config_key}': {value}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason
