"""Custom exceptions for Forum Bridge.

This module defines exception classes for the error conditions that can
occur while reading the source database, writing to the target platform
and tracking imported records.
"""


class ForumBridgeError(Exception):
    """Base exception for all Forum Bridge errors."""

    pass


class ConfigurationError(ForumBridgeError):
    """Raised when configuration is invalid or missing."""

    pass


class SourceError(ForumBridgeError):
    """Base class for errors raised while reading the source database."""

    pass


class SourceConnectionError(SourceError):
    """Raised when the source database cannot be reached."""

    pass


class TargetError(ForumBridgeError):
    """Base class for errors raised by the target platform."""

    def __init__(self, message: str, errors: list[str] | None = None):
        """Initialize target error.

        Args:
            message: Error message
            errors: Individual validation messages, if any
        """
        self.message = message
        self.errors = errors or []
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with the validation details."""
        if self.errors:
            return f"{self.message}: {', '.join(self.errors)}"
        return self.message


class TargetValidationError(TargetError):
    """Raised when the target platform rejects an entity as invalid."""

    pass


class NotFoundError(TargetError):
    """Raised when a target entity does not exist."""

    pass


class StateError(ForumBridgeError):
    """Raised when identity map operations fail."""

    pass


class DuplicateMappingError(StateError):
    """Raised when an import id is mapped twice for the same entity kind."""

    def __init__(self, entity_kind: str, import_id: str, existing_id: int, new_id: int):
        self.entity_kind = entity_kind
        self.import_id = import_id
        self.existing_id = existing_id
        self.new_id = new_id
        super().__init__(
            f"{entity_kind} import id {import_id!r} is already mapped to {existing_id}, "
            f"refusing to remap it to {new_id}"
        )
