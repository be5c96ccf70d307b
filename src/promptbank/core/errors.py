"""
Structured error system for PromptBank.

Every failure surfaced to the command layer is a ``PromptBankError``
subclass carrying a human-readable message and optional details.
"""

from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class PromptBankError(Exception):
    """Base exception for all PromptBank errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        return self.message


class NotFoundError(PromptBankError):
    """No prompt matches the given id or name."""

    def __init__(self, key: str, **kwargs):
        super().__init__(f"Prompt not found: {key}", **kwargs)
        self.details["key"] = key


class DuplicateNameError(PromptBankError):
    """A prompt with the requested name already exists."""

    def __init__(self, name: str, existing_id: Optional[str] = None, **kwargs):
        super().__init__(f"A prompt named '{name}' already exists", **kwargs)
        self.details["name"] = name
        if existing_id:
            self.details["existing_id"] = existing_id


class StorageError(PromptBankError):
    """The data file could not be read, written or understood."""

    def __init__(
        self,
        message: str = "Storage error",
        path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if path:
            self.details["path"] = path


class ValidationError(PromptBankError):
    """Invalid user input."""

    def __init__(
        self,
        message: str = "Invalid input",
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        if field:
            self.details["field"] = field


class InvalidCategoryError(ValidationError):
    """Unknown prompt category."""

    def __init__(self, value: str, **kwargs):
        super().__init__(f"Invalid prompt category: {value}", field="category", **kwargs)
        self.details["value"] = value


class ClipboardError(PromptBankError):
    """Copying to the system clipboard failed."""

    def __init__(self, message: str = "Clipboard unavailable", **kwargs):
        super().__init__(f"Clipboard error: {message}", **kwargs)
