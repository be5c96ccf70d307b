"""
Core prompt storage and templating for PromptBank.

This package contains the prompt models, the JSON backed store and the
variable substitution engine.
"""

from .errors import (
    PromptBankError,
    NotFoundError,
    DuplicateNameError,
    StorageError,
    ValidationError,
    InvalidCategoryError,
    ClipboardError,
)
from .models import CategoryKind, Prompt, PromptBank, PromptCategory
from .store import ConflictPolicy, ImportMode, ImportSummary, PromptStore
from .template import apply, extract_variables

__all__ = [
    "PromptBankError",
    "NotFoundError",
    "DuplicateNameError",
    "StorageError",
    "ValidationError",
    "InvalidCategoryError",
    "ClipboardError",
    "CategoryKind",
    "Prompt",
    "PromptBank",
    "PromptCategory",
    "ConflictPolicy",
    "ImportMode",
    "ImportSummary",
    "PromptStore",
    "apply",
    "extract_variables",
]
