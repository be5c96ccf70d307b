"""
Data models for PromptBank.

This module defines the prompt record, its category variant and the
collection that is persisted to the data file.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer, model_validator

from .errors import InvalidCategoryError
from .template import extract_variables

BANK_VERSION = "1.0"
CUSTOM_PREFIX = "custom:"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_id() -> str:
    """Generate a short prompt identifier."""
    return uuid.uuid4().hex[:8]


class CategoryKind(str, Enum):
    """Kinds of prompt categories."""
    SYSTEM = "system"
    SKILL = "skill"
    AGENT = "agent"
    ROLE = "role"
    TASK = "task"
    TEMPLATE = "template"
    CUSTOM = "custom"


# Categories offered for interactive selection
BUILTIN_KINDS: Tuple[CategoryKind, ...] = tuple(
    kind for kind in CategoryKind if kind is not CategoryKind.CUSTOM
)


def _split_category(value: str) -> Tuple[CategoryKind, Optional[str]]:
    text = value.strip().lower()
    if text.startswith(CUSTOM_PREFIX):
        label = text[len(CUSTOM_PREFIX):].strip()
        if not label:
            raise ValueError(f"custom category needs a label: '{value}'")
        return CategoryKind.CUSTOM, label
    try:
        kind = CategoryKind(text)
    except ValueError:
        raise ValueError(f"unknown category '{value}'") from None
    if kind is CategoryKind.CUSTOM:
        raise ValueError(f"custom category needs a label: '{value}'")
    return kind, None


class PromptCategory(BaseModel):
    """
    Category of a prompt.

    Either one of the fixed kinds or ``custom`` with a label. Serialized as
    the lowercase kind name, or ``{"custom": "<label>"}`` for custom
    categories. The ``custom:<label>`` string form is accepted on input.
    """

    model_config = ConfigDict(frozen=True)

    kind: CategoryKind
    label: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def coerce_input(cls, data: Any) -> Any:
        if isinstance(data, str):
            kind, label = _split_category(data)
            return {"kind": kind, "label": label}
        if isinstance(data, dict) and set(data) == {"custom"}:
            label = data["custom"]
            if isinstance(label, str):
                label = label.strip().lower()
            return {"kind": CategoryKind.CUSTOM, "label": label}
        return data

    @model_validator(mode="after")
    def validate_label(self) -> "PromptCategory":
        if self.kind is CategoryKind.CUSTOM:
            if not self.label or not self.label.strip():
                raise ValueError("custom category needs a label")
        elif self.label is not None:
            raise ValueError(f"category '{self.kind.value}' takes no label")
        return self

    @model_serializer
    def serialize_category(self) -> Union[str, Dict[str, str]]:
        if self.kind is CategoryKind.CUSTOM:
            return {"custom": self.label}
        return self.kind.value

    @classmethod
    def parse(cls, value: str) -> "PromptCategory":
        """Parse a category name such as ``system`` or ``custom:review``.

        Raises:
            InvalidCategoryError: If the value is not a known category
        """
        try:
            kind, label = _split_category(value)
        except ValueError:
            raise InvalidCategoryError(value) from None
        return cls(kind=kind, label=label)

    @classmethod
    def custom(cls, label: str) -> "PromptCategory":
        return cls.parse(f"{CUSTOM_PREFIX}{label}")

    @property
    def is_custom(self) -> bool:
        return self.kind is CategoryKind.CUSTOM

    def __str__(self) -> str:
        if self.is_custom:
            return f"{CUSTOM_PREFIX}{self.label}"
        return self.kind.value


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Trim tags and drop empty and duplicate labels, keeping first order."""
    result: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def split_tags(text: Optional[str]) -> List[str]:
    """Split a comma separated tag string."""
    if not text:
        return []
    return normalize_tags(text.split(","))


class Prompt(BaseModel):
    """A single stored prompt."""

    id: str = Field(default_factory=generate_id)
    name: str
    category: PromptCategory
    description: str = ""
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    variables: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)

    @model_validator(mode="after")
    def derive_variables(self) -> "Prompt":
        # Stored variables are never trusted; content is the source of truth
        self.variables = extract_variables(self.content)
        return self

    def set_content(self, content: str) -> None:
        """Replace content and refresh derived variables."""
        self.content = content
        self.variables = extract_variables(content)

    def touch(self) -> None:
        """Mark the prompt as modified now."""
        self.updated_at = utc_now()

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, description, tags and content."""
        needle = query.lower()
        return (
            needle in self.name.lower()
            or needle in self.description.lower()
            or any(needle in tag.lower() for tag in self.tags)
            or needle in self.content.lower()
        )


class PromptBank(BaseModel):
    """The ordered collection of prompts stored in one data file."""

    prompts: List[Prompt] = Field(default_factory=list)
    version: str = BANK_VERSION

    @model_validator(mode="before")
    @classmethod
    def accept_bare_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"prompts": data}
        return data

    @model_validator(mode="after")
    def validate_unique(self) -> "PromptBank":
        ids = set()
        names = set()
        for prompt in self.prompts:
            if prompt.id in ids:
                raise ValueError(f"duplicate prompt id '{prompt.id}'")
            if prompt.name in names:
                raise ValueError(f"duplicate prompt name '{prompt.name}'")
            ids.add(prompt.id)
            names.add(prompt.name)
        return self

    def find(self, key: str) -> Optional[Prompt]:
        """Find a prompt by exact id, falling back to exact name."""
        for prompt in self.prompts:
            if prompt.id == key:
                return prompt
        return self.find_by_name(key)

    def find_by_name(self, name: str) -> Optional[Prompt]:
        for prompt in self.prompts:
            if prompt.name == name:
                return prompt
        return None

    def has_id(self, prompt_id: str) -> bool:
        return any(prompt.id == prompt_id for prompt in self.prompts)
