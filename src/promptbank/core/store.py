"""
Prompt store for PromptBank.

The store owns the whole prompt collection for the duration of one command.
It loads the JSON data file on construction and writes it back after every
mutation.
"""

import json
import logging
import os
import tempfile
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as SchemaError

from .errors import DuplicateNameError, NotFoundError, StorageError, ValidationError
from .models import Prompt, PromptBank, PromptCategory, generate_id, normalize_tags, utc_now

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImportMode(str, Enum):
    """How imported prompts are combined with the existing collection."""
    REPLACE = "replace"
    MERGE = "merge"


class ConflictPolicy(str, Enum):
    """What to do with an imported prompt whose id or name is already taken."""
    SKIP = "skip"
    OVERWRITE = "overwrite"
    RENAME = "rename"


@dataclass
class ImportSummary:
    """Outcome of an import."""
    mode: ImportMode
    total: int
    added: int = 0
    replaced: int = 0
    renamed: int = 0
    skipped: int = 0


def read_bank(path: PathLike) -> PromptBank:
    """Read a prompt collection from a JSON file.

    Args:
        path: File to read

    Returns:
        Parsed collection

    Raises:
        StorageError: If the file cannot be read or does not match the schema
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}", path=str(path), original_error=e)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}", path=str(path), original_error=e)
    except UnicodeDecodeError as e:
        raise StorageError(f"{path} is not valid UTF-8: {e}", path=str(path), original_error=e)

    try:
        return PromptBank.model_validate(data)
    except SchemaError as e:
        raise StorageError(
            f"{path} is not a valid prompt file: {e.error_count()} error(s)\n{e}",
            path=str(path),
            original_error=e
        )


def write_bank(bank: PromptBank, path: PathLike) -> None:
    """Write a prompt collection to a JSON file atomically.

    The data goes to a temporary file in the target directory which then
    replaces the target.

    Raises:
        StorageError: If the file cannot be written
    """
    path = Path(path)
    content = json.dumps(bank.model_dump(mode="json"), indent=2, ensure_ascii=False)
    temp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.tmp"
        ) as temp_file:
            temp_name = temp_file.name
            temp_file.write(content)
            temp_file.write("\n")
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_name, path)
        temp_name = None
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}", path=str(path), original_error=e)
    finally:
        if temp_name and os.path.exists(temp_name):
            os.unlink(temp_name)


class PromptStore:
    """
    Prompt collection backed by a single JSON file.

    Lookups accept either a prompt id or a prompt name; ids are checked
    first. Every mutating method saves the collection before returning.
    """

    def __init__(self, data_file: PathLike):
        """Initialize the store and load the collection.

        Args:
            data_file: Path of the backing JSON file
        """
        self._data_file = Path(data_file)
        self._bank = PromptBank()
        self.load()

    @property
    def data_file(self) -> Path:
        return self._data_file

    @property
    def bank(self) -> PromptBank:
        return self._bank

    def load(self) -> PromptBank:
        """Load the collection from the data file.

        A missing file yields an empty collection.

        Raises:
            StorageError: If the file exists but cannot be used
        """
        if not self._data_file.exists():
            logger.debug(f"No data file at {self._data_file}, starting empty")
            self._bank = PromptBank()
        else:
            self._bank = read_bank(self._data_file)
            logger.debug(f"Loaded {len(self._bank.prompts)} prompts from {self._data_file}")
        return self._bank

    def save(self, bank: Optional[PromptBank] = None) -> None:
        """Write the collection (or the given one) to the data file."""
        if bank is not None:
            self._bank = bank
        write_bank(self._bank, self._data_file)
        logger.debug(f"Saved {len(self._bank.prompts)} prompts to {self._data_file}")

    def add(
        self,
        name: str,
        category: PromptCategory,
        description: str = "",
        content: str = "",
        tags: Optional[List[str]] = None
    ) -> Prompt:
        """Create and store a new prompt.

        Args:
            name: Unique prompt name
            category: Prompt category
            description: Free text description
            content: Prompt text, may contain placeholders
            tags: Tag labels

        Returns:
            The stored prompt

        Raises:
            ValidationError: If the name is empty
            DuplicateNameError: If the name is taken
        """
        name = self._check_name(name)
        now = utc_now()
        prompt = Prompt(
            id=self._new_id(),
            name=name,
            category=category,
            description=description,
            content=content,
            tags=normalize_tags(tags),
            created_at=now,
            updated_at=now
        )
        self._bank.prompts.append(prompt)
        self.save()
        logger.info(f"Added prompt '{prompt.name}' ({prompt.id})")
        return prompt

    def get(self, key: str) -> Prompt:
        """Get a prompt by id or name.

        Raises:
            NotFoundError: If nothing matches
        """
        prompt = self._bank.find(key)
        if prompt is None:
            raise NotFoundError(key)
        return prompt

    def list(self, category: Optional[PromptCategory] = None) -> List[Prompt]:
        """List prompts in insertion order, optionally for one category."""
        if category is None:
            return list(self._bank.prompts)
        return [prompt for prompt in self._bank.prompts if prompt.category == category]

    def search(self, query: str) -> List[Prompt]:
        """Case-insensitive search over name, description, tags and content."""
        return [prompt for prompt in self._bank.prompts if prompt.matches(query)]

    def update(
        self,
        key: str,
        name: Optional[str] = None,
        category: Optional[PromptCategory] = None,
        description: Optional[str] = None,
        content: Optional[str] = None,
        tags: Optional[List[str]] = None
    ) -> Prompt:
        """Update fields of an existing prompt.

        Only the fields that are given and differ from the stored values are
        changed. ``updated_at`` is bumped and the collection saved only when
        something changed.

        Raises:
            NotFoundError: If nothing matches ``key``
            ValidationError: If the new name is empty
            DuplicateNameError: If the new name belongs to another prompt
        """
        prompt = self.get(key)
        changed = False

        if name is not None and name.strip() != prompt.name:
            prompt.name = self._check_name(name)
            changed = True
        if category is not None and category != prompt.category:
            prompt.category = category
            changed = True
        if description is not None and description != prompt.description:
            prompt.description = description
            changed = True
        if content is not None and content != prompt.content:
            prompt.set_content(content)
            changed = True
        if tags is not None:
            tags = normalize_tags(tags)
            # Tags are a set; reordering alone is not a change
            if set(tags) != set(prompt.tags):
                prompt.tags = tags
                changed = True

        if changed:
            prompt.touch()
            self.save()
            logger.info(f"Updated prompt '{prompt.name}' ({prompt.id})")
        else:
            logger.debug(f"No changes for prompt '{prompt.name}'")
        return prompt

    def delete(self, key: str) -> Prompt:
        """Delete a prompt by id or name.

        Returns:
            The removed prompt

        Raises:
            NotFoundError: If nothing matches
        """
        prompt = self.get(key)
        self._bank.prompts = [p for p in self._bank.prompts if p is not prompt]
        self.save()
        logger.info(f"Deleted prompt '{prompt.name}' ({prompt.id})")
        return prompt

    def export(self, path: PathLike) -> int:
        """Export the whole collection to ``path``.

        Returns:
            Number of exported prompts
        """
        write_bank(self._bank, path)
        logger.info(f"Exported {len(self._bank.prompts)} prompts to {path}")
        return len(self._bank.prompts)

    def import_(
        self,
        path: PathLike,
        mode: ImportMode = ImportMode.REPLACE,
        on_conflict: ConflictPolicy = ConflictPolicy.SKIP
    ) -> ImportSummary:
        """Import prompts from a file written by ``export``.

        ``replace`` swaps the whole collection. ``merge`` adds the imported
        prompts one by one in file order. An imported prompt conflicts with
        existing prompts sharing its id or its name; ``on_conflict`` decides:

        - ``skip``: keep the existing prompt and drop the imported one
        - ``overwrite``: drop the conflicting prompts and put the imported one
          where the first of them was
        - ``rename``: keep both; the imported prompt gets a new id if its id
          is taken and a ``<name>-N`` name if its name is taken

        Args:
            path: File to import
            mode: Replace or merge
            on_conflict: Merge conflict policy

        Returns:
            Import summary

        Raises:
            StorageError: If the file cannot be read
        """
        imported = read_bank(path)
        summary = ImportSummary(mode=mode, total=len(imported.prompts))

        if mode is ImportMode.REPLACE:
            self._bank = imported
            summary.added = summary.total
        else:
            for incoming in imported.prompts:
                self._merge_one(incoming, on_conflict, summary)

        self.save()
        logger.info(
            f"Imported {summary.total} prompts from {path} ({mode.value}): "
            f"{summary.added} added, {summary.replaced} replaced, "
            f"{summary.renamed} renamed, {summary.skipped} skipped"
        )
        return summary

    def stats(self) -> Dict[str, Any]:
        """Get collection statistics.

        Returns:
            Dictionary with the total and per-category counts
        """
        counts = Counter(str(prompt.category) for prompt in self._bank.prompts)
        return {
            'total': len(self._bank.prompts),
            'categories': dict(counts),
            'data_file': str(self._data_file)
        }

    def _merge_one(
        self,
        incoming: Prompt,
        on_conflict: ConflictPolicy,
        summary: ImportSummary
    ) -> None:
        prompts = self._bank.prompts
        conflicts = [
            p for p in prompts
            if p.id == incoming.id or p.name == incoming.name
        ]
        if not conflicts:
            prompts.append(incoming)
            summary.added += 1
            return

        if on_conflict is ConflictPolicy.SKIP:
            logger.info(f"Skipping imported prompt '{incoming.name}': already present")
            summary.skipped += 1
        elif on_conflict is ConflictPolicy.OVERWRITE:
            position = next(i for i, p in enumerate(prompts) if p is conflicts[0])
            remaining = [p for p in prompts if not any(p is c for c in conflicts)]
            remaining.insert(position, incoming)
            self._bank.prompts = remaining
            summary.replaced += 1
        else:
            update: Dict[str, Any] = {}
            if self._bank.has_id(incoming.id):
                update["id"] = self._new_id()
            if self._bank.find_by_name(incoming.name) is not None:
                update["name"] = self._free_name(incoming.name)
            renamed = incoming.model_copy(update=update)
            logger.warning(
                f"Imported prompt '{incoming.name}' stored as '{renamed.name}' ({renamed.id})"
            )
            prompts.append(renamed)
            summary.renamed += 1

    def _check_name(self, name: str) -> str:
        name = name.strip() if name else ""
        if not name:
            raise ValidationError("Prompt name must not be empty", field="name")
        existing = self._bank.find_by_name(name)
        if existing is not None:
            raise DuplicateNameError(name, existing_id=existing.id)
        return name

    def _new_id(self) -> str:
        prompt_id = generate_id()
        while self._bank.has_id(prompt_id):
            prompt_id = generate_id()
        return prompt_id

    def _free_name(self, base: str) -> str:
        suffix = 2
        while self._bank.find_by_name(f"{base}-{suffix}") is not None:
            suffix += 1
        return f"{base}-{suffix}"
