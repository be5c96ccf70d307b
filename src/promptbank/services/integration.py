"""
Agent integration for PromptBank.

Installs stored prompts into an agent configuration directory, either as a
skill (``skills/<name>/SKILL.md`` with front matter) or as a slash command
(``commands/<name>.md``).
"""

import logging
import shutil
from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple

import yaml

from ..core.errors import StorageError, ValidationError
from ..core.models import Prompt

logger = logging.getLogger(__name__)

SKILLS_DIR = "skills"
COMMANDS_DIR = "commands"
SKILL_FILE = "SKILL.md"
ALLOWED_TOOLS = "Read, Write, Edit, Bash, Glob, Grep, Task"


class InstallKind(str, Enum):
    """How a prompt is installed."""
    SKILL = "skill"
    COMMAND = "command"


class AgentIntegration:
    """Installs prompts into an agent configuration directory."""

    def __init__(self, agent_dir: Path):
        """Initialize the integration.

        Args:
            agent_dir: Agent configuration directory, must exist

        Raises:
            StorageError: If the directory does not exist
        """
        self.agent_dir = Path(agent_dir)
        if not self.agent_dir.is_dir():
            raise StorageError(
                f"Agent directory not found: {self.agent_dir}",
                path=str(self.agent_dir)
            )

    @property
    def skills_dir(self) -> Path:
        return self.agent_dir / SKILLS_DIR

    @property
    def commands_dir(self) -> Path:
        return self.agent_dir / COMMANDS_DIR

    def install(self, prompt: Prompt, kind: InstallKind = InstallKind.SKILL) -> Path:
        """Install a prompt.

        Returns:
            Path of the written file
        """
        _check_install_name(prompt.name)
        try:
            if kind is InstallKind.SKILL:
                target = self.skills_dir / prompt.name / SKILL_FILE
                content = render_skill(prompt)
            else:
                target = self.commands_dir / f"{prompt.name}.md"
                content = prompt.content
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot install '{prompt.name}': {e}", original_error=e)

        logger.info(f"Installed '{prompt.name}' as {kind.value} at {target}")
        return target

    def list_installed(self) -> Tuple[List[str], List[str]]:
        """List installed skills and commands.

        Returns:
            Sorted skill names and sorted command names
        """
        skills: List[str] = []
        commands: List[str] = []

        if self.skills_dir.is_dir():
            skills = [entry.name for entry in self.skills_dir.iterdir() if entry.is_dir()]
        if self.commands_dir.is_dir():
            commands = [
                entry.stem for entry in self.commands_dir.iterdir()
                if entry.is_file() and entry.suffix == ".md"
            ]

        return sorted(skills), sorted(commands)

    def remove(self, name: str) -> bool:
        """Remove an installed skill and/or command.

        Returns:
            True if anything was removed
        """
        _check_install_name(name)
        removed = False
        skill_dir = self.skills_dir / name
        command_file = self.commands_dir / f"{name}.md"
        try:
            if skill_dir.is_dir():
                shutil.rmtree(skill_dir)
                removed = True
            if command_file.is_file():
                command_file.unlink()
                removed = True
        except OSError as e:
            raise StorageError(f"Cannot remove '{name}': {e}", original_error=e)

        if removed:
            logger.info(f"Removed installed prompt '{name}'")
        return removed


def render_skill(prompt: Prompt) -> str:
    """Render SKILL.md content with YAML front matter."""
    meta: Dict[str, str] = {
        "name": prompt.name,
        "description": prompt.description,
    }
    if prompt.variables:
        meta["argument-hint"] = " ".join(f"<{name}>" for name in prompt.variables)
    meta["allowed-tools"] = ALLOWED_TOOLS

    front_matter = yaml.safe_dump(
        meta,
        allow_unicode=True,
        sort_keys=False,
        default_flow_style=False,
    )
    return f"---\n{front_matter}---\n\n{prompt.content}"


def _check_install_name(name: str) -> None:
    if name in (".", "..") or "/" in name or "\\" in name:
        raise ValidationError(
            f"'{name}' cannot be used as a file name; rename the prompt first",
            field="name"
        )
