"""Interactive console input for PromptBank commands."""

from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.text import Text

from ..core.errors import ValidationError
from ..core.models import BUILTIN_KINDS, PromptCategory, split_tags

EDITOR_PLACEHOLDER = "# Enter your prompt content here\n"


class InteractiveInput:
    """Blocking console prompts used when command options are missing."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def ask_name(self) -> str:
        name = Prompt.ask("Prompt name", console=self.console).strip()
        if not name:
            raise ValidationError("Prompt name must not be empty", field="name")
        return name

    def ask_category(self) -> PromptCategory:
        """Show the fixed categories and read a choice by number or name."""
        self.console.print("\n[bold]Categories:[/bold]")
        for index, kind in enumerate(BUILTIN_KINDS, start=1):
            self.console.print(f"  [green]{index}.[/green] {kind.value}")
        self.console.print("  [dim]or type custom:<label>[/dim]")

        choice = Prompt.ask("\nSelect category", default="1", console=self.console).strip()
        if choice.isdigit() and 1 <= int(choice) <= len(BUILTIN_KINDS):
            return PromptCategory(kind=BUILTIN_KINDS[int(choice) - 1])
        return PromptCategory.parse(choice)

    def ask_description(self) -> str:
        return Prompt.ask("Description", default="", show_default=False, console=self.console)

    def ask_tags(self) -> List[str]:
        text = Prompt.ask(
            "Tags (comma-separated, optional)",
            default="",
            show_default=False,
            console=self.console
        )
        return split_tags(text)

    def ask_variables(self, names: List[str], bindings: Dict[str, str]) -> Dict[str, str]:
        """Ask for every variable not already bound.

        Returns:
            New bindings including the given ones
        """
        result = dict(bindings)
        pending = [name for name in names if name not in result]
        if not pending:
            return result

        self.console.print(
            f"\n[blue]→[/blue] This prompt has {len(names)} variable(s):\n"
        )
        for name in pending:
            result[name] = Prompt.ask(f"  [magenta]{name}[/magenta]", console=self.console)
        return result

    def edit_content(self, initial: str = EDITOR_PLACEHOLDER) -> str:
        """Open the user's editor on ``initial`` and return the saved text.

        Raises:
            ValidationError: If the editor was closed without saving
        """
        edited = typer.edit(initial, extension=".md", require_save=True)
        if edited is None:
            raise ValidationError("No content provided", field="content")
        return edited

    def confirm_delete(self, name: str) -> bool:
        """Ask whether a prompt should be deleted. Defaults to no."""
        self.console.print(Panel(
            Text(name, style="cyan bold"),
            title="Delete prompt",
            border_style="red"
        ))
        return Confirm.ask("Delete this prompt?", default=False, console=self.console)
