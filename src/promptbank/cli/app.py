"""
Main CLI application entry point.

This module contains the main Typer application and command handlers
for PromptBank.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional
import logging

import typer
from pydantic import ValidationError as SettingsError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table

from promptbank import VERSION
from promptbank.config.settings import PromptBankSettings, get_settings, setup_logging
from promptbank.core.errors import DuplicateNameError, PromptBankError, StorageError
from promptbank.core.models import Prompt, PromptCategory, split_tags
from promptbank.core.store import ConflictPolicy, ImportMode, PromptStore
from promptbank.core import template
from promptbank.services.clipboard import copy_to_clipboard
from promptbank.services.integration import AgentIntegration, InstallKind
from promptbank.ui.prompts import EDITOR_PLACEHOLDER, InteractiveInput

logger = logging.getLogger(__name__)

# Create the main Typer application
app = typer.Typer(
    name="promptbank",
    help="PromptBank - store, search and apply reusable prompts",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Rich consoles for output
console = Console()
err_console = Console(stderr=True)


@dataclass
class AppContext:
    """Per-invocation state shared by the commands."""
    settings: PromptBankSettings
    data_file: Path

    def open_store(self) -> PromptStore:
        return PromptStore(self.data_file)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]PromptBank[/bold blue] version [green]{VERSION}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    data_file: Optional[Path] = typer.Option(
        None,
        "--data-file",
        help="Use this data file instead of the configured one",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """
    PromptBank - a local library of prompts.

    Prompts live in a single JSON file and may contain {{variable}}
    placeholders that are filled in by the apply command.
    """
    try:
        settings = get_settings()
    except SettingsError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if debug:
        settings.debug = True
    setup_logging(settings)
    logger.debug(f"Settings: {settings.to_dict()}")

    if data_file is None:
        try:
            settings.ensure_directories()
        except OSError as e:
            err_console.print(f"[red]Error:[/red] Cannot create {escape(str(settings.data_dir))}: {escape(str(e))}")
            raise typer.Exit(1)

    ctx.obj = AppContext(settings=settings, data_file=data_file or settings.data_file)
    logger.debug(f"Using data file {ctx.obj.data_file}")


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn PromptBank errors and aborted input into a failed exit."""
    try:
        yield
    except PromptBankError as e:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except (KeyboardInterrupt, EOFError):
        err_console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(1)


@app.command("add")
def add_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Name of the prompt"),
    category: Optional[str] = typer.Option(
        None, "--category", "-c",
        help="Category (system, skill, agent, role, task, template or custom:<label>)"
    ),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description of the prompt"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Tags (comma-separated)"),
    content: Optional[str] = typer.Option(None, "--content", help="Prompt content (opens editor if not provided)"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read content from a file"),
) -> None:
    """Add a new prompt."""
    with handle_errors():
        store = ctx.obj.open_store()
        ui = InteractiveInput(console)

        if name is None:
            name = ui.ask_name()
        existing = store.bank.find_by_name(name.strip())
        if existing is not None:
            raise DuplicateNameError(name.strip(), existing_id=existing.id)

        prompt_category = PromptCategory.parse(category) if category is not None else ui.ask_category()
        if description is None:
            description = ui.ask_description()
        tag_list = split_tags(tags) if tags is not None else ui.ask_tags()

        if file is not None:
            prompt_content = _read_file(file)
        elif content is not None:
            prompt_content = content
        else:
            prompt_content = ui.edit_content().replace(EDITOR_PLACEHOLDER, "", 1)

        prompt = store.add(
            name=name,
            category=prompt_category,
            description=description,
            content=prompt_content,
            tags=tag_list,
        )

    console.print(f"[green]✓[/green] Prompt '{escape(prompt.name)}' added with ID: [cyan]{prompt.id}[/cyan]")


@app.command("list")
def list_command(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    full: bool = typer.Option(False, "--full", help="Show full content"),
) -> None:
    """List all prompts."""
    with handle_errors():
        store = ctx.obj.open_store()
        prompt_category = PromptCategory.parse(category) if category is not None else None
        prompts = store.list(prompt_category)

    if not prompts:
        console.print("[yellow]No prompts found.[/yellow]")
        return

    console.print(f"\n[blue]→[/blue] [cyan]{len(prompts)}[/cyan] prompt(s) found:\n")
    if full:
        for prompt in prompts:
            _print_prompt_full(prompt)
    else:
        console.print(_prompt_table(prompts))


@app.command("get")
def get_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., metavar="ID", help="ID or name of the prompt"),
    copy: bool = typer.Option(False, "--copy", "-C", help="Copy content to clipboard"),
    raw: bool = typer.Option(False, "--raw", "-r", help="Only output the content (for piping)"),
) -> None:
    """Show a prompt by ID or name."""
    with handle_errors():
        store = ctx.obj.open_store()
        prompt = store.get(key)

        if raw:
            typer.echo(prompt.content)
        else:
            _print_prompt_full(prompt)

        if copy:
            copy_to_clipboard(prompt.content, ctx.obj.settings.clipboard_command)
            if not raw:
                console.print("\n[green]✓[/green] Copied to clipboard!")


@app.command("apply")
def apply_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., metavar="ID", help="ID or name of the prompt"),
    var: Optional[List[str]] = typer.Option(None, "--var", "-v", help="Variable value (format: key=value)"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Ask for variables without a value"),
    copy: bool = typer.Option(False, "--copy", "-C", help="Copy the result to clipboard"),
    raw: bool = typer.Option(False, "--raw", "-r", help="Only output the rendered text"),
) -> None:
    """Render a prompt with its variables filled in."""
    with handle_errors():
        store = ctx.obj.open_store()
        prompt = store.get(key)
        bindings = template.parse_bindings(var or [])

        if interactive:
            bindings = InteractiveInput(console).ask_variables(prompt.variables, bindings)

        rendered = template.apply(prompt.content, bindings)
        missing = template.missing_variables(prompt.content, bindings)

        if raw:
            typer.echo(rendered)
        else:
            console.print(Rule(style="dim"))
            console.print(rendered, markup=False, highlight=False)
            console.print(Rule(style="dim"))

        if missing:
            err_console.print(
                f"[yellow]Unbound variable(s) left in place:[/yellow] {escape(', '.join(missing))}"
            )

        if copy:
            copy_to_clipboard(rendered, ctx.obj.settings.clipboard_command)
            if not raw:
                console.print("\n[green]✓[/green] Copied to clipboard!")


@app.command("edit")
def edit_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., metavar="ID", help="ID or name of the prompt"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New name"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="New category"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="New tags (comma-separated)"),
    content: Optional[str] = typer.Option(None, "--content", help="New content"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read new content from a file"),
) -> None:
    """Edit a prompt. Without options the content is opened in your editor."""
    with handle_errors():
        store = ctx.obj.open_store()
        prompt = store.get(key)
        before = prompt.model_dump(exclude={"updated_at"})

        if file is not None:
            content = _read_file(file)

        if all(value is None for value in (name, category, description, tags, content)):
            content = InteractiveInput(console).edit_content(prompt.content)

        store.update(
            prompt.id,
            name=name,
            category=PromptCategory.parse(category) if category is not None else None,
            description=description,
            content=content,
            tags=split_tags(tags) if tags is not None else None,
        )

    if prompt.model_dump(exclude={"updated_at"}) == before:
        console.print("[yellow]No changes made.[/yellow]")
        return
    console.print(f"[green]✓[/green] Prompt '{escape(prompt.name)}' updated.")


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., metavar="ID", help="ID or name of the prompt"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a prompt."""
    with handle_errors():
        store = ctx.obj.open_store()
        prompt = store.get(key)

        if not force and not InteractiveInput(console).confirm_delete(prompt.name):
            console.print("[yellow]Cancelled.[/yellow]")
            return

        store.delete(prompt.id)

    console.print(f"[green]✓[/green] Prompt '{escape(prompt.name)}' deleted.")


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for"),
) -> None:
    """Search prompts by name, description, tags and content."""
    with handle_errors():
        prompts = ctx.obj.open_store().search(query)

    if not prompts:
        console.print(f"[yellow]→[/yellow] No prompts matching '{escape(query)}'")
        return

    console.print(f"\n[blue]→[/blue] [cyan]{len(prompts)}[/cyan] result(s) for '{escape(query)}':\n")
    console.print(_prompt_table(prompts))


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="Output file path"),
) -> None:
    """Export all prompts to a JSON file."""
    with handle_errors():
        count = ctx.obj.open_store().export(output)

    console.print(f"[green]✓[/green] Exported {count} prompts to {escape(str(output))}")


@app.command("import")
def import_command(
    ctx: typer.Context,
    input_file: Path = typer.Argument(..., metavar="INPUT", help="Input file path"),
    merge: bool = typer.Option(False, "--merge", "-m", help="Merge with existing prompts instead of replacing them"),
    on_conflict: Optional[ConflictPolicy] = typer.Option(
        None, "--on-conflict", case_sensitive=False,
        help="What to do when a merged prompt's id or name is taken"
    ),
) -> None:
    """Import prompts from a JSON file."""
    with handle_errors():
        store = ctx.obj.open_store()
        policy = on_conflict or ConflictPolicy(ctx.obj.settings.import_conflict_policy)
        summary = store.import_(
            input_file,
            mode=ImportMode.MERGE if merge else ImportMode.REPLACE,
            on_conflict=policy,
        )

    console.print(f"[green]✓[/green] Imported {summary.total} prompts from {escape(str(input_file))}")
    if merge:
        console.print(
            f"[dim]{summary.added} added, {summary.replaced} replaced, "
            f"{summary.renamed} renamed, {summary.skipped} skipped[/dim]"
        )


@app.command("info")
def info_command(ctx: typer.Context) -> None:
    """Show storage information."""
    with handle_errors():
        stats = ctx.obj.open_store().stats()

    table = Table(title="PromptBank Info", show_header=False, title_style="bold")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("Data file", escape(stats["data_file"]))
    table.add_row("Total prompts", str(stats["total"]))
    for category_name, count in stats["categories"].items():
        table.add_row(f"  {escape(category_name)}", str(count))
    console.print(table)


@app.command("install")
def install_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., metavar="ID", help="ID or name of the prompt"),
    kind: InstallKind = typer.Option(
        InstallKind.SKILL, "--as", case_sensitive=False,
        help="Install as a skill or as a command"
    ),
) -> None:
    """Install a prompt into the agent directory."""
    with handle_errors():
        prompt = ctx.obj.open_store().get(key)
        path = AgentIntegration(ctx.obj.settings.agent_dir).install(prompt, kind)

    console.print(f"[green]✓[/green] Installed '{escape(prompt.name)}' as {kind.value}: {escape(str(path))}")


@app.command("installed")
def installed_command(ctx: typer.Context) -> None:
    """List prompts installed into the agent directory."""
    with handle_errors():
        skills, commands = AgentIntegration(ctx.obj.settings.agent_dir).list_installed()

    if not skills and not commands:
        console.print("[yellow]Nothing installed.[/yellow]")
        return

    table = Table(title="Installed", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="yellow")
    for skill in skills:
        table.add_row(escape(skill), "skill")
    for command in commands:
        table.add_row(escape(command), "command")
    console.print(table)


@app.command("uninstall")
def uninstall_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Installed skill or command name"),
) -> None:
    """Remove an installed skill or command."""
    with handle_errors():
        removed = AgentIntegration(ctx.obj.settings.agent_dir).remove(name)

    if not removed:
        console.print(f"[yellow]Nothing installed under '{escape(name)}'.[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Removed '{escape(name)}'.")


def _read_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}", path=str(path), original_error=e)
    except UnicodeDecodeError as e:
        raise StorageError(f"{path} is not valid UTF-8: {e}", path=str(path), original_error=e)


def _prompt_table(prompts: List[Prompt]) -> Table:
    """Build the summary table used by list and search."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold", no_wrap=True)
    table.add_column("Category", style="yellow", no_wrap=True)
    table.add_column("Description", style="dim")
    table.add_column("Tags", style="blue")
    table.add_column("Variables", style="magenta")

    for prompt in prompts:
        table.add_row(
            prompt.id,
            escape(prompt.name),
            escape(str(prompt.category)),
            escape(prompt.description),
            escape(", ".join(prompt.tags)),
            escape(", ".join(prompt.variables)),
        )
    return table


def _print_prompt_full(prompt: Prompt) -> None:
    """Print all fields of a prompt followed by its content."""
    details = Table(show_header=False, box=None, padding=(0, 1))
    details.add_column("Field", style="bold", no_wrap=True)
    details.add_column("Value")
    details.add_row("ID", f"[cyan]{prompt.id}[/cyan] ([yellow]{escape(str(prompt.category))}[/yellow])")
    details.add_row("Name", escape(prompt.name))
    details.add_row("Description", escape(prompt.description))
    if prompt.tags:
        details.add_row("Tags", f"[blue]{escape(', '.join(prompt.tags))}[/blue]")
    if prompt.variables:
        details.add_row("Variables", f"[magenta]{escape(', '.join(prompt.variables))}[/magenta]")
    details.add_row("Created", prompt.created_at.strftime("%Y-%m-%d %H:%M"))
    details.add_row("Updated", prompt.updated_at.strftime("%Y-%m-%d %H:%M"))

    console.print(Panel(details, title=escape(prompt.name), border_style="blue"))
    console.print("[bold underline]Content:[/bold underline]")
    console.print(prompt.content, markup=False, highlight=False)
    console.print(Rule(style="dim"))


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
