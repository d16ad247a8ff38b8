"""Rich console output for the coordinator CLI."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from zzz_coordinator.config import CoordinatorConfig
from zzz_coordinator.domain.models import Notification, PhaseRecord, TodoProgress

# Shared console instances
console = Console()
error_console = Console(stderr=True)


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    console.print(Panel(message, title="Success", border_style="green"))


def print_task_info(config: CoordinatorConfig) -> None:
    """Print the task configuration table."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Task", config.task_id)
    table.add_row("Description", config.feature_description)
    table.add_row("Directory", str(config.task_directory))
    table.add_row("Overseer", config.overseer_pane)
    table.add_row("Commander", config.commander_pane)
    table.add_row("Max attempts", str(config.max_attempts))
    table.add_row("Auto finish", "yes" if config.auto_finish else "no")

    console.print(table)


def print_status(record: PhaseRecord, progress: TodoProgress | None) -> None:
    """Print the persisted phase, checklist progress and phase history."""
    content = Text(f"Task {record.task_id}: ", style="bold")
    content.append(record.phase.value, style="bold blue")
    if record.description:
        content.append(f"\n{record.description}", style="dim")
    if progress is not None:
        content.append(
            f"\nChecklist: {progress.completed}/{progress.total} "
            f"({progress.fraction:.0%})"
        )
    console.print(Panel(content, expand=False))

    if not record.history:
        return
    table = Table(show_header=True, box=None)
    table.add_column("At", style="dim")
    table.add_column("From", style="cyan")
    table.add_column("To", style="green")
    for change in record.history:
        table.add_row(change.at, change.from_phase.value, change.to_phase.value)
    console.print(table)


def print_notifications(notifications: list[Notification]) -> None:
    """Print notifications left unhandled when the loop stopped."""
    if not notifications:
        return
    console.print("\n[bold]Notifications:[/bold]")
    for n in notifications:
        style = "red" if n.error_kind is not None else "dim"
        kind = f"{n.kind.value}/{n.error_kind.value}" if n.error_kind else n.kind.value
        console.print(f"  [{style}]{kind}[/{style}] {n.message}")
