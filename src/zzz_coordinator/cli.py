"""Command line interface: ``zzz-coordinator run | status | reset``."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, TypeVar

import click

from zzz_coordinator import __version__
from zzz_coordinator.application import PhaseRecordRepository
from zzz_coordinator.bootstrap import attach_inbound, build_coordinator
from zzz_coordinator.config import load_config, validate_task_id
from zzz_coordinator.console import (
    console,
    print_error,
    print_notifications,
    print_status,
    print_success,
    print_task_info,
)
from zzz_coordinator.domain.exceptions import (
    ConfigError,
    ObserverError,
    ParseError,
    StoreError,
)
from zzz_coordinator.domain.models import PhaseRecord, WorkflowPhase
from zzz_coordinator.domain.task import ARCHIVE_DIRNAME, TaskLayout
from zzz_coordinator.guards import PlanReadyGuard
from zzz_coordinator.infrastructure.persistence import AtomicFileStore
from zzz_coordinator.logging_setup import (
    TaskContextFilter,
    setup_logging,
    teardown_logging,
)

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

_CONFIG_HINT = (
    "Pass --task-id and --description, or set ZZZ_TASK_ID and "
    "ZZZ_FEATURE_DESCRIPTION."
)
_STORE_HINT = "Check permissions and free space under the base directory."

F = TypeVar("F", bound=Callable[..., Any])


def task_options(func: F) -> F:
    """
    Decorator adding the options that locate a task.

    Options added:
        --task-id: Task identifier
        --base-directory: Root of the task directories
    """

    @click.option(
        "--task-id",
        envvar="ZZZ_TASK_ID",
        required=True,
        callback=_check_task_id,
        help="Task identifier (env: ZZZ_TASK_ID)",
    )
    @click.option(
        "--base-directory",
        envvar="ZZZ_BASE_DIRECTORY",
        default=".zzz",
        show_default=True,
        type=click.Path(file_okay=False, path_type=Path),
        help="Root of the task directories (env: ZZZ_BASE_DIRECTORY)",
    )
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _check_task_id(ctx: click.Context, param: click.Parameter, value: str) -> str:
    try:
        return validate_task_id(value)
    except ConfigError as e:
        raise click.BadParameter(str(e)) from e


def _parse_endpoints(values: tuple[str, ...]) -> dict[str, str] | None:
    if not values:
        return None
    endpoints = {}
    for value in values:
        name, sep, command = value.partition("=")
        if not sep or not name.strip() or not command.strip():
            raise click.BadParameter(
                f"expected NAME=COMMAND, got {value!r}", param_hint="--endpoint"
            )
        endpoints[name.strip()] = command.strip()
    return endpoints


def _load_record(
    store: AtomicFileStore, task_id: str
) -> tuple[TaskLayout, PhaseRecord | None]:
    """Find the phase record of a live or archived task."""
    layout = store.layout(task_id)
    archived = TaskLayout(store.base_directory / ARCHIVE_DIRNAME, task_id)
    for candidate in (layout, archived):
        record = PhaseRecordRepository(store, candidate).load()
        if record is not None:
            return candidate, record
    return layout, None


@click.group()
@click.version_option(__version__, prog_name="zzz-coordinator")
def main() -> None:
    """Coordinate the Overseer and Commander through one task's workflow."""


@main.command()
@click.option(
    "--config",
    "config_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a JSON config file",
)
@click.option("--task-id", default=None, help="Task identifier (env: ZZZ_TASK_ID)")
@click.option(
    "--description",
    default=None,
    help="Feature description (env: ZZZ_FEATURE_DESCRIPTION)",
)
@click.option(
    "--base-directory",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Root of the task directories (default: .zzz)",
)
@click.option("--overseer-pane", default=None, help="Endpoint name of the Overseer")
@click.option("--commander-pane", default=None, help="Endpoint name of the Commander")
@click.option(
    "--endpoint",
    "endpoints",
    multiple=True,
    metavar="NAME=COMMAND",
    help="Deliver messages for NAME by piping them to COMMAND (repeatable)",
)
@click.option(
    "--auto-finish/--no-auto-finish",
    default=None,
    help="Finish without operator confirmation once the review is ready",
)
@click.option(
    "--no-logging",
    is_flag=True,
    help="Do not write role logs or coordinator.log",
)
@click.option(
    "--stdin/--no-stdin",
    "read_stdin",
    default=True,
    show_default=True,
    help="Read inbound messages and operator commands from stdin",
)
@click.option(
    "--watch/--no-watch",
    default=True,
    show_default=True,
    help="Watch the task directory for artifact changes",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging to console",
)
def run(
    config_file: Path | None,
    task_id: str | None,
    description: str | None,
    base_directory: Path | None,
    overseer_pane: str | None,
    commander_pane: str | None,
    endpoints: tuple[str, ...],
    auto_finish: bool | None,
    no_logging: bool,
    read_stdin: bool,
    watch: bool,
    verbose: bool,
) -> None:
    """Run the coordination loop for one task until it finishes."""
    try:
        config = load_config(
            config_file,
            overrides={
                "task_id": task_id,
                "feature_description": description,
                "base_directory": base_directory,
                "overseer_pane": overseer_pane,
                "commander_pane": commander_pane,
                "endpoints": _parse_endpoints(endpoints),
                "auto_finish": auto_finish,
                "enable_logging": False if no_logging else None,
            },
        )
    except ConfigError as e:
        print_error(str(e), _CONFIG_HINT)
        sys.exit(EXIT_CONFIG)

    layout = TaskLayout(config.base_directory, config.task_id)
    context = TaskContextFilter(config.task_id)
    setup_logging(
        layout.coordinator_log if config.enable_logging else None,
        verbose=verbose,
        context=context,
    )

    coordinator = build_coordinator(
        config, watch=watch, before_archive=teardown_logging
    )
    context.phase_source = coordinator.phase_label
    print_task_info(config)
    try:
        coordinator.start()
        if read_stdin:
            attach_inbound(coordinator)
        phase = coordinator.run()
    except StoreError as e:
        logger.error("Store failure: %s (error_kind=%s)", e, e.error_kind.value)
        print_error(str(e), _STORE_HINT)
        sys.exit(EXIT_FAILURE)
    except ObserverError as e:
        print_error(str(e), "Restart the coordinator once the directory is back.")
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        click.echo("\n\nInterrupted by user.")
        sys.exit(EXIT_INTERRUPTED)
    finally:
        if coordinator.started:
            print_notifications(coordinator.notifications.drain())

    if phase is WorkflowPhase.FINISHED:
        where = coordinator.archived_to or config.task_directory
        print_success(f"Task {config.task_id} finished ({where})")
    else:
        console.print(f"Stopped in phase [bold]{phase.value}[/bold]")


@main.command()
@task_options
def status(task_id: str, base_directory: Path) -> None:
    """Show a task's persisted phase and checklist progress."""
    store = AtomicFileStore(base_directory)
    try:
        layout, record = _load_record(store, task_id)
    except (StoreError, ParseError) as e:
        print_error(str(e))
        sys.exit(EXIT_FAILURE)
    if record is None:
        print_error(f"No task {task_id} under {base_directory}")
        sys.exit(EXIT_FAILURE)
    progress = PlanReadyGuard(layout.todo_list).progress(store)
    print_status(record, progress)


@main.command()
@task_options
def reset(task_id: str, base_directory: Path) -> None:
    """
    Return a stopped task to Initializing.

    The next ``run`` restarts planning. A running coordinator is reset by
    writing {"command": "reset"} to its stdin instead.
    """
    store = AtomicFileStore(base_directory)
    records = PhaseRecordRepository(store, store.layout(task_id))
    try:
        record = records.load()
        if record is None:
            print_error(f"No task {task_id} under {base_directory}")
            sys.exit(EXIT_FAILURE)
        if record.phase is WorkflowPhase.INITIALIZING:
            console.print(f"Task {task_id} is already Initializing")
            return
        records.save(
            record.advance(
                WorkflowPhase.INITIALIZING, datetime.now(timezone.utc).isoformat()
            )
        )
    except (StoreError, ParseError) as e:
        print_error(str(e))
        sys.exit(EXIT_FAILURE)
    print_success(f"Task {task_id} reset from {record.phase.value} to Initializing")


if __name__ == "__main__":
    main()
