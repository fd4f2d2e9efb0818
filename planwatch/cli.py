"""CLI for planwatch.

Runs the server, or derives a plan once and prints it.
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from planwatch.config import get_logging_settings, get_path_settings, get_server_settings
from planwatch.core.models import Snapshot, TaskStatus
from planwatch.logging import configure_logging, set_debug_mode
from planwatch.version import __version__

console = Console()

STATUS_STYLES = {
    TaskStatus.DONE: "green",
    TaskStatus.FAILED: "red",
    TaskStatus.BLOCKED: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.READY: "white",
}


@click.group()
@click.version_option(__version__, prog_name="planwatch")
def cli() -> None:
    """planwatch - live status of agent task plans."""
    pass


@cli.command()
@click.option(
    "--plan-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding queue.md and execution.log",
)
@click.option(
    "--claude-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Agent data directory (default: ~/.claude)",
)
@click.option("--host", default=None, help="Bind address (default: 127.0.0.1)")
@click.option("--port", type=int, default=None, help="Port (default: 4317)")
@click.option("--debug/--no-debug", default=False, help="Verbose logging")
def serve(
    plan_dir: Path | None,
    claude_dir: Path | None,
    host: str | None,
    port: int | None,
    debug: bool,
) -> None:
    """Run the planwatch server."""
    import uvicorn

    from planwatch import telemetry
    from planwatch.api.config import APIConfig
    from planwatch.api.main import create_application

    logging_settings = get_logging_settings()
    set_debug_mode(debug)
    configure_logging(
        log_dir=logging_settings.log_dir,
        console_level="DEBUG" if debug else logging_settings.level.upper(),
    )
    telemetry.setup_telemetry()

    paths = get_path_settings().model_copy()
    if plan_dir is not None:
        paths.plan_dir = plan_dir.expanduser().resolve()
    if claude_dir is not None:
        paths.claude_dir = claude_dir.expanduser().resolve()

    server = get_server_settings().model_copy()
    if host is not None:
        server.host = host
    if port is not None:
        server.port = port
        server.cors_origins = [f"http://localhost:{port}", f"http://127.0.0.1:{port}"]

    app = create_application(APIConfig(paths=paths, server=server))

    console.print(f"[bold]planwatch[/bold] on http://{server.host}:{server.port}")
    console.print(f"  sessions: {paths.claude_dir}")
    console.print(f"  plan:     {paths.plan_dir or '[dim]not configured[/dim]'}")
    uvicorn.run(app, host=server.host, port=server.port, log_level=server.log_level.lower())


@cli.command()
@click.option(
    "--plan-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding queue.md and execution.log",
)
def status(plan_dir: Path | None) -> None:
    """Derive the plan once and print every task's status."""
    from planwatch.api.services import derive_view

    plan_dir = plan_dir or get_path_settings().plan_dir or Path.cwd()
    view = derive_view(plan_dir / "queue.md", plan_dir / "execution.log")
    if view.snapshot is None:
        console.print(f"[red]No queue.md in {plan_dir}[/red]")
        sys.exit(1)

    _print_snapshot(view.snapshot)

    for error in view.queue_errors:
        console.print(f"[red]queue:[/red] {error}")
    for error in view.log_errors:
        console.print(f"[yellow]log:[/yellow] {error}")


def _print_snapshot(snapshot: Snapshot) -> None:
    table = Table(title="Plan Status")
    table.add_column("Task")
    table.add_column("Slice")
    table.add_column("Status")
    table.add_column("Depends on")
    table.add_column("Note")

    for task in snapshot.tasks:
        style = STATUS_STYLES[task.status]
        note = task.blocked_reason or (task.last_event.agent if task.last_event else "")
        table.add_row(
            task.id,
            task.slice,
            f"[{style}]{task.status.value}[/{style}]",
            ", ".join(task.depends_on) or "-",
            note,
        )
    console.print(table)

    s = snapshot.summary
    console.print(
        f"  Total: {s.total}  Done: {s.done}  Failed: {s.failed}  Blocked: {s.blocked}  "
        f"Ready: {s.ready}  In progress: {s.in_progress}  "
        f"Success rate: {s.success_rate:.0%}"
    )


if __name__ == "__main__":
    cli()
