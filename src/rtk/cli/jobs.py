"""
CLI: ``rtk jobs`` — manage persisted jobs.

These commands work on the job store directly; a running ``rtk serve``
picks up changes on its next start.
"""

from __future__ import annotations

import typer

from rtk.cli.utils import console, make_toolkit, output_error, output_result, print_table
from rtk.core.result import Ok

app = typer.Typer(no_args_is_help=True)

JOB_COLUMNS = ["name", "action_name", "action_arguments", "time_type", "time_argument", "next_fire_at"]


@app.command("list")
def list_jobs(
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List scheduled jobs."""
    toolkit = make_toolkit(database)
    toolkit.scheduler.load()
    views = toolkit.scheduler.list_jobs()
    if json_out:
        output_result(Ok([view.to_dict() for view in views]), as_json=True)
        return
    if not views:
        console.print("[dim]No jobs.[/dim]")
        return
    print_table(views, title="Jobs", columns=JOB_COLUMNS)


@app.command("add")
def add_job(
    name: str = typer.Argument(..., help="Unique job name"),
    action: str = typer.Argument(..., help="Action name or alias"),
    time_type: str = typer.Argument(..., help="delay, interval or calendar"),
    time_argument: str = typer.Argument(..., help="e.g. 10, 5m, 'monday 08:30'"),
    args: list[str] | None = typer.Argument(None, help="Action arguments"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Schedule an action."""
    toolkit = make_toolkit(database)
    toolkit.scheduler.load()
    result = toolkit.scheduler.add_job(name, action, list(args or []), time_type, time_argument)
    output_result(result, as_json=json_out, title="Job Scheduled")


@app.command("remove")
def remove_job(
    name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
) -> None:
    """Remove a job. Unknown names are not an error."""
    toolkit = make_toolkit(database)
    toolkit.scheduler.load()
    result = toolkit.scheduler.remove_job(name)
    if result.is_err():
        output_error(result.error)
    removed = result.unwrap()
    console.print(f"Removed {name}" if removed else f"[dim]No job named {name}[/dim]")


@app.command("run")
def run_job(
    name: str = typer.Argument(..., help="Job name"),
    database: str | None = typer.Option(None, "--database", "-d"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run a job's action now without changing its schedule."""
    toolkit = make_toolkit(database)
    toolkit.scheduler.load()
    output_result(toolkit.scheduler.run_job(name), as_json=json_out, title=name)
