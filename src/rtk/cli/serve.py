"""
CLI: ``rtk serve`` — run the scheduler and the liveness monitor in the foreground.
"""

from __future__ import annotations

import threading

import typer

from rtk.cli.utils import console, make_toolkit, output_error


def serve(
    database: str | None = typer.Option(None, "--database", "-d"),
    duration: float | None = typer.Option(
        None, "--duration", help="Stop after this many seconds (default: run until interrupted)"
    ),
) -> None:
    """Start the scheduler and the heartbeat monitor until interrupted."""
    toolkit = make_toolkit(database)
    started = toolkit.start()
    if started.is_err():
        toolkit.stop()
        output_error(started.error)

    console.print(
        f"[bold green]rtk serving[/bold green] "
        f"{len(toolkit.registry)} actions, {len(toolkit.scheduler.list_jobs())} jobs, "
        f"heartbeat {toolkit.monitor.host}:{toolkit.monitor.port}"
    )

    try:
        threading.Event().wait(duration)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")
    finally:
        toolkit.stop()
