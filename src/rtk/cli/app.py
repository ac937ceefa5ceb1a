"""
Root Typer application for the ``rtk`` CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from rtk import __version__
from rtk.core.logging import configure_logging
from rtk.core.settings import get_settings

app = Typer(
    name="rtk",
    help="rtk — remote toolkit: dispatch actions, schedule jobs, watch the Module.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rtk-core {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Overrides RTK_LOG_LEVEL."),
) -> None:
    """rtk CLI — list and run actions, manage jobs, serve."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)


# ── Sub-command registration ─────────────────────────────────────────────

from rtk.cli.actions import list_actions, run_action  # noqa: E402
from rtk.cli.jobs import app as jobs_app  # noqa: E402
from rtk.cli.serve import serve  # noqa: E402

app.command("actions")(list_actions)
app.command("run")(run_action)
app.command("serve")(serve)
app.add_typer(jobs_app, name="jobs", help="Scheduled job management.")
