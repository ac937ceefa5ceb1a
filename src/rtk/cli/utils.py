"""
CLI utility helpers: output formatting and toolkit construction.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from rtk.core.errors import RtkError
from rtk.core.result import Result
from rtk.core.settings import get_settings
from rtk.runtime import Toolkit, build_toolkit

console = Console()
err_console = Console(stderr=True)


# ── Toolkit helper ───────────────────────────────────────────────────────


def make_toolkit(database: str | None = None) -> Toolkit:
    """Build the toolkit from ``RTK_*`` settings, optionally overriding the job store."""
    settings = get_settings()
    if database:
        settings = settings.model_copy(update={"jobs_db_path": Path(database)})
    return build_toolkit(settings)


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": obj}


def output_error(error: Exception) -> None:
    """Print an error and exit with code 1."""
    code = type(error).__name__
    message = error.message if isinstance(error, RtkError) else str(error)
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")
    cause = getattr(error, "cause", None)
    if cause is not None:
        err_console.print(f"  [dim]caused by {type(cause).__name__}: {cause}[/dim]")
    raise typer.Exit(code=1)


def output_result(result: Result[Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a Result to the terminal; an Err exits with code 1."""
    if result.is_err():
        output_error(result.error)

    data = result.unwrap()

    if as_json:
        console.print_json(json.dumps(data, default=str))
        return

    if isinstance(data, list | tuple):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        if all(isinstance(item, dict) or hasattr(item, "__dataclass_fields__") for item in data):
            print_table(list(data), title=title)
        else:
            if title:
                console.print(f"[bold]{title}[/bold]")
            for item in data:
                console.print(f"  {item}")
    elif isinstance(data, dict) or hasattr(data, "__dataclass_fields__"):
        print_dict(_to_dict(data), title=title)
    else:
        console.print(data if not title else f"[bold]{title}[/bold]: {data}")


def print_table(items: list, *, title: str = "", columns: list[str] | None = None) -> None:
    """Render a list of dataclasses/dicts as a Rich table."""
    rows = [_to_dict(item) for item in items]
    columns = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(_cell(row.get(col)) for col in columns))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, list | dict):
        return json.dumps(value, default=str)
    return str(value)
