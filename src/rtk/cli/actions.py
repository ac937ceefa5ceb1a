"""
CLI: ``rtk actions`` and ``rtk run`` — inspect and invoke actions.
"""

from __future__ import annotations

import json

import typer

from rtk.cli.utils import console, make_toolkit, output_result, print_table
from rtk.framework import TriggerSource


def list_actions(
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List every registered action with its aliases and parameter shape."""
    toolkit = make_toolkit()
    rows = [
        {
            "action": descriptor.canonical_name,
            "aliases": ", ".join(sorted(descriptor.aliases)),
            "parameters": ", ".join(tag.value for tag in descriptor.parameter_shape),
            "description": descriptor.description,
        }
        for descriptor in toolkit.registry.descriptors()
    ]
    if json_out:
        console.print_json(json.dumps(rows))
        return
    print_table(rows, title="Actions")


def run_action(
    action: str = typer.Argument(..., help="Action name or alias"),
    args: list[str] | None = typer.Argument(None, help="Positional arguments"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Dispatch one action now and print what it returned."""
    toolkit = make_toolkit()
    result = toolkit.dispatcher.dispatch(action, list(args or []), TriggerSource.CLI)
    output_result(result, as_json=json_out, title=action)
