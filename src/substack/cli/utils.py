"""
CLI utility helpers: settings overrides and output rendering.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from substack.core.settings import SubstackSettings
from substack.core.values import mask, reveal

console = Console()
err_console = Console(stderr=True)


def load_settings(**overrides: Any) -> SubstackSettings:
    """Settings from env / ``.env`` with CLI options (non-None) on top."""
    try:
        return SubstackSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        err_console.print(f"[bold red]Invalid settings[/bold red]: {escape(str(e))}")
        raise typer.Exit(code=1) from e


def fail(message: str, code: int = 1) -> typer.Exit:
    """Print an error and return the ``typer.Exit`` to raise."""
    err_console.print(f"[bold red]Error[/bold red]: {escape(message)}")
    return typer.Exit(code=code)


def _render(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return str(value)


def output_outputs(
    outputs: Mapping[str, Any] | None,
    *,
    title: str = "",
    show_secrets: bool = False,
    as_json: bool = False,
) -> None:
    """Render an output set; secrets are masked unless ``show_secrets``."""
    display = reveal(dict(outputs or {})) if show_secrets else mask(dict(outputs or {}))

    if as_json:
        console.print_json(json.dumps(display, default=str))
        return

    if not display:
        label = f"{escape(title)}: " if title else ""
        console.print(f"[dim]{label}no outputs[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("key", style="cyan")
    table.add_column("value", overflow="fold")
    for key, value in display.items():
        table.add_row(Text(key), Text(_render(value)))
    console.print(table)


def output_aggregate(
    aggregate: Mapping[str, Mapping[str, Any]],
    *,
    title: str = "",
    show_secrets: bool = False,
    as_json: bool = False,
) -> None:
    """Render a root-mode aggregate: one table per substack."""
    if as_json:
        display = reveal(dict(aggregate)) if show_secrets else mask(dict(aggregate))
        console.print_json(json.dumps(display, default=str))
        return

    if not aggregate:
        console.print("[dim]No substacks.[/dim]")
        return

    for name, outputs in aggregate.items():
        output_outputs(outputs, title=f"{title}{name}", show_secrets=show_secrets)
