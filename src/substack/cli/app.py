"""
Root Typer application for the substack CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from substack.cli import commands

app = Typer(
    name="substack",
    help="substack: run one unit of a split deployment pipeline, or aggregate them all.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from substack import __version__

        typer.echo(f"substack {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """substack CLI: run, list and inspect substacks."""


# ── Commands ─────────────────────────────────────────────────────────────

app.command("run")(commands.run)
app.command("list")(commands.list_substacks)
app.command("outputs")(commands.outputs)
app.command("identity")(commands.identity)
