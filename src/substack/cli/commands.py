"""
CLI commands: run, list, outputs, identity.

Usage::

    substack run --stack dev.provision          # run one substack, publish its outputs
    substack run --stack dev                    # aggregate every substack's outputs
    substack list                               # registered substacks, in order
    substack outputs dev.build                  # published outputs of one identity
    substack identity --stack dev.build         # how an identity parses
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import typer

from substack.cli.utils import console, fail, load_settings, output_aggregate, output_outputs
from substack.core.enums import RunMode, StoreBackend
from substack.core.errors import SubstackError, UnitNotFoundError
from substack.core.identity import StackIdentity
from substack.core.logging import configure_logging
from substack.framework.app import SubstackApp
from substack.store import create_store


async def _run_and_publish(app: SubstackApp, publish: bool) -> Any:
    outputs = await app.main()
    if publish:
        await app.publish(outputs)
    return outputs


def run(
    stack: str | None = typer.Option(None, "--stack", "-s", help="Stack identity, e.g. dev or dev.build."),
    pipeline: str | None = typer.Option(None, "--pipeline", "-p", help="Module (or module:function) registering the substacks."),
    store_dir: Path | None = typer.Option(None, "--store-dir", help="Local output store directory."),
    memory: bool = typer.Option(False, "--memory", help="Use an empty in-memory store (nothing persists)."),
    publish: bool = typer.Option(True, "--publish/--no-publish", help="Publish the returned outputs to the store."),
    show_secrets: bool = typer.Option(False, "--show-secrets", help="Print secret outputs in the clear."),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Run the substack selected by the stack identity (or aggregate at the root)."""
    settings = load_settings(
        stack=stack,
        pipeline=pipeline,
        store_dir=store_dir,
        store=StoreBackend.MEMORY if memory else None,
        log_level=log_level,
    )
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    try:
        app = SubstackApp.from_settings(settings).bootstrap(settings.pipeline)
        outputs = asyncio.run(_run_and_publish(app, publish))
    except UnitNotFoundError as e:
        raise fail(e.message) from e
    except SubstackError as e:
        raise fail(f"{type(e).__name__}: {e.message}") from e

    if app.mode is RunMode.ROOT:
        output_aggregate(outputs or {}, show_secrets=show_secrets, as_json=json_out)
    else:
        output_outputs(outputs, title=str(app.identity), show_secrets=show_secrets, as_json=json_out)


def list_substacks(
    stack: str | None = typer.Option(None, "--stack", "-s"),
    pipeline: str | None = typer.Option(None, "--pipeline", "-p"),
) -> None:
    """List registered substacks in registration order."""
    settings = load_settings(stack=stack, pipeline=pipeline, store=StoreBackend.MEMORY)
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    try:
        app = SubstackApp.from_settings(settings).bootstrap(settings.pipeline)
    except SubstackError as e:
        raise fail(e.message) from e

    root = app.identity.root
    for position, unit in enumerate(app.registry, start=1):
        outputs = ", ".join(sorted(unit.outputs)) if unit.outputs is not None else "*"
        console.print(f"{position}. [cyan]{unit.name}[/cyan]  {root.child(unit.name)}  [dim]{outputs}[/dim]")


def outputs(
    identity: str = typer.Argument(..., help="Stack identity, e.g. dev.build"),
    store_dir: Path | None = typer.Option(None, "--store-dir"),
    show_secrets: bool = typer.Option(False, "--show-secrets"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the outputs published under an identity."""
    settings = load_settings(store_dir=store_dir)
    configure_logging(level=settings.log_level, json_format=settings.log_json)
    try:
        StackIdentity.parse(identity)
        published = asyncio.run(create_store(settings).fetch_outputs(identity))
    except SubstackError as e:
        raise fail(e.message) from e
    output_outputs(published, title=identity, show_secrets=show_secrets, as_json=json_out)


def identity(
    stack: str | None = typer.Option(None, "--stack", "-s"),
) -> None:
    """Show how the stack identity parses."""
    settings = load_settings(stack=stack)
    parsed = settings.identity
    mode = RunMode.ROOT if parsed.is_root else RunMode.UNIT
    console.print(f"stack:    [cyan]{parsed.stack}[/cyan]")
    console.print(f"substack: [cyan]{parsed.substack or '-'}[/cyan]")
    console.print(f"mode:     [cyan]{mode.value}[/cyan]")
