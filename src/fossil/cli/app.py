"""
Root Typer application for the ``fossil`` CLI.
"""

from __future__ import annotations

from pathlib import Path

import typer
from typer import Typer

from fossil import __version__
from fossil.cli.canonical import app as canonical_app
from fossil.cli.entries import app as entries_app
from fossil.core.logging import bind_context, configure_logging
from fossil.core.settings import FossilSettings

app = Typer(
    name="fossil",
    help="fossil: deduplicating record store with canonical snapshots.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fossil {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    root: Path | None = typer.Option(
        None,
        "--root",
        "-r",
        help="Root of the fossil tree (default: $FOSSIL_ROOT_PATH or ./fossils).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log store events to stderr."),
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """fossil CLI: record entries, query them and maintain canonical snapshots."""
    state = ctx.ensure_object(dict)
    if root is not None:
        state["root"] = root
    settings = FossilSettings()
    configure_logging(
        level=settings.log_level if verbose else "WARNING",
        json_format=settings.json_logs,
    )
    bind_context(command=ctx.invoked_subcommand)


# ── Sub-command registration ─────────────────────────────────────────────

app.add_typer(entries_app, name="entries", help="Ad hoc fossil entries.")
app.add_typer(canonical_app, name="canonical", help="Canonical snapshots, archive and traceability.")
