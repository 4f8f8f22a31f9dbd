"""
CLI: ``fossil canonical``, canonical snapshots with their archive and traceability.
"""

from __future__ import annotations

import typer

from fossil.cli.utils import console, fail, make_store, print_dict, print_json, read_json_source
from fossil.core.result import Err, Ok
from fossil.store.schemas import KNOWN_CATEGORIES

app = typer.Typer(no_args_is_help=True)


@app.command("update")
def update_category(
    ctx: typer.Context,
    category: str = typer.Argument(..., help=f"Category slug: {', '.join(KNOWN_CATEGORIES)} or any new one"),
    payload: str = typer.Option(..., "--payload", "-p", help="JSON file, '-' for stdin, or inline JSON"),
    transversal_value: int | None = typer.Option(None, "--transversal-value", min=0, max=100),
    trace: bool = typer.Option(True, "--trace/--no-trace", help="Record traceability afterwards"),
    aggregate: bool = typer.Option(False, "--aggregate", help="Regenerate context.yml afterwards"),
) -> None:
    """Archive the current snapshot of CATEGORY and replace it."""
    data = read_json_source(payload, param="--payload")
    result = make_store(ctx).update_category(
        category, data, transversal_value=transversal_value, trace=trace, aggregate=aggregate,
    )
    match result:
        case Err(error):
            fail(error)
        case Ok(path):
            console.print(f"[green]Updated[/green] {path}")


@app.command("show")
def show_category(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Category slug"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show the live snapshot of CATEGORY."""
    document = make_store(ctx).get_category(category)
    if document is None:
        console.print(f"[red]Not found:[/red] {category}")
        raise typer.Exit(code=1)
    if json_out:
        print_json(document)
    else:
        print_dict(document, title=f"Canonical: {category}")


@app.command("history")
def history(
    ctx: typer.Context,
    category: str = typer.Argument(..., help="Category slug"),
) -> None:
    """List archived snapshots of CATEGORY, oldest first."""
    paths = make_store(ctx).category_history(category)
    if not paths:
        console.print("[dim]No items.[/dim]")
        return
    for path in paths:
        typer.echo(str(path))


@app.command("list")
def list_categories(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List categories that have a live snapshot."""
    categories = make_store(ctx).categories()
    if json_out:
        print_json(categories)
        return
    if not categories:
        console.print("[dim]No items.[/dim]")
        return
    for category in categories:
        typer.echo(category)


@app.command("aggregate")
def aggregate(ctx: typer.Context) -> None:
    """Regenerate canonical/context.yml from every live snapshot."""
    match make_store(ctx).generate_aggregate_snapshot():
        case Err(error):
            fail(error)
        case Ok(path):
            console.print(f"[green]Wrote[/green] {path}")


@app.command("trace")
def trace(ctx: typer.Context) -> None:
    """Record which files under the fossil root changed, with git state."""
    match make_store(ctx).record_traceability():
        case Err(error):
            fail(error)
        case Ok(None):
            console.print("[dim]No fossil changes detected.[/dim]")
        case Ok(record):
            console.print(f"[green]Recorded[/green] {len(record.fossil_changes)} fossil change(s)")
