"""
CLI: ``fossil entries``, ad hoc entries (create, read, update, delete, query).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from fossil.cli.utils import (
    console,
    fail,
    make_store,
    output_entry,
    output_page,
    parse_json_object,
    parse_when,
    print_dict,
    print_json,
)
from fossil.core.result import Err, Ok
from fossil.store.models import EntrySource, EntryType
from fossil.store.query import DateRange, QueryFilter
from fossil.store.reports import ExportFormat
from fossil.store.repository import USE_CONFIG, Created

app = typer.Typer(no_args_is_help=True)


def _read_content(content: str | None, content_file: Path | None) -> str | None:
    if content_file is not None:
        return content_file.read_text(encoding="utf-8")
    return content


def _build_filter(
    entry_type: EntryType | None,
    tags: list[str] | None,
    source: EntrySource | None,
    search: str | None,
    since: str | None,
    until: str | None,
    limit: int,
    offset: int,
    oldest_first: bool,
) -> QueryFilter:
    start = parse_when(since, param="--since")
    end = parse_when(until, param="--until")
    date_range = DateRange(start=start, end=end) if start or end else None
    return QueryFilter(
        type=entry_type,
        tags=tags or None,
        source=source,
        search=search,
        date_range=date_range,
        limit=limit,
        offset=offset,
        newest_first=not oldest_first,
    )


@app.command("add")
def add_entry(
    ctx: typer.Context,
    entry_type: EntryType = typer.Option(..., "--type", "-T", help="Entry type"),
    title: str = typer.Option(..., "--title", help="Short title"),
    content: str | None = typer.Option(None, "--content", "-c", help="Entry content"),
    content_file: Path | None = typer.Option(None, "--content-file", exists=True, dir_okay=False),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    source: EntrySource = typer.Option(EntrySource.MANUAL, "--source", "-s"),
    created_by: str = typer.Option("unknown", "--created-by"),
    parent: str | None = typer.Option(None, "--parent", help="ID of the parent entry"),
    metadata: str | None = typer.Option(None, "--metadata", "-m", help="JSON object"),
    threshold: float | None = typer.Option(None, "--threshold", min=0, max=100, help="Dedup threshold"),
    no_dedup: bool = typer.Option(False, "--no-dedup", help="Always insert"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Create an entry, or report the existing near-duplicate."""
    store = make_store(ctx)
    candidate: dict[str, Any] = {
        "type": entry_type,
        "title": title,
        "content": _read_content(content, content_file) or "",
        "tags": tags or [],
        "source": source,
        "createdBy": created_by,
        "parentId": parent,
        "metadata": parse_json_object(metadata, param="--metadata") if metadata else {},
    }
    dedup = None if no_dedup else (threshold if threshold is not None else USE_CONFIG)

    match store.create(candidate, dedup):
        case Err(error):
            fail(error)
        case Ok(Created(entry)):
            if json_out:
                print_json({"status": "created", "entry": entry.to_document()})
            else:
                console.print(f"[green]Created[/green] {entry.id}")
        case Ok(outcome):
            if json_out:
                print_json({"status": "deduplicated", "score": outcome.score, "entry": outcome.entry.to_document()})
            else:
                console.print(
                    f"[yellow]Duplicate[/yellow] of {outcome.entry.id} (score {outcome.score:.1f}); nothing written"
                )


@app.command("get")
def get_entry(
    ctx: typer.Context,
    fossil_id: str = typer.Argument(..., help="Entry ID"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one entry."""
    entry = make_store(ctx).get(fossil_id)
    if entry is None:
        console.print(f"[red]Not found:[/red] {fossil_id}")
        raise typer.Exit(code=1)
    output_entry(entry, as_json=json_out)


@app.command("update")
def update_entry(
    ctx: typer.Context,
    fossil_id: str = typer.Argument(..., help="Entry ID"),
    entry_type: EntryType | None = typer.Option(None, "--type", "-T"),
    title: str | None = typer.Option(None, "--title"),
    content: str | None = typer.Option(None, "--content", "-c"),
    content_file: Path | None = typer.Option(None, "--content-file", exists=True, dir_okay=False),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Replace tags (repeatable)"),
    source: EntrySource | None = typer.Option(None, "--source", "-s"),
    metadata: str | None = typer.Option(None, "--metadata", "-m", help="JSON object merged into metadata"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Patch an entry; the previous state is kept in its version history."""
    patch: dict[str, Any] = {
        "type": entry_type,
        "title": title,
        "content": _read_content(content, content_file),
        "tags": tags or None,
        "source": source,
        "metadata": parse_json_object(metadata, param="--metadata") if metadata else None,
    }
    patch = {key: value for key, value in patch.items() if value is not None}

    match make_store(ctx).update(fossil_id, patch):
        case Err(error):
            fail(error)
        case Ok(entry):
            if json_out:
                print_json(entry.to_document())
            else:
                console.print(f"[green]Updated[/green] {entry.id} (version {entry.version})")


@app.command("delete")
def delete_entry(
    ctx: typer.Context,
    fossil_id: str = typer.Argument(..., help="Entry ID"),
) -> None:
    """Permanently delete an entry."""
    match make_store(ctx).delete(fossil_id):
        case Err(error):
            fail(error)
        case Ok(True):
            console.print(f"[green]Deleted[/green] {fossil_id}")
        case Ok(_):
            console.print(f"[red]Not found:[/red] {fossil_id}")
            raise typer.Exit(code=1)


@app.command("query")
def query_entries(
    ctx: typer.Context,
    entry_type: EntryType | None = typer.Option(None, "--type", "-T"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Match any of these tags"),
    source: EntrySource | None = typer.Option(None, "--source", "-s"),
    search: str | None = typer.Option(None, "--search", "-q", help="Substring of title or content"),
    since: str | None = typer.Option(None, "--since", help="ISO-8601 lower bound on createdAt"),
    until: str | None = typer.Option(None, "--until", help="ISO-8601 upper bound on createdAt"),
    limit: int = typer.Option(100, "--limit", "-n", min=0),
    offset: int = typer.Option(0, "--offset", min=0),
    oldest_first: bool = typer.Option(False, "--oldest-first"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List entries matching every given filter."""
    query_filter = _build_filter(entry_type, tags, source, search, since, until, limit, offset, oldest_first)
    output_page(make_store(ctx).query(query_filter), as_json=json_out, title="Entries")


@app.command("similar")
def similar_entries(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title"),
    content: str = typer.Option(..., "--content", "-c"),
    threshold: float = typer.Option(0.0, "--threshold", min=0, max=100),
    limit: int = typer.Option(10, "--limit", "-n", min=1),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Rank stored entries by similarity to a title and content."""
    matches = make_store(ctx).find_similar(title, content, threshold)[:limit]
    if json_out:
        print_json([{"score": m.score, "entry": m.entry.to_document()} for m in matches])
        return
    if not matches:
        console.print("[dim]No items.[/dim]")
        return
    for match in matches:
        console.print(f"{match.score:6.1f}  {match.entry.id}  {match.entry.title}")


@app.command("related")
def related_entries(
    ctx: typer.Context,
    fossil_id: str = typer.Argument(..., help="Entry ID"),
    depth: int = typer.Option(2, "--depth", "-d", min=0, help="Parent/child hops to follow"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List entries linked to FOSSIL_ID through parent and child links."""
    store = make_store(ctx)
    if store.get(fossil_id) is None:
        console.print(f"[red]Not found:[/red] {fossil_id}")
        raise typer.Exit(code=1)
    entries = store.related(fossil_id, depth)
    if json_out:
        print_json([entry.to_document() for entry in entries])
        return
    if not entries:
        console.print("[dim]No items.[/dim]")
        return
    for entry in entries:
        console.print(f"{entry.id}  {entry.type.value}  {entry.title}")


@app.command("stats")
def stats(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Counts by type, source and tag."""
    data = make_store(ctx).statistics().to_dict()
    if json_out:
        print_json(data)
    else:
        print_dict(data, title="Fossil statistics")


@app.command("summary")
def summary(
    ctx: typer.Context,
    entry_type: EntryType | None = typer.Option(None, "--type", "-T"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t"),
    limit: int = typer.Option(100, "--limit", "-n", min=0),
) -> None:
    """Print a JSON context summary suitable for an LLM prompt."""
    query_filter = QueryFilter(type=entry_type, tags=tags or None, limit=limit)
    print_json(make_store(ctx).context_summary(query_filter))


@app.command("export")
def export_entries(
    ctx: typer.Context,
    fmt: ExportFormat = typer.Option(ExportFormat.JSON, "--format", "-f"),
    entry_type: EntryType | None = typer.Option(None, "--type", "-T"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t"),
    source: EntrySource | None = typer.Option(None, "--source", "-s"),
    search: str | None = typer.Option(None, "--search", "-q"),
    limit: int = typer.Option(100, "--limit", "-n", min=0),
) -> None:
    """Export entries to the exports/ directory."""
    query_filter = _build_filter(entry_type, tags, source, search, None, None, limit, 0, False)
    match make_store(ctx).export(fmt, query_filter):
        case Err(error):
            fail(error)
        case Ok(path):
            console.print(f"[green]Exported[/green] {path}")


@app.command("snapshot")
def snapshot(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Snapshot name"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Copy every entry into a named snapshot."""
    match make_store(ctx).create_snapshot(name):
        case Err(error):
            fail(error)
        case Ok(info):
            if json_out:
                print_json(info.to_document())
            else:
                console.print(f"[green]Snapshot[/green] {info.id} ({info.entry_count} entries)")


@app.command("snapshots")
def list_snapshots(
    ctx: typer.Context,
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List entry snapshots, oldest first."""
    snapshots = make_store(ctx).list_snapshots()
    if json_out:
        print_json([info.to_document() for info in snapshots])
        return
    if not snapshots:
        console.print("[dim]No items.[/dim]")
        return
    for info in snapshots:
        console.print(f"{info.id}  {info.name}  {info.entry_count} entries  [dim]{info.timestamp.isoformat()}[/dim]")
