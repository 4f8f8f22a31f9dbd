"""
CLI utility helpers: store construction, input parsing and output formatting.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from fossil.core.errors import EntryValidationError, FossilError
from fossil.core.settings import FossilSettings
from fossil.core.timestamps import from_iso8601, to_iso8601
from fossil.store.config import StoreConfig
from fossil.store.models import FossilEntry
from fossil.store.query import Page
from fossil.store.service import FossilStore

console = Console()
err_console = Console(stderr=True)


# ── Store helper ─────────────────────────────────────────────────────────


def get_settings(ctx: typer.Context) -> FossilSettings:
    """Settings from the environment, with ``--root`` taking precedence."""
    root = (ctx.obj or {}).get("root")
    if root is not None:
        return FossilSettings(root_path=root)
    return FossilSettings()


def make_store(ctx: typer.Context) -> FossilStore:
    """Build a ``FossilStore`` for the command's root."""
    store_factory = (ctx.obj or {}).get("store_factory")
    config = StoreConfig.from_settings(get_settings(ctx))
    if store_factory is not None:
        return store_factory(config)
    return FossilStore(config)


# ── Input helpers ────────────────────────────────────────────────────────


def parse_json_object(raw: str, *, param: str) -> dict[str, Any]:
    """Parse an inline JSON object or raise ``typer.BadParameter``."""
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"not valid JSON: {exc}", param_hint=param) from exc
    if not isinstance(value, dict):
        raise typer.BadParameter("must be a JSON object", param_hint=param)
    return value


def read_json_source(source: str, *, param: str) -> dict[str, Any]:
    """Read a JSON object from a file path, ``-`` (stdin) or an inline string."""
    if source == "-":
        return parse_json_object(sys.stdin.read(), param=param)
    path = Path(source)
    if path.is_file():
        return parse_json_object(path.read_text(encoding="utf-8"), param=param)
    return parse_json_object(source, param=param)


def parse_when(raw: str | None, *, param: str) -> Any:
    if raw is None:
        return None
    try:
        return from_iso8601(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"not an ISO-8601 timestamp: {raw!r}", param_hint=param) from exc


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert entry / pydantic model / dataclass / dict to a JSON-ready dict."""
    if isinstance(obj, FossilEntry):
        return obj.to_document()
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(data: Any) -> None:
    """Write JSON to stdout unwrapped, so it stays machine-readable."""
    typer.echo(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def fail(error: Exception) -> None:
    """Report an error on stderr and exit with status 1."""
    category = error.category.value if isinstance(error, FossilError) else "ERROR"
    message = error.message if isinstance(error, FossilError) else str(error)
    err_console.print(f"[bold red]Error[/bold red] ({category}): {message}")
    if isinstance(error, EntryValidationError):
        for violation in error.violations:
            err_console.print(f"  [red]-[/red] {violation.message}")
    raise typer.Exit(code=1)


def output_entry(entry: FossilEntry, *, as_json: bool = False) -> None:
    if as_json:
        print_json(entry.to_document())
        return
    console.print(f"[bold]{entry.title}[/bold]  [dim]{entry.id}[/dim]")
    console.print(f"  [cyan]type[/cyan]: {entry.type.value}")
    console.print(f"  [cyan]source[/cyan]: {entry.source.value}")
    console.print(f"  [cyan]tags[/cyan]: {', '.join(entry.tags) or '-'}")
    console.print(f"  [cyan]version[/cyan]: {entry.version}")
    console.print(f"  [cyan]created[/cyan]: {to_iso8601(entry.created_at)}")
    console.print(f"  [cyan]updated[/cyan]: {to_iso8601(entry.updated_at)}")
    console.print()
    console.print(entry.content, markup=False, highlight=False)


def output_page(page: Page[FossilEntry], *, as_json: bool = False, title: str = "") -> None:
    """Render a ``Page`` of entries with pagination info."""
    if as_json:
        print_json({
            "items": [entry.to_document() for entry in page.items],
            "total": page.total,
            "limit": page.limit,
            "offset": page.offset,
            "has_more": page.has_more,
        })
        return

    if not page.items:
        console.print("[dim]No items.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for column in ("id", "type", "title", "tags", "created"):
        table.add_column(column, overflow="fold")
    for entry in page.items:
        table.add_row(
            entry.id,
            entry.type.value,
            entry.title,
            ", ".join(entry.tags),
            to_iso8601(entry.created_at) or "",
        )
    console.print(table)
    console.print(f"\n[dim]Showing {len(page.items)} of {page.total} (offset {page.offset})[/dim]")


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for key, value in data.items():
        console.print(f"  [cyan]{key}[/cyan]: {value}")
