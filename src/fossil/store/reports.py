"""
Read-only reports over fossil entries.

- ``statistics``: counts by type, source and tag plus on-disk size
- ``context_summary``: a compact digest meant to be pasted into an LLM prompt
- ``export``: the (filtered) entries written to ``exports/`` as JSON,
  Markdown, CSV or YAML
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from fossil.core.errors import ErrorContext, StorageError, ValidationError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, SystemClock, filename_timestamp, to_iso8601
from fossil.store.fsio import atomic_write_bytes
from fossil.store.models import EntryType, FossilEntry
from fossil.store.query import QueryFilter, filter_entries
from fossil.store.repository import FossilRepository

logger = get_logger(__name__)

RECENT_LIMIT = 10
INSIGHT_WINDOW = 5
INSIGHT_PREVIEW = 100
INSIGHT_TYPES = (EntryType.INSIGHT, EntryType.DECISION)

CSV_COLUMNS = ["id", "type", "title", "content", "tags", "source", "createdAt", "updatedAt", "version"]


class ExportFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"
    CSV = "csv"
    YAML = "yaml"

    @property
    def extension(self) -> str:
        return "md" if self is ExportFormat.MARKDOWN else self.value


@dataclass
class StoreStatistics:
    total_entries: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_source: dict[str, int] = field(default_factory=dict)
    by_tag: dict[str, int] = field(default_factory=dict)
    last_updated: datetime | None = None
    storage_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_updated"] = to_iso8601(self.last_updated)
        return data


def statistics(repository: FossilRepository) -> StoreStatistics:
    """Aggregate counts over every readable entry."""
    entries = repository.all_entries()
    by_tag: Counter[str] = Counter(tag for entry in entries for tag in entry.tags)
    storage_size = 0
    if repository.entries_dir.is_dir():
        for path in repository.entries_dir.glob("*.json"):
            try:
                storage_size += path.stat().st_size
            except OSError as exc:
                logger.warning("fossil_file_unreadable", path=str(path), error=str(exc))
    return StoreStatistics(
        total_entries=len(entries),
        by_type=dict(Counter(entry.type.value for entry in entries)),
        by_source=dict(Counter(entry.source.value for entry in entries)),
        by_tag=dict(by_tag.most_common()),
        last_updated=max((entry.updated_at for entry in entries), default=None),
        storage_size=storage_size,
    )


def _newest_first(entries: Iterable[FossilEntry]) -> list[FossilEntry]:
    return sorted(entries, key=lambda e: (e.created_at, e.id), reverse=True)


def context_summary(entries: Iterable[FossilEntry]) -> dict[str, Any]:
    """Digest of ``entries`` for prompting.

    ``keyInsights`` looks only at the five newest entries and keeps the
    insights and decisions among them.
    """
    ordered = _newest_first(entries)
    return {
        "totalEntries": len(ordered),
        "byType": dict(Counter(entry.type.value for entry in ordered)),
        "bySource": dict(Counter(entry.source.value for entry in ordered)),
        "recentEntries": [
            {
                "id": entry.id,
                "title": entry.title,
                "type": entry.type.value,
                "createdAt": to_iso8601(entry.created_at),
            }
            for entry in ordered[:RECENT_LIMIT]
        ],
        "keyInsights": [
            f"{entry.title}: {entry.content[:INSIGHT_PREVIEW]}..."
            for entry in ordered[:INSIGHT_WINDOW]
            if entry.type in INSIGHT_TYPES
        ],
    }


# =============================================================================
# EXPORT RENDERERS
# =============================================================================


def render_json(entries: list[FossilEntry], generated: datetime) -> str:
    return json.dumps([entry.to_document() for entry in entries], indent=2, ensure_ascii=False) + "\n"


def render_markdown(entries: list[FossilEntry], generated: datetime) -> str:
    lines = [
        "# Fossil Export",
        "",
        f"Generated: {to_iso8601(generated)}",
        f"Total Entries: {len(entries)}",
        "",
    ]
    for entry_type in EntryType:
        group = [entry for entry in entries if entry.type is entry_type]
        if not group:
            continue
        lines += [f"## {entry_type.value.capitalize()} ({len(group)})", ""]
        for entry in group:
            lines += [
                f"### {entry.title}",
                "",
                f"**ID:** {entry.id}",
                f"**Created:** {to_iso8601(entry.created_at)}",
                f"**Source:** {entry.source.value}",
                f"**Tags:** {', '.join(entry.tags)}",
                "",
                entry.content,
                "",
                "---",
                "",
            ]
    return "\n".join(lines)


def render_csv(entries: list[FossilEntry], generated: datetime) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for entry in entries:
        writer.writerow([
            entry.id,
            entry.type.value,
            entry.title,
            entry.content,
            ";".join(entry.tags),
            entry.source.value,
            to_iso8601(entry.created_at),
            to_iso8601(entry.updated_at),
            entry.version,
        ])
    return buffer.getvalue()


def render_yaml(entries: list[FossilEntry], generated: datetime) -> str:
    document = {
        "generated": to_iso8601(generated),
        "total_entries": len(entries),
        "entries": [entry.to_document() for entry in entries],
    }
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


RENDERERS = {
    ExportFormat.JSON: render_json,
    ExportFormat.MARKDOWN: render_markdown,
    ExportFormat.CSV: render_csv,
    ExportFormat.YAML: render_yaml,
}


def export(
    repository: FossilRepository,
    fmt: ExportFormat | str,
    query_filter: QueryFilter | None = None,
    *,
    clock: Clock | None = None,
) -> Result[Path]:
    """Write matching entries to ``exports/fossil-export-{timestamp}.{ext}``."""
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        return Err(ValidationError(
            f"Unknown export format {fmt!r}; expected one of {', '.join(f.value for f in ExportFormat)}",
            field="format",
            value=fmt,
            constraint="export_format",
        ))

    query_filter = query_filter or QueryFilter()
    matches = filter_entries(repository.iter_entries(), query_filter)
    entries = matches[query_filter.offset:query_filter.offset + query_filter.limit]

    now = (clock or SystemClock()).now()
    directory = repository.config.exports_dir
    stem = f"fossil-export-{filename_timestamp(now)}"
    path = directory / f"{stem}.{fmt.extension}"
    n = 0
    while path.exists():
        n += 1
        path = directory / f"{stem}-{n}.{fmt.extension}"

    content = RENDERERS[fmt](entries, now)
    try:
        atomic_write_bytes(path, content.encode("utf-8"))
    except OSError as exc:
        return Err(StorageError(
            f"Could not write {path}: {exc}",
            context=ErrorContext(path=str(path), operation="export"),
            cause=exc,
        ))
    logger.info("entries_exported", path=str(path), format=fmt.value, count=len(entries))
    return Ok(path)


__all__ = [
    "ExportFormat",
    "StoreStatistics",
    "context_summary",
    "export",
    "statistics",
]
