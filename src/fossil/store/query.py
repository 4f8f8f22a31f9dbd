"""
Query engine over fossil entries.

Filters are ANDed together. Within ``tags`` the match is "any": an entry
carrying at least one of the requested tags passes. ``search`` is a
case-insensitive substring test on title and content. ``date_range`` is
inclusive on ``createdAt``; either bound may be left open.

Results are ordered by ``createdAt`` (newest first unless
``newest_first=False``; equal timestamps fall back to id) and then paged
with ``offset``/``limit``. ``Page.total`` counts every match before paging.

Examples:
    >>> engine = QueryEngine(repo)
    >>> page = engine.query(QueryFilter(type=EntryType.INSIGHT, limit=10))
    >>> page.total, len(page.items), page.has_more
    (3, 3, False)

Tags:
    query, filtering, pagination, read-only
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fossil.store.models import EntrySource, EntryType, FossilEntry
from fossil.store.repository import FossilRepository

T = TypeVar("T")

DEFAULT_LIMIT = 100


class DateRange(BaseModel):
    """Inclusive ``createdAt`` window; ``None`` leaves a side open."""

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _ordered(self) -> DateRange:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("date_range.start must not be after date_range.end")
        return self

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


class QueryFilter(BaseModel):
    """Criteria for ``QueryEngine.query``. Unset fields do not filter."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: EntryType | None = None
    tags: list[str] | None = None
    source: EntrySource | None = None
    search: str | None = None
    date_range: DateRange | None = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=0)
    offset: int = Field(default=0, ge=0)
    newest_first: bool = True

    def matches(self, entry: FossilEntry) -> bool:
        if self.type is not None and entry.type != self.type:
            return False
        if self.source is not None and entry.source != self.source:
            return False
        if self.tags and not set(self.tags) & set(entry.tags):
            return False
        if self.search:
            needle = self.search.lower()
            if needle not in entry.title.lower() and needle not in entry.content.lower():
                return False
        if self.date_range is not None and not self.date_range.contains(entry.created_at):
            return False
        return True


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of query results plus the size of the full match set."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    limit: int = DEFAULT_LIMIT
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total

    @classmethod
    def from_matches(cls, matches: list[T], *, limit: int, offset: int) -> Page[T]:
        return cls(items=matches[offset:offset + limit], total=len(matches), limit=limit, offset=offset)


def filter_entries(entries: Iterable[FossilEntry], query_filter: QueryFilter) -> list[FossilEntry]:
    """Apply ``query_filter`` and its ordering, without paging."""
    matches = [entry for entry in entries if query_filter.matches(entry)]
    matches.sort(key=lambda e: (e.created_at, e.id), reverse=query_filter.newest_first)
    return matches


class QueryEngine:
    """Read-only filtering over a repository's entries."""

    def __init__(self, repository: FossilRepository) -> None:
        self.repository = repository

    def query(self, query_filter: QueryFilter | None = None) -> Page[FossilEntry]:
        query_filter = query_filter or QueryFilter()
        matches = filter_entries(self.repository.iter_entries(), query_filter)
        return Page.from_matches(matches, limit=query_filter.limit, offset=query_filter.offset)


__all__ = ["DEFAULT_LIMIT", "DateRange", "Page", "QueryEngine", "QueryFilter", "filter_entries"]
