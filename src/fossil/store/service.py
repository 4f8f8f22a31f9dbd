"""
FossilStore: one object wiring every store component from a ``StoreConfig``.

Producer scripts and the CLI talk to this facade; the components stay
individually usable (and individually testable) underneath it.

Examples:
    >>> store = FossilStore(StoreConfig(root_path=Path("fossils")))
    >>> outcome = store.create({"type": "observation", "title": "CI green",
    ...                         "content": "all 412 tests passed"}).unwrap()
    >>> store.update_category("validation", {"validation_steps": [], "summary": {}}).is_ok()
    True
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fossil.core.logging import get_logger
from fossil.core.result import Result
from fossil.core.settings import FossilSettings
from fossil.core.timestamps import Clock, SystemClock
from fossil.store.canonical import CanonicalManager
from fossil.store.config import StoreConfig
from fossil.store.models import EntryCandidate, EntryPatch, FossilEntry
from fossil.store.query import Page, QueryEngine, QueryFilter
from fossil.store.reports import ExportFormat, StoreStatistics, context_summary, export, statistics
from fossil.store.repository import USE_CONFIG, CreateOutcome, FossilRepository
from fossil.store.similarity import SimilarityMatch
from fossil.store.snapshots import SnapshotInfo, SnapshotManager
from fossil.store.traceability import CATEGORY as TRACEABILITY_CATEGORY
from fossil.store.traceability import TraceabilityRecord, TraceabilityTracker
from fossil.store.vcs import GitCli, Vcs

logger = get_logger(__name__)


class FossilStore:
    """Facade over repository, query engine, canonical manager and traceability."""

    def __init__(
        self,
        config: StoreConfig,
        *,
        vcs: Vcs | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.clock = clock or SystemClock()
        self.vcs = vcs or GitCli.for_path(config.root_path)
        self.repository = FossilRepository(config, clock=self.clock)
        self.queries = QueryEngine(self.repository)
        self.canonical = CanonicalManager(config, vcs=self.vcs, clock=self.clock)
        self.tracker = TraceabilityTracker(self.canonical)
        self.snapshots = SnapshotManager(self.repository)

    @classmethod
    def from_settings(cls, settings: FossilSettings | None = None, **kwargs: Any) -> FossilStore:
        return cls(StoreConfig.from_settings(settings), **kwargs)

    # ── Entries ──────────────────────────────────────────────────

    def create(
        self,
        candidate: EntryCandidate | Mapping[str, Any],
        dedup_threshold: float | None = USE_CONFIG,
    ) -> Result[CreateOutcome]:
        return self.repository.create(candidate, dedup_threshold)

    def get(self, fossil_id: str) -> FossilEntry | None:
        return self.repository.get(fossil_id)

    def update(self, fossil_id: str, patch: EntryPatch | Mapping[str, Any]) -> Result[FossilEntry]:
        return self.repository.update(fossil_id, patch)

    def delete(self, fossil_id: str) -> Result[bool]:
        return self.repository.delete(fossil_id)

    def query(self, query_filter: QueryFilter | None = None) -> Page[FossilEntry]:
        return self.queries.query(query_filter)

    def find_similar(self, title: str, content: str, threshold: float = 0.0) -> list[SimilarityMatch]:
        return self.repository.find_similar(title, content, threshold)

    def related(self, fossil_id: str, max_depth: int = 2) -> list[FossilEntry]:
        return self.repository.related(fossil_id, max_depth)

    # ── Reports & snapshots ──────────────────────────────────────

    def statistics(self) -> StoreStatistics:
        return statistics(self.repository)

    def context_summary(self, query_filter: QueryFilter | None = None) -> dict[str, Any]:
        return context_summary(self.query(query_filter).items)

    def export(self, fmt: ExportFormat | str, query_filter: QueryFilter | None = None) -> Result[Path]:
        return export(self.repository, fmt, query_filter, clock=self.clock)

    def create_snapshot(self, name: str) -> Result[SnapshotInfo]:
        return self.snapshots.create_snapshot(name)

    def list_snapshots(self) -> list[SnapshotInfo]:
        return self.snapshots.list_snapshots()

    # ── Canonical ────────────────────────────────────────────────

    def update_category(
        self,
        category: str,
        payload: Mapping[str, Any],
        *,
        transversal_value: int | None = None,
        trace: bool = True,
        aggregate: bool = False,
    ) -> Result[Path]:
        """Update a canonical category, optionally followed by traceability and the aggregate.

        Follow-up failures are logged; the category update itself has already
        been committed and its path is returned.
        """
        result = self.canonical.update(category, payload, transversal_value=transversal_value)
        if result.is_err():
            return result
        if trace and category != TRACEABILITY_CATEGORY:
            traced = self.tracker.record_traceability()
            if traced.is_err():
                logger.warning("traceability_skipped", category=category, error=str(traced.error))
        if aggregate:
            written = self.canonical.generate_aggregate_snapshot()
            if written.is_err():
                logger.warning("aggregate_skipped", category=category, error=str(written.error))
        return result

    def get_category(self, category: str) -> dict[str, Any] | None:
        return self.canonical.get(category)

    def categories(self) -> list[str]:
        return self.canonical.categories()

    def category_history(self, category: str) -> list[Path]:
        return self.canonical.history(category)

    def generate_aggregate_snapshot(self) -> Result[Path]:
        return self.canonical.generate_aggregate_snapshot()

    def record_traceability(self) -> Result[TraceabilityRecord | None]:
        return self.tracker.record_traceability()


__all__ = ["FossilStore"]
