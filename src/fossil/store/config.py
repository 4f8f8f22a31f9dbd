"""Store configuration passed explicitly to every component."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fossil.core.errors import InvalidConfigError
from fossil.core.settings import FossilSettings
from fossil.store.similarity import DEFAULT_TITLE_WEIGHT


@dataclass(frozen=True)
class StoreConfig:
    """Where the fossil tree lives and how deduplication behaves.

    Directory layout under ``root_path``::

        entries/{id}.json
        canonical/{category}.json, canonical/context.yml
        archive/{YYYY}/{MM}/{category}-{timestamp}.json
        snapshots/{snapshot_id}/
        exports/
    """

    root_path: Path
    dedup_threshold: float | None = 80.0
    title_weight: float = DEFAULT_TITLE_WEIGHT

    def __post_init__(self) -> None:
        object.__setattr__(self, "root_path", Path(self.root_path))
        if self.dedup_threshold is not None and not 0 <= self.dedup_threshold <= 100:
            raise InvalidConfigError("dedup_threshold", self.dedup_threshold)
        if not 0 <= self.title_weight <= 1:
            raise InvalidConfigError("title_weight", self.title_weight)

    @classmethod
    def from_settings(cls, settings: FossilSettings | None = None) -> StoreConfig:
        settings = settings or FossilSettings()
        return cls(
            root_path=settings.root_path,
            dedup_threshold=settings.dedup_threshold,
            title_weight=settings.title_weight,
        )

    @property
    def entries_dir(self) -> Path:
        return self.root_path / "entries"

    @property
    def canonical_dir(self) -> Path:
        return self.root_path / "canonical"

    @property
    def archive_dir(self) -> Path:
        return self.root_path / "archive"

    @property
    def snapshots_dir(self) -> Path:
        return self.root_path / "snapshots"

    @property
    def exports_dir(self) -> Path:
        return self.root_path / "exports"
