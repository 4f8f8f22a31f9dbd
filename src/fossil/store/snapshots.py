"""Point-in-time copies of the entries tree under ``snapshots/``."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from fossil.core.errors import ErrorContext, StorageError, ValidationError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, generate_ulid, to_iso8601
from fossil.store.fsio import copy_bytes, path_lock, read_json_or_none, write_json
from fossil.store.repository import FossilRepository

logger = get_logger(__name__)

METADATA_FILENAME = "metadata.json"


class SnapshotInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    timestamp: datetime
    entry_count: int
    description: str = ""

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SnapshotManager:
    """Copies ``entries/*.json`` into ``snapshots/{id}/entries/``."""

    def __init__(self, repository: FossilRepository, *, clock: Clock | None = None) -> None:
        self.repository = repository
        self.clock = clock or repository.clock

    @property
    def snapshots_dir(self) -> Path:
        return self.repository.config.snapshots_dir

    def create_snapshot(self, name: str) -> Result[SnapshotInfo]:
        if not name or not name.strip():
            return Err(ValidationError("Snapshot name must be a non-empty string", field="name", value=name))

        snapshot_id = f"snapshot_{generate_ulid().lower()}"
        target = self.snapshots_dir / snapshot_id / "entries"
        source = self.repository.entries_dir

        # hold the entries lock so the copy is a consistent cut
        with path_lock(source / ".lock"):
            files = sorted(source.glob("*.json")) if source.is_dir() else []
            try:
                target.mkdir(parents=True, exist_ok=True)
                for path in files:
                    copy_bytes(path, target / path.name)
            except OSError as exc:
                return Err(StorageError(
                    f"Could not copy entries into snapshot {snapshot_id}: {exc}",
                    context=ErrorContext(path=str(target), operation="snapshot"),
                    cause=exc,
                ))

        now = self.clock.now()
        info = SnapshotInfo(
            id=snapshot_id,
            name=name.strip(),
            timestamp=now,
            entry_count=len(files),
            description=f"Snapshot created at {to_iso8601(now)}",
        )
        written = write_json(self.snapshots_dir / snapshot_id / METADATA_FILENAME, info.to_document())
        if written.is_err():
            return Err(written.error)
        logger.info("snapshot_created", snapshot_id=snapshot_id, name=info.name, entries=info.entry_count)
        return Ok(info)

    def list_snapshots(self) -> list[SnapshotInfo]:
        """Readable snapshot metadata, oldest first."""
        if not self.snapshots_dir.is_dir():
            return []
        snapshots: list[SnapshotInfo] = []
        for path in self.snapshots_dir.glob(f"*/{METADATA_FILENAME}"):
            data = read_json_or_none(path)
            if data is None:
                continue
            try:
                snapshots.append(SnapshotInfo.model_validate(data))
            except PydanticValidationError as exc:
                logger.warning("fossil_file_unreadable", path=str(path), error=str(exc))
        snapshots.sort(key=lambda s: (s.timestamp, s.id))
        return snapshots


__all__ = ["SnapshotInfo", "SnapshotManager"]
