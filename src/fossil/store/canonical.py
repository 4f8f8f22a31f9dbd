"""
Canonical Manager: one stable, versioned snapshot file per category.

Manifesto:
    Tools and people read ``canonical/validation.json`` without caring how
    many times it was regenerated. Every regeneration must therefore:

    - **Archive first:** the current live file is copied byte-for-byte to
      ``archive/YYYY/MM/{category}-{timestamp}.json`` before anything is
      overwritten; if archiving fails, the live file is left alone
    - **Overwrite atomically:** readers see the old snapshot or the new one
    - **Carry provenance:** commit, branch, author and a per-category
      version counter travel in the envelope
    - **Serialise per category:** two writers of the same category never
      interleave their archive + overwrite steps

Architecture:
    ::

        update(category, payload)
            │
            ├─ slug check / schema check ── Err(ValidationError)
            │
            ├─ [category lock]
            │    ├─ live exists? copy → archive ── Err(ArchiveError)
            │    ├─ envelope (vcs, version, transversalValue)
            │    └─ atomic overwrite ────────────── Err(StorageError)
            ▼
          Ok(canonical/{category}.json)

        generate_aggregate_snapshot()
            canonical/*.json ──► canonical/context.yml (PyYAML)

Tags:
    canonical, archive, versioning, provenance, yaml
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from fossil.core.errors import ArchiveError, ErrorContext, StorageError, ValidationError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, SystemClock, filename_timestamp, to_iso8601
from fossil.store.config import StoreConfig
from fossil.store.fsio import atomic_write_bytes, copy_bytes, path_lock, read_json_or_none, write_json
from fossil.store.schemas import validate_payload
from fossil.store.vcs import UNKNOWN, GitCli, Vcs, describe

logger = get_logger(__name__)

CATEGORY_RE = re.compile(r"^[a-z][a-z0-9_-]*$")
AGGREGATE_NAME = "context"
AGGREGATE_FILENAME = "context.yml"

_ARCHIVE_STAMP = r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z"

# points per element of each payload section
TRANSVERSAL_WEIGHTS = {
    "summary": 10,
    "validation_steps": 5,
    "insights": 15,
    "metrics": 8,
    "results": 12,
}
TRANSVERSAL_CAP = 100


def transversal_value(payload: Mapping[str, Any]) -> int:
    """Completeness heuristic in ``[0, 100]``.

    >>> transversal_value({"summary": {"a": 1, "b": 2}, "validation_steps": [1, 2, 3]})
    35
    """
    value = 0
    for key, weight in TRANSVERSAL_WEIGHTS.items():
        section = payload.get(key)
        if isinstance(section, (Mapping, list, tuple)):
            value += weight * len(section)
    return min(value, TRANSVERSAL_CAP)


def snapshot_status(document: Mapping[str, Any]) -> str:
    """``summary.overall_status``, ``summary.status``, ``status``, else ``unknown``."""
    summary = document.get("summary")
    if isinstance(summary, Mapping):
        for key in ("overall_status", "status"):
            if summary.get(key):
                return str(summary[key])
    if document.get("status"):
        return str(document["status"])
    return UNKNOWN


def check_category(category: str) -> Result[str]:
    if not CATEGORY_RE.match(category):
        return Err(ValidationError(
            f"Invalid category name {category!r}: expected lowercase letters, digits, '-' or '_'",
            field="category",
            value=category,
            constraint=CATEGORY_RE.pattern,
        ))
    if category == AGGREGATE_NAME:
        return Err(ValidationError(
            f"Category name {category!r} is reserved for the aggregate snapshot",
            field="category",
            value=category,
            constraint="reserved",
        ))
    return Ok(category)


class CanonicalManager:
    """Owns ``canonical/`` and ``archive/`` under the store root."""

    def __init__(
        self,
        config: StoreConfig,
        *,
        vcs: Vcs | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.vcs = vcs or GitCli.for_path(config.root_path)
        self.clock = clock or SystemClock()

    @property
    def canonical_dir(self) -> Path:
        return self.config.canonical_dir

    @property
    def archive_dir(self) -> Path:
        return self.config.archive_dir

    def path_for(self, category: str) -> Path:
        return self.canonical_dir / f"{category}.json"

    def aggregate_path(self) -> Path:
        return self.canonical_dir / AGGREGATE_FILENAME

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def update(
        self,
        category: str,
        payload: Mapping[str, Any],
        *,
        transversal_value: int | None = None,
    ) -> Result[Path]:
        """Archive the current snapshot of ``category`` and replace it with ``payload``."""
        checked = check_category(category).flat_map(lambda c: validate_payload(c, payload))
        if checked.is_err():
            logger.info("canonical_rejected", category=category, error=str(checked.error))
            return Err(checked.error)
        data = checked.value

        live = self.path_for(category)
        with path_lock(self.canonical_dir / f".{category}.lock"):
            now = self.clock.now()
            previous = read_json_or_none(live) if live.exists() else None

            if live.exists():
                archived = self._archive(category, live, now)
                if archived.is_err():
                    return Err(archived.error)

            document = self._envelope(category, data, previous, transversal_value, now)
            written = write_json(live, document)
            if written.is_err():
                logger.error("canonical_write_failed", category=category, error=str(written.error))
                return Err(written.error.with_context(category=category, operation="update"))

        logger.info(
            "canonical_updated",
            category=category,
            version=document["metadata"]["version"],
            transversal_value=document["metadata"]["transversalValue"],
            timestamp=to_iso8601(now),
        )
        return Ok(live)

    def _archive(self, category: str, live: Path, now: datetime) -> Result[Path]:
        now = now.astimezone(UTC)
        directory = self.archive_dir / f"{now:%Y}" / f"{now:%m}"
        stem = f"{category}-{filename_timestamp(now)}"
        target = directory / f"{stem}.json"
        n = 0
        while target.exists():
            n += 1
            target = directory / f"{stem}-{n}.json"
        try:
            copy_bytes(live, target)
        except OSError as exc:
            logger.error("canonical_archive_failed", category=category, path=str(target), error=str(exc))
            return Err(ArchiveError(
                f"Could not archive {live.name}: {exc}",
                context=ErrorContext(category=category, path=str(target), operation="archive"),
                cause=exc,
            ))
        logger.info("canonical_archived", category=category, path=str(target))
        return Ok(target)

    def _next_version(self, category: str, previous: Any) -> int:
        if isinstance(previous, Mapping):
            metadata = previous.get("metadata")
            if isinstance(metadata, Mapping):
                version = metadata.get("version")
                if isinstance(version, int) and not isinstance(version, bool):
                    return version + 1
        # unreadable or pre-versioning live file: count what has been archived
        return len(self.history(category)) + 1

    def _envelope(
        self,
        category: str,
        data: dict[str, Any],
        previous: Any,
        explicit_value: int | None,
        now: datetime,
    ) -> dict[str, Any]:
        info = describe(self.vcs)
        extra_metadata = data.get("metadata") if isinstance(data.get("metadata"), Mapping) else {}
        value = explicit_value if explicit_value is not None else transversal_value(data)
        return {
            **data,
            "timestamp": to_iso8601(now),
            "commit_hash": info.commit_hash,
            "branch": info.branch,
            "author": info.author,
            "email": info.email,
            "metadata": {
                **extra_metadata,
                "fossilized": True,
                "canonical": True,
                "version": self._next_version(category, previous),
                "transversalValue": value,
            },
        }

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, category: str) -> dict[str, Any] | None:
        """Current snapshot, or ``None`` when absent or unreadable."""
        if check_category(category).is_err():
            return None
        document = read_json_or_none(self.path_for(category))
        if document is not None and not isinstance(document, dict):
            logger.warning("fossil_file_unreadable", path=str(self.path_for(category)), error="not a JSON object")
            return None
        return document

    def categories(self) -> list[str]:
        if not self.canonical_dir.is_dir():
            return []
        return sorted(
            path.stem for path in self.canonical_dir.glob("*.json")
            if CATEGORY_RE.match(path.stem) and path.stem != AGGREGATE_NAME
        )

    def history(self, category: str) -> list[Path]:
        """Archived snapshots of ``category``, oldest first."""
        if not self.archive_dir.is_dir():
            return []
        pattern = re.compile(rf"^{re.escape(category)}-({_ARCHIVE_STAMP})(?:-(\d+))?\.json$")
        found: list[tuple[str, int, Path]] = []
        for path in self.archive_dir.glob(f"*/*/{category}-*.json"):
            match = pattern.match(path.name)
            if match:
                found.append((match.group(1), int(match.group(2) or 0), path))
        found.sort(key=lambda item: (item[0], item[1]))
        return [path for _, _, path in found]

    # ------------------------------------------------------------------ #
    # Aggregate
    # ------------------------------------------------------------------ #

    def aggregate(self) -> dict[str, Any]:
        """Build the aggregate context document without writing it."""
        info = describe(self.vcs)
        timestamp = to_iso8601(self.clock.now())
        fossils: dict[str, Any] = {}
        total_value = 0
        for category in self.categories():
            document = self.get(category)
            if document is None:
                continue
            metadata = document.get("metadata") if isinstance(document.get("metadata"), Mapping) else {}
            value = metadata.get("transversalValue", 0)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning(
                    "fossil_file_unreadable",
                    path=str(self.path_for(category)),
                    error=f"transversalValue is not a number: {value!r}",
                )
                value = 0
            fossils[category] = {
                "last_updated": document.get("timestamp"),
                "status": snapshot_status(document),
                "transversal_value": value,
                "summary": document.get("summary"),
            }
            total_value += value
        return {
            "timestamp": timestamp,
            "commit_hash": info.commit_hash,
            "branch": info.branch,
            "author": info.author,
            "canonical_fossils": fossils,
            "summary": {
                "total_canonical_files": len(fossils),
                "last_updated": timestamp,
                "transversal_value": total_value,
            },
        }

    def generate_aggregate_snapshot(self) -> Result[Path]:
        """Write ``canonical/context.yml`` summarising every readable category."""
        context = self.aggregate()
        path = self.aggregate_path()
        content = yaml.safe_dump(context, sort_keys=False, default_flow_style=False, allow_unicode=True)
        try:
            atomic_write_bytes(path, content.encode("utf-8"))
        except OSError as exc:
            return Err(StorageError(
                f"Could not write {path}: {exc}",
                context=ErrorContext(path=str(path), operation="aggregate"),
                cause=exc,
            ))
        logger.info("canonical_aggregate_written", path=str(path), categories=len(context["canonical_fossils"]))
        return Ok(path)


__all__ = [
    "CATEGORY_RE",
    "CanonicalManager",
    "TRANSVERSAL_WEIGHTS",
    "check_category",
    "snapshot_status",
    "transversal_value",
]
