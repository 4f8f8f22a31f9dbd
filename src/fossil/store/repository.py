"""
Fossil Repository: CRUD over ad hoc entries, one JSON file per entry.

Manifesto:
    The repository is the only writer of ``entries/``. It guarantees:

    - **Validated writes:** nothing reaches disk without passing ``validate``
    - **At most one near-duplicate:** ``create`` returns the existing entry
      instead of inserting when a stored entry scores at or above the dedup
      threshold
    - **Lossless updates:** every update appends the pre-patch state to
      ``previousVersions`` and bumps ``version``
    - **Atomic files:** temp + fsync + rename; readers never see partial JSON

Architecture:
    ::

        create(candidate)
            │
            ├─ validate ────────────── Err(EntryValidationError)
            │
            ├─ [entries lock]
            │    ├─ exact content hash ─ Ok(Deduplicated(existing, 100))
            │    ├─ find_similar ≥ t ── Ok(Deduplicated(best, score))
            │    └─ atomic write ────── Ok(Created(entry)) | Err(StorageError)
            ▼

Examples:
    >>> repo = FossilRepository(StoreConfig(root_path=tmp))
    >>> first = repo.create({"type": "insight", "title": "Open issues",
    ...                      "content": "12 open issues in repo X", "tags": ["github"]})
    >>> second = repo.create({"type": "insight", "title": "Open issues",
    ...                       "content": "12 open issues in repo X"})
    >>> isinstance(second.unwrap(), Deduplicated)
    True

Tags:
    repository, crud, deduplication, versioning, fossil-store
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from fossil.core.errors import EntryNotFoundError, ErrorContext, ParseError, StorageError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, SystemClock, generate_ulid
from fossil.store.config import StoreConfig
from fossil.store.fsio import path_lock, read_json, write_json
from fossil.store.models import EntryCandidate, EntryPatch, FossilEntry
from fossil.store.similarity import SimilarityEngine, SimilarityMatch
from fossil.store.validator import validate, validate_patch

logger = get_logger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class _UseConfig:
    def __repr__(self) -> str:
        return "<config default>"


USE_CONFIG: Any = _UseConfig()


@dataclass(frozen=True, slots=True)
class Created:
    """``create`` stored a new entry."""

    entry: FossilEntry


@dataclass(frozen=True, slots=True)
class Deduplicated:
    """``create`` found an existing entry at or above the dedup threshold."""

    entry: FossilEntry
    score: float


CreateOutcome = Created | Deduplicated


class FossilRepository:
    """File-per-entry store under ``config.entries_dir``."""

    def __init__(
        self,
        config: StoreConfig,
        *,
        clock: Clock | None = None,
        similarity: SimilarityEngine | None = None,
    ) -> None:
        self.config = config
        self.clock = clock or SystemClock()
        self.similarity = similarity or SimilarityEngine(config.title_weight)

    # ------------------------------------------------------------------ #
    # Paths
    # ------------------------------------------------------------------ #

    @property
    def entries_dir(self) -> Path:
        return self.config.entries_dir

    def path_for(self, fossil_id: str) -> Path | None:
        """File path for an id, or ``None`` when the id is not a safe filename."""
        if not _ID_RE.match(fossil_id):
            return None
        return self.entries_dir / f"{fossil_id}.json"

    def _lock_path(self) -> Path:
        return self.entries_dir / ".lock"

    def _new_id(self) -> str:
        while True:
            fossil_id = f"fossil_{generate_ulid().lower()}"
            if not (self.entries_dir / f"{fossil_id}.json").exists():
                return fossil_id

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def _load(self, path: Path) -> Result[FossilEntry]:
        match read_json(path):
            case Err(error):
                return Err(error)
            case Ok(data):
                try:
                    return Ok(FossilEntry.model_validate(data))
                except PydanticValidationError as exc:
                    return Err(ParseError(
                        f"{path.name} is not a valid fossil entry",
                        context=ErrorContext(path=str(path)),
                        cause=exc,
                    ))

    def get(self, fossil_id: str) -> FossilEntry | None:
        """Return the entry, or ``None`` when it is missing or unreadable."""
        path = self.path_for(fossil_id)
        if path is None or not path.exists():
            return None
        match self._load(path):
            case Ok(entry):
                return entry
            case Err(error):
                logger.warning("fossil_file_unreadable", path=str(path), error=str(error))
                return None

    def iter_entries(self) -> Iterator[FossilEntry]:
        """Walk every readable entry; corrupt files are logged and skipped."""
        if not self.entries_dir.is_dir():
            return
        for path in sorted(self.entries_dir.glob("*.json")):
            match self._load(path):
                case Ok(entry):
                    yield entry
                case Err(error):
                    logger.warning("fossil_file_unreadable", path=str(path), error=str(error))

    def all_entries(self) -> list[FossilEntry]:
        return list(self.iter_entries())

    def find_similar(self, title: str, content: str, threshold: float = 0.0) -> list[SimilarityMatch]:
        """Rank stored entries against ``(title, content)``."""
        return self.similarity.find_similar(title, content, self.iter_entries(), threshold)

    def related(self, fossil_id: str, max_depth: int = 2) -> list[FossilEntry]:
        """Entries reachable from ``fossil_id`` through parent and child links.

        Depth-first from the entry itself (depth 0), stopping at ``max_depth``
        hops. Each entry appears once, cycles are cut, and missing ids are
        skipped. The starting entry is not included.
        """
        related: list[FossilEntry] = []
        visited: set[str] = set()

        def walk(current_id: str, depth: int) -> None:
            if depth > max_depth or current_id in visited:
                return
            visited.add(current_id)
            entry = self.get(current_id)
            if entry is None:
                return
            related.append(entry)
            if entry.parent_id is not None:
                walk(entry.parent_id, depth + 1)
            for child_id in entry.children:
                walk(child_id, depth + 1)

        walk(fossil_id, 0)
        return [entry for entry in related if entry.id != fossil_id]

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def create(
        self,
        candidate: EntryCandidate | Mapping[str, Any],
        dedup_threshold: float | None = USE_CONFIG,
    ) -> Result[CreateOutcome]:
        """Validate and store a new entry unless a near-duplicate exists.

        Args:
            candidate: Mapping (camelCase or snake_case keys) or ``EntryCandidate``
            dedup_threshold: Minimum score treated as a duplicate; ``None``
                disables deduplication; omitted uses the store config.
        """
        if dedup_threshold is USE_CONFIG:
            dedup_threshold = self.config.dedup_threshold

        match validate(candidate):
            case Err(error):
                logger.info("entry_rejected", error=str(error))
                return Err(error)
            case Ok(valid):
                pass

        content_hash = valid.content_hash
        with path_lock(self._lock_path()):
            if dedup_threshold is not None:
                duplicate = self._find_duplicate(valid, content_hash, dedup_threshold)
                if duplicate is not None:
                    logger.info(
                        "entry_deduplicated",
                        fossil_id=duplicate.entry.id,
                        score=round(duplicate.score, 2),
                        threshold=dedup_threshold,
                    )
                    return Ok(duplicate)

            now = self.clock.now()
            entry = FossilEntry(
                id=self._new_id(),
                type=valid.type,
                title=valid.title,
                content=valid.content,
                tags=valid.tags,
                source=valid.source,
                created_by=valid.created_by,
                parent_id=valid.parent_id,
                children=valid.children,
                created_at=now,
                updated_at=now,
                version=1,
                metadata={**valid.metadata, "contentHash": content_hash},
            )
            written = self._write(entry, operation="create")
            if written.is_err():
                return Err(written.error)
            if entry.parent_id is not None:
                self._link_child(entry.parent_id, entry.id)

        logger.info("entry_created", fossil_id=entry.id, type=entry.type.value)
        return Ok(Created(entry))

    def _find_duplicate(
        self, candidate: EntryCandidate, content_hash: str, threshold: float
    ) -> Deduplicated | None:
        corpus = self.all_entries()
        exact = [e for e in corpus if e.content_hash == content_hash]
        if exact:
            newest = max(exact, key=lambda e: (e.created_at, e.id))
            return Deduplicated(newest, 100.0)
        matches = self.similarity.find_similar(candidate.title, candidate.content, corpus, threshold)
        if matches:
            return Deduplicated(matches[0].entry, matches[0].score)
        return None

    def update(self, fossil_id: str, patch: EntryPatch | Mapping[str, Any]) -> Result[FossilEntry]:
        """Apply ``patch``; the pre-patch state is appended to ``previous_versions``.

        A patch that changes nothing returns the stored entry untouched.
        """
        match validate_patch(patch):
            case Err(error):
                return Err(error)
            case Ok(valid_patch):
                pass

        path = self.path_for(fossil_id)
        if path is None:
            return Err(EntryNotFoundError(fossil_id))

        with path_lock(self._lock_path()):
            if not path.exists():
                return Err(EntryNotFoundError(fossil_id))
            match self._load(path):
                case Err(error):
                    return Err(error)
                case Ok(current):
                    pass

            changes = self._changes(current, valid_patch)
            if not changes:
                return Ok(current)

            changes["version"] = current.version + 1
            changes["updated_at"] = self.clock.now()
            changes["previous_versions"] = [*current.previous_versions, current.snapshot()]
            updated = current.model_copy(update=changes)
            if updated.content_hash != current.content_hash:
                updated = updated.model_copy(
                    update={"metadata": {**updated.metadata, "contentHash": updated.content_hash}}
                )

            written = self._write(updated, operation="update")
            if written.is_err():
                return Err(written.error)

        logger.info("entry_updated", fossil_id=fossil_id, version=updated.version, fields=sorted(changes))
        return Ok(updated)

    @staticmethod
    def _changes(current: FossilEntry, patch: EntryPatch) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for name in ("type", "title", "content", "tags", "source", "parent_id", "children"):
            value = getattr(patch, name)
            if value is not None and value != getattr(current, name):
                changes[name] = value
        if patch.metadata is not None:
            merged = {**current.metadata, **patch.metadata}
            if merged != current.metadata:
                changes["metadata"] = merged
        return changes

    def delete(self, fossil_id: str) -> Result[bool]:
        """Hard delete. ``Ok(False)`` when there was nothing to delete."""
        path = self.path_for(fossil_id)
        if path is None:
            return Ok(False)
        with path_lock(self._lock_path()):
            try:
                path.unlink()
            except FileNotFoundError:
                return Ok(False)
            except OSError as exc:
                return Err(StorageError(
                    f"Could not delete {fossil_id}: {exc}",
                    context=ErrorContext(fossil_id=fossil_id, path=str(path), operation="delete"),
                    cause=exc,
                ))
        logger.info("entry_deleted", fossil_id=fossil_id)
        return Ok(True)

    def _link_child(self, parent_id: str, child_id: str) -> None:
        # caller holds the entries lock; relationship bookkeeping does not bump the version
        parent = self.get(parent_id)
        if parent is None:
            logger.warning("entry_parent_missing", fossil_id=child_id, parent_id=parent_id)
            return
        if child_id in parent.children:
            return
        linked = parent.model_copy(update={"children": [*parent.children, child_id]})
        if self._write(linked, operation="link").is_ok():
            logger.info("entry_linked", fossil_id=child_id, parent_id=parent_id)

    def _write(self, entry: FossilEntry, *, operation: str) -> Result[Path]:
        path = self.entries_dir / f"{entry.id}.json"
        result = write_json(path, entry.to_document())
        if result.is_err():
            logger.error("entry_write_failed", fossil_id=entry.id, operation=operation, error=str(result.error))
            error = result.error
            if isinstance(error, StorageError):
                error.with_context(fossil_id=entry.id, operation=operation)
        return result


__all__ = ["CreateOutcome", "Created", "Deduplicated", "FossilRepository", "USE_CONFIG"]
