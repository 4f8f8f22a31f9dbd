"""
Traceability: correlate changes under the fossil tree with VCS state.

After a canonical update the working copy usually has modified files under
the fossil root. ``TraceabilityTracker.record_traceability`` lists them
(staged and unstaged, repo-relative), groups them by area of the tree and
stores the result as the ``traceability`` canonical category, so the usual
archive-then-overwrite rules apply to it as well.

Nothing changed under the fossil root means nothing is written.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, Field

from fossil.core.errors import ErrorContext, VcsError
from fossil.core.logging import get_logger
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, to_iso8601
from fossil.store.canonical import CanonicalManager
from fossil.store.vcs import Vcs, describe

logger = get_logger(__name__)

CATEGORY = "traceability"
AREAS = ("entries", "canonical", "archive")
POINTS_PER_CHANGE = 5


class TraceabilityRecord(BaseModel):
    timestamp: str
    commit_hash: str
    branch: str
    fossil_root: str
    fossil_changes: list[str]
    change_types: dict[str, list[str]] = Field(default_factory=dict)
    areas: dict[str, int] = Field(default_factory=dict)

    @property
    def transversal_value(self) -> int:
        return min(POINTS_PER_CHANGE * len(self.fossil_changes), 100)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


def _under(path: str, root: PurePosixPath) -> PurePosixPath | None:
    """``path`` relative to ``root``, or ``None`` when it lies outside."""
    candidate = PurePosixPath(path)
    if candidate.parts[: len(root.parts)] != root.parts:
        return None
    return PurePosixPath(*candidate.parts[len(root.parts):])


def _area(relative: PurePosixPath) -> str:
    if len(relative.parts) > 1 and relative.parts[0] in AREAS:
        return relative.parts[0]
    return "other"


class TraceabilityTracker:
    """Writes the ``traceability`` canonical snapshot."""

    def __init__(self, canonical: CanonicalManager, *, vcs: Vcs | None = None, clock: Clock | None = None) -> None:
        self.canonical = canonical
        self.vcs = vcs or canonical.vcs
        self.clock = clock or canonical.clock

    def _fossil_root(self) -> PurePosixPath:
        repo_root = Path(self.vcs.repo_root()).resolve()
        fossil_root = self.canonical.config.root_path.resolve()
        try:
            relative = fossil_root.relative_to(repo_root)
        except ValueError as exc:
            raise VcsError(
                f"Fossil root {fossil_root} is outside repository {repo_root}",
                context=ErrorContext(path=str(fossil_root), operation="traceability"),
                cause=exc,
            ) from exc
        return PurePosixPath(relative.as_posix()) if relative.parts else PurePosixPath()

    def collect(self) -> TraceabilityRecord | None:
        """Build the record from the VCS, or ``None`` when nothing under the root changed.

        Raises:
            VcsError: the VCS could not list changes or the root is outside the repo.
        """
        root = self._fossil_root()
        staged = [f for f in self.vcs.staged_files() if _under(f, root) is not None]
        unstaged = [f for f in self.vcs.unstaged_files() if _under(f, root) is not None]
        changes = list(dict.fromkeys([*staged, *unstaged]))
        if not changes:
            return None

        areas = {name: 0 for name in (*AREAS, "other")}
        for change in changes:
            areas[_area(_under(change, root))] += 1

        info = describe(self.vcs)
        return TraceabilityRecord(
            timestamp=to_iso8601(self.clock.now()),
            commit_hash=info.commit_hash,
            branch=info.branch,
            fossil_root=root.as_posix(),
            fossil_changes=changes,
            change_types={"staged": staged, "unstaged": unstaged},
            areas=areas,
        )

    def record_traceability(self) -> Result[TraceabilityRecord | None]:
        try:
            record = self.collect()
        except VcsError as exc:
            logger.warning("traceability_unavailable", error=str(exc))
            return Err(exc)
        if record is None:
            logger.info("traceability_no_changes")
            return Ok(None)

        written = self.canonical.update(
            CATEGORY, record.to_payload(), transversal_value=record.transversal_value
        )
        if written.is_err():
            return Err(written.error)
        logger.info("traceability_recorded", changes=len(record.fossil_changes), areas=record.areas)
        return Ok(record)


__all__ = ["TraceabilityRecord", "TraceabilityTracker"]
