"""
Fossil entry models.

Entries are stored as one JSON document per file with camelCase keys
(``createdBy``, ``previousVersions``...). The pydantic models below accept
either camelCase or snake_case on input and always serialise camelCase.

- ``EntryCandidate``: what a producer submits to ``create``
- ``EntryPatch``: the fields an ``update`` may change
- ``FossilEntry``: the stored record, including version history
- ``VersionSnapshot``: one frozen pre-update state in ``previousVersions``

Entries may point at a ``parentId`` and list ``children`` ids; see
``FossilRepository.related``.

Tags:
    models, pydantic, fossil-entry, versioning
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from fossil.core.hashing import compute_content_hash


class EntryType(str, Enum):
    """Kind of knowledge an entry records."""

    OBSERVATION = "observation"
    INSIGHT = "insight"
    DECISION = "decision"
    ACTION = "action"
    KNOWLEDGE = "knowledge"
    PLAN = "plan"
    RESULT = "result"


class EntrySource(str, Enum):
    """Where an entry came from."""

    TERMINAL = "terminal"
    AUTOMATED = "automated"
    MANUAL = "manual"
    IMPORTED = "imported"
    LLM = "llm"
    API = "api"


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must be a non-empty string")
    return value


NonBlankStr = Annotated[str, AfterValidator(_require_text)]


def _assume_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


# naive timestamps (hand-written or imported files) are read as UTC
UtcDatetime = Annotated[datetime, AfterValidator(_assume_utc)]


def _dedupe(tags: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for tag in tags:
        seen.setdefault(tag.strip(), None)
    return list(seen)


_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    use_enum_values=False,
)


class EntryCandidate(BaseModel):
    """A record submitted for creation, before it has an id."""

    model_config = ConfigDict(**_MODEL_CONFIG, extra="forbid")

    type: EntryType
    title: NonBlankStr
    content: NonBlankStr
    tags: list[NonBlankStr] = Field(default_factory=list)
    source: EntrySource = EntrySource.MANUAL
    created_by: str = "unknown"
    parent_id: str | None = None
    children: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("tags", "children")
    @classmethod
    def _unique_tags(cls, tags: list[str]) -> list[str]:
        return _dedupe(tags)

    @property
    def content_hash(self) -> str:
        return compute_content_hash(self.type.value, self.title, self.content)


class EntryPatch(BaseModel):
    """Fields an update may change. ``None`` means "leave as is".

    ``metadata`` is merged key by key into the stored map.
    """

    model_config = ConfigDict(**_MODEL_CONFIG, extra="forbid")

    type: EntryType | None = None
    title: NonBlankStr | None = None
    content: NonBlankStr | None = None
    tags: list[NonBlankStr] | None = None
    source: EntrySource | None = None
    parent_id: str | None = None
    children: list[str] | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("tags", "children")
    @classmethod
    def _unique_tags(cls, tags: list[str] | None) -> list[str] | None:
        return None if tags is None else _dedupe(tags)


class VersionSnapshot(BaseModel):
    """State of an entry just before an update was applied."""

    model_config = ConfigDict(**_MODEL_CONFIG, extra="ignore", frozen=True)

    version: int
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    updated_at: UtcDatetime


class FossilEntry(BaseModel):
    """A stored fossil entry."""

    model_config = ConfigDict(**_MODEL_CONFIG, extra="ignore")

    id: str
    type: EntryType
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    source: EntrySource = EntrySource.MANUAL
    created_by: str = "unknown"
    created_at: UtcDatetime
    updated_at: UtcDatetime
    parent_id: str | None = None
    children: list[str] = Field(default_factory=list)
    version: int = Field(default=1, ge=1)
    previous_versions: list[VersionSnapshot] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def content_hash(self) -> str:
        """Hash of (type, title, content); recomputed, never trusted from metadata."""
        return compute_content_hash(self.type.value, self.title, self.content)

    def snapshot(self) -> VersionSnapshot:
        """Freeze the current state for ``previous_versions``."""
        return VersionSnapshot(
            version=self.version,
            title=self.title,
            content=self.content,
            tags=list(self.tags),
            updated_at=self.updated_at,
        )

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict in the on-disk (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "EntryCandidate",
    "EntryPatch",
    "EntrySource",
    "EntryType",
    "FossilEntry",
    "NonBlankStr",
    "UtcDatetime",
    "VersionSnapshot",
]
