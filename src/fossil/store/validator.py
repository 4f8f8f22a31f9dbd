"""
Entry validation.

``validate`` is the gate every candidate passes before the repository
touches disk. It never raises for bad input: it returns ``Ok`` with a
normalised ``EntryCandidate`` or ``Err(EntryValidationError)`` listing every
violated constraint (missing fields, blank strings, unknown enum values,
non-string tags) so a producer can fix them all in one go.

Tags:
    validation, pydantic, fail-closed
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from fossil.core.errors import EntryValidationError, ValidationError
from fossil.core.result import Err, Ok, Result
from fossil.store.models import EntryCandidate, EntryPatch

M = TypeVar("M", bound=BaseModel)


def violations_from(exc: PydanticValidationError) -> list[ValidationError]:
    """Translate pydantic error records into ``ValidationError`` instances."""
    violations: list[ValidationError] = []
    for record in exc.errors(include_url=False):
        location = ".".join(str(part) for part in record["loc"]) or "<root>"
        violations.append(
            ValidationError(
                f"{location}: {record['msg']}",
                field=location,
                value=record.get("input"),
                constraint=record["type"],
            )
        )
    return violations


def _validate_model(model: type[M], candidate: M | Mapping[str, Any]) -> Result[M]:
    if isinstance(candidate, model):
        candidate = candidate.model_dump(by_alias=True)
    if not isinstance(candidate, Mapping):
        return Err(EntryValidationError([
            ValidationError(
                f"expected a mapping, got {type(candidate).__name__}",
                field="<root>",
                constraint="mapping_type",
            )
        ]))
    try:
        return Ok(model.model_validate(dict(candidate)))
    except PydanticValidationError as exc:
        return Err(EntryValidationError(violations_from(exc)))


def validate(candidate: EntryCandidate | Mapping[str, Any]) -> Result[EntryCandidate]:
    """Validate a candidate entry.

    Examples:
        >>> validate({"type": "insight", "title": "Open issues", "content": "12"}).is_ok()
        True
        >>> err = validate({"type": "rumour", "title": "", "content": "x"}).error
        >>> sorted(v.field for v in err.violations)
        ['title', 'type']
    """
    return _validate_model(EntryCandidate, candidate)


def validate_patch(patch: EntryPatch | Mapping[str, Any]) -> Result[EntryPatch]:
    """Validate an update patch with the same rules as ``validate``."""
    return _validate_model(EntryPatch, patch)


__all__ = ["validate", "validate_patch", "violations_from"]
