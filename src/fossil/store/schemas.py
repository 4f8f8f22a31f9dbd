"""
Canonical payload schemas.

Producers hand the Canonical Manager an open JSON object. For the
categories below the object is checked against a pydantic model first, so a
malformed run (``validation_steps`` that is not a list, a metric that is not
a number) is rejected before anything is archived or overwritten. The
models allow extra keys: they pin the fields other tools read, nothing more.

Categories without a registered model accept any JSON object.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from fossil.core.errors import PayloadValidationError, ValidationError
from fossil.core.result import Err, Ok, Result
from fossil.store.validator import violations_from

KNOWN_CATEGORIES = (
    "validation",
    "performance",
    "analysis",
    "test",
    "footprint",
    "llm-snapshot",
    "test-monitoring",
    "git-diff",
    "traceability",
)


class _Payload(BaseModel):
    model_config = ConfigDict(extra="allow")

    summary: dict[str, Any] | None = None
    status: str | None = None


class ValidationStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    step: str
    status: str
    duration_ms: float | None = None


class ValidationPayload(_Payload):
    """One CI validation run: each step and an overall summary."""

    validation_steps: list[ValidationStep]


class PerformancePayload(_Payload):
    """Named numeric metrics (memory, cpu, durations...)."""

    metrics: dict[str, float]


class AnalysisPayload(_Payload):
    insights: list[Any] = Field(default_factory=list)


class TestPayload(_Payload):
    __test__ = False

    results: list[Any] = Field(default_factory=list)


class TraceabilityPayload(_Payload):
    fossil_root: str
    fossil_changes: list[str]
    change_types: dict[str, list[str]]
    areas: dict[str, int]


PAYLOAD_SCHEMAS: dict[str, type[BaseModel]] = {
    "validation": ValidationPayload,
    "performance": PerformancePayload,
    "analysis": AnalysisPayload,
    "test": TestPayload,
    "traceability": TraceabilityPayload,
}


def validate_payload(category: str, payload: Any) -> Result[dict[str, Any]]:
    """Check ``payload`` against the category's schema.

    Returns the payload unchanged (as a plain dict) on success so the stored
    document keeps exactly what the producer sent.
    """
    if not isinstance(payload, Mapping):
        return Err(PayloadValidationError(category, [
            ValidationError(
                f"payload must be a JSON object, got {type(payload).__name__}",
                field="<root>",
                constraint="mapping_type",
            )
        ]))
    schema = PAYLOAD_SCHEMAS.get(category)
    if schema is not None:
        try:
            schema.model_validate(dict(payload))
        except PydanticValidationError as exc:
            return Err(PayloadValidationError(category, violations_from(exc)))
    return Ok(dict(payload))


__all__ = [
    "AnalysisPayload",
    "KNOWN_CATEGORIES",
    "PAYLOAD_SCHEMAS",
    "PerformancePayload",
    "TestPayload",
    "TraceabilityPayload",
    "ValidationPayload",
    "ValidationStep",
    "validate_payload",
]
