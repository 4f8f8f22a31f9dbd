"""
Structured error types for the fossil store.

Every failure the store reports is a ``FossilError`` subclass carrying a
category, a structured context and an optional chained cause. Expected
failures travel inside ``Err`` values (see ``fossil.core.result``); they are
only raised where a caller explicitly unwraps.

Manifesto:
    - **Typed hierarchy:** validation, not-found, storage, parse and VCS
      failures are distinct types so callers can branch on them
    - **Fail closed:** validation errors block writes and are never retried
    - **Rich context:** errors carry the fossil id, category and path involved
    - **Error chaining:** the underlying ``OSError``/``JSONDecodeError`` is kept

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────┐
        │                       FossilError                         │
        │          (category, context, cause, to_dict())            │
        ├──────────────────────────────────────────────────────────┤
        │  ValidationError        NotFoundError      StorageError   │
        │  (VALIDATION)           (NOT_FOUND)        (STORAGE)      │
        │       │                      │                  │         │
        │  EntryValidationError   EntryNotFoundError  ArchiveError  │
        │  PayloadValidationError                                    │
        │                                                            │
        │  ParseError (PARSE)   VcsError (VCS)   ConfigError (CONFIG)│
        │                                            │               │
        │                                     InvalidConfigError     │
        └──────────────────────────────────────────────────────────┘

Examples:
    >>> from fossil.core.errors import EntryNotFoundError
    >>> err = EntryNotFoundError("fossil_01h")
    >>> err.to_dict()["category"]
    'NOT_FOUND'

Tags:
    errors, error-handling, fossil-store, validation, storage
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    STORAGE = "STORAGE"
    PARSE = "PARSE"
    VCS = "VCS"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"

    def __str__(self) -> str:
        return self.value


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        fossil_id: Entry identifier involved in the failure
        category: Canonical category involved in the failure
        path: Filesystem path being read or written
        operation: Store operation name (``create``, ``update``, ...)
        metadata: Additional key-value pairs
    """

    fossil_id: str | None = None
    category: str | None = None
    path: str | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["fossil_id", "category", "path", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class FossilError(Exception):
    """
    Base exception for all fossil store errors.

    Subclasses set ``default_category``; callers may override it per
    instance. ``with_context`` provides a fluent way to attach metadata
    before the error is wrapped in ``Err``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FossilError:
        """
        Add context to this error (fluent API).

        Usage:
            return Err(StorageError("write failed").with_context(path=str(path)))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(FossilError):
    """
    A single violated constraint on a candidate record or payload.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class EntryValidationError(ValidationError):
    """A candidate entry failed validation; ``violations`` lists every problem."""

    def __init__(self, violations: list[ValidationError], **kwargs: Any):
        self.violations = list(violations)
        fields = sorted({v.field for v in self.violations if v.field})
        message = f"Entry failed validation ({len(self.violations)} violation(s))"
        if fields:
            message += f": {', '.join(fields)}"
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["violations"] = [v.to_dict() for v in self.violations]
        return result


class PayloadValidationError(EntryValidationError):
    """A canonical payload does not match its category schema."""

    def __init__(self, category: str, violations: list[ValidationError]):
        super().__init__(violations, context=ErrorContext(category=category))
        self.message = f"Payload for category {category!r} failed validation ({len(self.violations)} violation(s))"
        self.args = (self.message,)


# =============================================================================
# NOT FOUND
# =============================================================================


class NotFoundError(FossilError):
    """A requested record does not exist."""

    default_category = ErrorCategory.NOT_FOUND


class EntryNotFoundError(NotFoundError):
    """No entry with the given id."""

    def __init__(self, fossil_id: str):
        self.fossil_id = fossil_id
        super().__init__(
            f"Fossil entry not found: {fossil_id}",
            context=ErrorContext(fossil_id=fossil_id),
        )


# =============================================================================
# STORAGE / PARSE / VCS / CONFIG
# =============================================================================


class StorageError(FossilError):
    """Disk or permission failure while reading or writing the fossil tree."""

    default_category = ErrorCategory.STORAGE


class ArchiveError(StorageError):
    """Archiving the previous canonical snapshot failed; nothing was overwritten."""

    pass


class ParseError(FossilError):
    """A stored file is not valid JSON or does not match its schema."""

    default_category = ErrorCategory.PARSE


class VcsError(FossilError):
    """The version-control collaborator could not answer."""

    default_category = ErrorCategory.VCS


class ConfigError(FossilError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FossilError",
    "ValidationError",
    "EntryValidationError",
    "PayloadValidationError",
    "NotFoundError",
    "EntryNotFoundError",
    "StorageError",
    "ArchiveError",
    "ParseError",
    "VcsError",
    "ConfigError",
    "InvalidConfigError",
]
