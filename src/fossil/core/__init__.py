"""
Core primitives shared by every fossil component.

- errors: typed ``FossilError`` hierarchy
- result: ``Ok``/``Err`` envelope
- logging: structlog configuration
- settings: ``FOSSIL_*`` environment settings
- timestamps: ULIDs, UTC helpers, ``Clock``
- hashing: content hashes for exact dedup
"""

from fossil.core.errors import (
    ArchiveError,
    ConfigError,
    EntryNotFoundError,
    EntryValidationError,
    ErrorCategory,
    ErrorContext,
    FossilError,
    InvalidConfigError,
    NotFoundError,
    ParseError,
    PayloadValidationError,
    StorageError,
    ValidationError,
    VcsError,
)
from fossil.core.result import Err, Ok, Result
from fossil.core.timestamps import Clock, SystemClock, generate_ulid, utc_now

__all__ = [
    "ArchiveError",
    "Clock",
    "ConfigError",
    "EntryNotFoundError",
    "EntryValidationError",
    "Err",
    "ErrorCategory",
    "ErrorContext",
    "FossilError",
    "InvalidConfigError",
    "NotFoundError",
    "Ok",
    "ParseError",
    "PayloadValidationError",
    "Result",
    "StorageError",
    "SystemClock",
    "ValidationError",
    "VcsError",
    "generate_ulid",
    "utc_now",
]
