"""
``Ok`` / ``Err`` values returned by store operations.

Expected failures (a candidate that fails validation, an unknown id, a disk
that refuses a write) come back as ``Err(error)`` rather than being raised,
so a producer script can report them and carry on. Both classes support
structural pattern matching::

    match repo.create({"type": "insight", "title": "t", "content": "c"}):
        case Ok(Created(entry)):
            print(entry.id)
        case Ok(Deduplicated(entry, score)):
            print("duplicate of", entry.id)
        case Err(error):
            print(error)

Examples:
    >>> from fossil.core.result import Ok, Err
    >>> Ok(10).map(lambda x: x * 2).unwrap()
    20
    >>> Err(ValueError("boom")).map(lambda x: x * 2).unwrap_or(0)
    0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain a step that can itself fail."""
        return f(self.value)

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """A failed operation; ``map`` and ``flat_map`` pass the error through."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the wrapped error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        return Err(self.error)

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


__all__ = ["Err", "Ok", "Result"]
