"""Tests for fossil.core.result module."""

import pytest

from fossil.core.errors import EntryNotFoundError, StorageError
from fossil.core.result import Err, Ok


class TestOk:
    """Test Ok class."""

    def test_create_ok(self):
        """Create Ok with value."""
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap_or(self):
        """unwrap_or returns the value for Ok."""
        assert Ok(10).unwrap_or(99) == 10

    def test_map_chaining(self):
        assert Ok(2).map(lambda x: x + 1).map(lambda x: x * 10).unwrap() == 30

    def test_flat_map_short_circuits_on_err(self):
        """flat_map returning Err stops the chain."""
        result = Ok("x").flat_map(lambda _: Err(ValueError("bad"))).map(lambda v: v * 2)
        assert result.is_err()
        assert str(result.error) == "bad"


class TestErr:
    """Test Err class."""

    def test_unwrap_raises(self):
        """unwrap re-raises the wrapped error."""
        with pytest.raises(EntryNotFoundError):
            Err(EntryNotFoundError("fossil_x")).unwrap()

    def test_unwrap_or_default(self):
        assert Err(StorageError("disk full")).unwrap_or([]) == []

    def test_map_passes_error_through(self):
        error = StorageError("disk full")
        result = Err(error).map(lambda x: x * 2)
        assert result.error is error

    def test_flat_map_is_not_called(self):
        called = []
        Err(ValueError("a")).flat_map(lambda v: called.append(v))
        assert called == []


class TestPatternMatching:
    """Results work with structural pattern matching."""

    def test_match_ok(self):
        match Ok(5):
            case Ok(value):
                assert value == 5
            case Err(_):
                pytest.fail("expected Ok")

    def test_match_err(self):
        match Err(ValueError("nope")):
            case Ok(_):
                pytest.fail("expected Err")
            case Err(error):
                assert str(error) == "nope"

    def test_match_nested_value(self):
        match Ok(True):
            case Ok(True):
                matched = "deleted"
            case Ok(_):
                matched = "absent"
        assert matched == "deleted"
