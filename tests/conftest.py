"""
Shared pytest fixtures for fossil tests.

This module provides:
- A stepping clock so every timestamp a test sees is deterministic
- ``StoreConfig`` rooted in ``tmp_path``
- ``StaticVcs`` with fixed git facts
- Ready-made repository, canonical manager and store facade
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from fossil.core.logging import configure_logging
from fossil.store.canonical import CanonicalManager
from fossil.store.config import StoreConfig
from fossil.store.repository import FossilRepository
from fossil.store.service import FossilStore
from fossil.store.vcs import StaticVcs

EPOCH = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


class SteppingClock:
    """Returns ``start``, then ``start + step``, ``start + 2*step``..."""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def now(self) -> datetime:
        value = self.current
        self.current = value + self.step
        return value


def pytest_configure(config: pytest.Config) -> None:
    configure_logging(level="WARNING", json_format=False)


# =============================================================================
# Time & VCS
# =============================================================================


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def frozen_clock() -> SteppingClock:
    """A clock that never advances."""
    return SteppingClock(step=timedelta(0))


@pytest.fixture
def vcs(tmp_path: Path) -> StaticVcs:
    return StaticVcs(
        commit_hash="3f2a9c1",
        branch="main",
        author="CI Bot",
        email="ci@example.com",
        root=tmp_path,
    )


# =============================================================================
# Store components
# =============================================================================


@pytest.fixture
def config(tmp_path: Path) -> StoreConfig:
    return StoreConfig(root_path=tmp_path / "fossils")


@pytest.fixture
def repo(config: StoreConfig, clock: SteppingClock) -> FossilRepository:
    return FossilRepository(config, clock=clock)


@pytest.fixture
def canonical(config: StoreConfig, vcs: StaticVcs, clock: SteppingClock) -> CanonicalManager:
    return CanonicalManager(config, vcs=vcs, clock=clock)


@pytest.fixture
def store(config: StoreConfig, vcs: StaticVcs, clock: SteppingClock) -> Generator[FossilStore, None, None]:
    yield FossilStore(config, vcs=vcs, clock=clock)


def make_candidate(**overrides) -> dict:
    candidate = {
        "type": "insight",
        "title": "Open issues",
        "content": "12 open issues in repo X",
        "tags": ["github"],
    }
    candidate.update(overrides)
    return candidate


@pytest.fixture
def candidate() -> dict:
    return make_candidate()
