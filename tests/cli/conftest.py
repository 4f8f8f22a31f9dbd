"""CLI fixtures: a CliRunner wired to a store with fixed git facts and clock."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from fossil.cli.app import app
from fossil.store.service import FossilStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path, vcs, clock):
    """Run ``fossil <args>`` against ``tmp_path/fossils``."""
    root = tmp_path / "fossils"

    def _invoke(*args: str, input: str | None = None):
        obj = {
            "root": root,
            "store_factory": lambda config: FossilStore(config, vcs=vcs, clock=clock),
        }
        return runner.invoke(app, list(args), obj=obj, input=input)

    _invoke.root = root
    return _invoke


@pytest.fixture
def add_entry(invoke):
    """Create an entry through the CLI and return its JSON document."""

    def _add(*args: str) -> dict:
        result = invoke("entries", "add", "--no-dedup", "--json", *args)
        assert result.exit_code == 0, result.output
        return json.loads(result.stdout)["entry"]

    return _add
