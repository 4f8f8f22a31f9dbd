"""Tests for fossil.core.logging module."""

import json

import pytest
import structlog

from fossil.core.logging import bind_context, configure_logging, get_logger


@pytest.fixture
def json_logs():
    configure_logging(level="INFO", json_format=True)
    yield
    structlog.contextvars.clear_contextvars()
    configure_logging(level="WARNING", json_format=False)


def _last_record(capsys) -> dict:
    return json.loads(capsys.readouterr().err.strip().splitlines()[-1])


class TestGetLogger:
    def test_named_logger_emits(self, json_logs, capsys):
        get_logger("fossil.tests").info("entry_created", fossil_id="fossil_x")
        record = _last_record(capsys)
        assert record["event"] == "entry_created"
        assert record["fossil_id"] == "fossil_x"
        assert record["log.level"] == "info"
        assert record["service.name"] == "fossil"
        assert "@timestamp" in record

    def test_unnamed_logger(self, json_logs, capsys):
        get_logger().warning("vcs_unavailable")
        assert _last_record(capsys)["event"] == "vcs_unavailable"

    def test_level_filtering(self, json_logs, capsys):
        get_logger("fossil.tests").debug("noise")
        assert capsys.readouterr().err == ""

    def test_stdout_stays_clean(self, json_logs, capsys):
        get_logger("fossil.tests").info("entry_deleted")
        assert capsys.readouterr().out == ""


def test_bound_context_is_merged(json_logs, capsys):
    bind_context(command="canonical")
    get_logger("fossil.tests").info("canonical_updated")
    assert _last_record(capsys)["command"] == "canonical"
