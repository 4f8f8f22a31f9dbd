"""Tests for statistics, context summaries and exports."""

import csv
import io
import json

import pytest
import yaml

from fossil.core.errors import ValidationError
from fossil.store.query import QueryFilter
from fossil.store.reports import ExportFormat, context_summary, export, statistics


@pytest.fixture
def populated(repo):
    specs = [
        ("insight", "Open issues", "12 open issues in repo X", ["github"], "automated"),
        ("decision", "Adopt PyYAML", "use safe_dump for context files", ["yaml", "deps"], "manual"),
        ("observation", "CI green", "all tests passed on main", ["ci"], "terminal"),
        ("insight", "Flaky test", "x" * 150, ["ci", "tests"], "llm"),
        ("action", "Bump structlog", "structlog upgraded", ["deps"], "manual"),
        ("plan", "Split CLI", "move canonical commands to their own module", ["cli"], "manual"),
    ]
    for entry_type, title, content, tags, source in specs:
        repo.create(
            {"type": entry_type, "title": title, "content": content, "tags": tags, "source": source},
            dedup_threshold=None,
        )
    return repo


class TestStatistics:
    def test_empty_store(self, repo):
        stats = statistics(repo)
        assert stats.total_entries == 0
        assert stats.last_updated is None
        assert stats.to_dict()["last_updated"] is None

    def test_counts(self, populated):
        stats = statistics(populated)
        assert stats.total_entries == 6
        assert stats.by_type == {"insight": 2, "decision": 1, "observation": 1, "action": 1, "plan": 1}
        assert stats.by_source["manual"] == 3
        assert stats.by_tag["deps"] == 2
        assert stats.by_tag["ci"] == 2
        assert stats.storage_size > 0

    def test_corrupt_files_are_not_counted(self, populated):
        (populated.entries_dir / "fossil_broken.json").write_text("{")
        assert statistics(populated).total_entries == 6

    def test_last_updated_tracks_updates(self, populated):
        target = populated.all_entries()[0]
        updated = populated.update(target.id, {"content": "changed"}).unwrap()
        assert statistics(populated).last_updated == updated.updated_at


class TestContextSummary:
    def test_empty(self):
        summary = context_summary([])
        assert summary == {
            "totalEntries": 0,
            "byType": {},
            "bySource": {},
            "recentEntries": [],
            "keyInsights": [],
        }

    def test_recent_entries_newest_first(self, populated):
        summary = context_summary(populated.all_entries())
        assert summary["totalEntries"] == 6
        assert [e["title"] for e in summary["recentEntries"]][:2] == ["Split CLI", "Bump structlog"]

    def test_key_insights_come_from_the_five_newest(self, populated):
        # "Open issues" is the oldest of six, so it falls outside the window
        insights = context_summary(populated.all_entries())["keyInsights"]
        assert insights == [
            f"Flaky test: {'x' * 100}...",
            "Adopt PyYAML: use safe_dump for context files...",
        ]

    def test_recent_entries_capped_at_ten(self, repo):
        for i in range(12):
            repo.create({"type": "observation", "title": f"n{i}", "content": f"c{i}"}, dedup_threshold=None)
        assert len(context_summary(repo.all_entries())["recentEntries"]) == 10


class TestExport:
    def test_json(self, populated, clock):
        path = export(populated, "json", clock=clock).unwrap()
        assert path.parent == populated.config.exports_dir
        assert path.name.startswith("fossil-export-") and path.suffix == ".json"
        documents = json.loads(path.read_text())
        assert len(documents) == 6
        assert "createdAt" in documents[0]

    def test_markdown_groups_by_type(self, populated, clock):
        path = export(populated, ExportFormat.MARKDOWN, clock=clock).unwrap()
        assert path.suffix == ".md"
        text = path.read_text()
        assert "# Fossil Export" in text
        assert "Total Entries: 6" in text
        assert "## Insight (2)" in text
        assert "### Adopt PyYAML" in text
        assert "**Tags:** yaml, deps" in text

    def test_csv(self, populated, clock):
        path = export(populated, "csv", clock=clock).unwrap()
        rows = list(csv.DictReader(io.StringIO(path.read_text())))
        assert len(rows) == 6
        assert {row["title"] for row in rows} >= {"Open issues", "CI green"}
        flaky = next(row for row in rows if row["title"] == "Flaky test")
        assert flaky["tags"] == "ci;tests"
        assert flaky["version"] == "1"

    def test_yaml(self, populated, clock):
        path = export(populated, "yaml", clock=clock).unwrap()
        document = yaml.safe_load(path.read_text())
        assert document["total_entries"] == 6
        assert len(document["entries"]) == 6

    def test_filter_applies(self, populated, clock):
        path = export(populated, "json", QueryFilter(tags=["deps"]), clock=clock).unwrap()
        assert {d["title"] for d in json.loads(path.read_text())} == {"Adopt PyYAML", "Bump structlog"}

    def test_same_instant_does_not_overwrite(self, populated, frozen_clock):
        first = export(populated, "json", clock=frozen_clock).unwrap()
        second = export(populated, "json", clock=frozen_clock).unwrap()
        assert first != second
        assert first.exists() and second.exists()

    def test_unknown_format(self, populated):
        result = export(populated, "xml")
        assert isinstance(result.error, ValidationError)
        assert result.error.field == "format"
        assert not populated.config.exports_dir.exists()
