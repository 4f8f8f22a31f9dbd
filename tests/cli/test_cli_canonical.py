"""Tests for ``fossil canonical`` via CliRunner."""

from __future__ import annotations

import json

import yaml

VALIDATION_RUN = {
    "validation_steps": [{"step": "linting", "status": "pass", "duration_ms": 800}],
    "summary": {"overall_status": "pass"},
}


class TestCanonicalUpdate:
    """canonical update"""

    def test_inline_payload(self, invoke):
        result = invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN))
        assert result.exit_code == 0, result.output
        assert "Updated" in result.output
        document = json.loads((invoke.root / "canonical" / "validation.json").read_text())
        assert document["metadata"]["version"] == 1
        assert document["branch"] == "main"

    def test_payload_from_file(self, invoke, tmp_path):
        source = tmp_path / "performance.json"
        source.write_text(json.dumps({"metrics": {"cpu_usage_percent": 12.5}}))
        result = invoke("canonical", "update", "performance", "-p", str(source))
        assert result.exit_code == 0, result.output
        assert (invoke.root / "canonical" / "performance.json").exists()

    def test_payload_from_stdin(self, invoke):
        result = invoke("canonical", "update", "analysis", "-p", "-", input='{"insights": ["x"]}')
        assert result.exit_code == 0, result.output

    def test_explicit_transversal_value(self, invoke):
        invoke("canonical", "update", "git-diff", "-p", "{}", "--transversal-value", "40")
        document = json.loads(invoke("canonical", "show", "git-diff", "--json").stdout)
        assert document["metadata"]["transversalValue"] == 40

    def test_schema_violation(self, invoke):
        result = invoke("canonical", "update", "validation", "-p", '{"validation_steps": 3}')
        assert result.exit_code == 1
        assert "VALIDATION" in result.output
        assert not (invoke.root / "canonical" / "validation.json").exists()

    def test_reserved_category(self, invoke):
        result = invoke("canonical", "update", "context", "-p", "{}")
        assert result.exit_code == 1
        assert "reserved" in result.output

    def test_payload_not_json(self, invoke):
        assert invoke("canonical", "update", "validation", "-p", "{oops").exit_code != 0

    def test_trace_and_aggregate(self, invoke, vcs):
        vcs.unstaged = ["fossils/canonical/validation.json"]
        result = invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN), "--aggregate")
        assert result.exit_code == 0, result.output

        listed = json.loads(invoke("canonical", "list", "--json").stdout)
        assert listed == ["traceability", "validation"]
        context = yaml.safe_load((invoke.root / "canonical" / "context.yml").read_text())
        assert context["canonical_fossils"]["validation"]["status"] == "pass"

    def test_no_trace(self, invoke, vcs):
        vcs.unstaged = ["fossils/canonical/validation.json"]
        invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN), "--no-trace")
        assert json.loads(invoke("canonical", "list", "--json").stdout) == ["validation"]


class TestCanonicalReads:
    def test_show_missing(self, invoke):
        result = invoke("canonical", "show", "validation")
        assert result.exit_code == 1
        assert "Not found" in result.output

    def test_show_text(self, invoke):
        invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN))
        result = invoke("canonical", "show", "validation")
        assert result.exit_code == 0
        assert "commit_hash" in result.output

    def test_history(self, invoke):
        assert "No items." in invoke("canonical", "history", "validation").output
        for _ in range(3):
            invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN), "--no-trace")
        lines = invoke("canonical", "history", "validation").stdout.splitlines()
        assert len(lines) == 2
        assert all("validation-" in line for line in lines)

    def test_list_empty(self, invoke):
        assert "No items." in invoke("canonical", "list").output

    def test_aggregate(self, invoke):
        invoke("canonical", "update", "validation", "-p", json.dumps(VALIDATION_RUN), "--no-trace")
        result = invoke("canonical", "aggregate")
        assert result.exit_code == 0
        assert "Wrote" in result.output
        context = yaml.safe_load((invoke.root / "canonical" / "context.yml").read_text())
        assert context["summary"]["total_canonical_files"] == 1


class TestTrace:
    def test_no_changes(self, invoke):
        result = invoke("canonical", "trace")
        assert result.exit_code == 0
        assert "No fossil changes detected." in result.output

    def test_records_changes(self, invoke, vcs):
        vcs.staged = ["fossils/entries/fossil_a.json", "fossils/entries/fossil_b.json", "docs/x.md"]
        result = invoke("canonical", "trace")
        assert result.exit_code == 0
        assert "Recorded 2 fossil change(s)" in result.output
        document = json.loads(invoke("canonical", "show", "traceability", "--json").stdout)
        assert document["areas"]["entries"] == 2
        assert document["metadata"]["transversalValue"] == 10

    def test_root_outside_repository(self, invoke, vcs, tmp_path):
        vcs.root = tmp_path / "elsewhere"
        result = invoke("canonical", "trace")
        assert result.exit_code == 1
        assert "VCS" in result.output


def test_update_help_lists_known_categories(invoke):
    result = invoke("canonical", "update", "--help")
    assert result.exit_code == 0
    for category in ("validation", "performance", "traceability"):
        assert category in result.output
