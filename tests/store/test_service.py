"""Tests for the FossilStore facade."""

import yaml

from fossil.core.errors import ValidationError
from fossil.core.settings import FossilSettings
from fossil.store.query import QueryFilter
from fossil.store.repository import Created
from fossil.store.service import FossilStore
from fossil.store.vcs import StaticVcs


class TestUpdateCategory:
    """Canonical updates with follow-up traceability and aggregate."""

    def test_trace_records_changes_under_root(self, store, vcs):
        vcs.unstaged = ["fossils/canonical/performance.json"]
        store.update_category("performance", {"metrics": {"cpu": 12.5}}).unwrap()

        trace = store.get_category("traceability")
        assert trace["fossil_changes"] == ["fossils/canonical/performance.json"]
        assert store.categories() == ["performance", "traceability"]

    def test_no_trace(self, store, vcs):
        vcs.unstaged = ["fossils/canonical/performance.json"]
        store.update_category("performance", {"metrics": {}}, trace=False).unwrap()
        assert store.get_category("traceability") is None

    def test_trace_failure_does_not_fail_update(self, config, clock, tmp_path):
        store = FossilStore(config, vcs=StaticVcs(root=tmp_path / "other-repo"), clock=clock)
        path = store.update_category("analysis", {"insights": ["a"]}).unwrap()
        assert path.exists()
        assert store.get_category("traceability") is None

    def test_aggregate_written_when_requested(self, store):
        store.update_category("analysis", {"insights": ["a", "b"]}, aggregate=True).unwrap()
        context = yaml.safe_load(store.canonical.aggregate_path().read_text())
        assert context["canonical_fossils"]["analysis"]["transversal_value"] == 30

    def test_rejected_update_skips_follow_ups(self, store, vcs):
        vcs.unstaged = ["fossils/canonical/x.json"]
        result = store.update_category("Bad Name", {}, aggregate=True)
        assert isinstance(result.error, ValidationError)
        assert store.categories() == []
        assert not store.canonical.aggregate_path().exists()

    def test_history(self, store):
        store.update_category("footprint", {"files": 1}, trace=False)
        store.update_category("footprint", {"files": 2}, trace=False)
        assert len(store.category_history("footprint")) == 1


class TestEntries:
    def test_create_query_summary(self, store, candidate):
        assert isinstance(store.create(candidate).unwrap(), Created)
        store.create({"type": "decision", "title": "Use YAML", "content": "for context.yml"})

        assert store.query(QueryFilter(type="decision")).total == 1
        summary = store.context_summary()
        assert summary["totalEntries"] == 2
        assert summary["keyInsights"][0].startswith("Use YAML:")
        assert store.statistics().total_entries == 2

    def test_context_summary_respects_filter(self, store, candidate):
        store.create(candidate)
        store.create({"type": "plan", "title": "Ship", "content": "0.1", "tags": ["release"]})
        assert store.context_summary(QueryFilter(tags=["release"]))["totalEntries"] == 1

    def test_snapshot_round(self, store, candidate):
        store.create(candidate)
        info = store.create_snapshot("nightly").unwrap()
        assert [s.id for s in store.list_snapshots()] == [info.id]

    def test_related(self, store, candidate):
        parent = store.create(candidate).unwrap().entry
        child = store.create(
            {"type": "action", "title": "Triage", "content": "label the new issues", "parent_id": parent.id}
        ).unwrap().entry
        assert [e.id for e in store.related(parent.id)] == [child.id]
        assert [e.id for e in store.related(child.id, max_depth=1)] == [parent.id]


def test_from_settings(tmp_path, vcs, clock):
    settings = FossilSettings(root_path=tmp_path / "fossils", dedup_threshold=90)
    store = FossilStore.from_settings(settings, vcs=vcs, clock=clock)
    assert store.config.root_path == tmp_path / "fossils"
    assert store.config.dedup_threshold == 90
