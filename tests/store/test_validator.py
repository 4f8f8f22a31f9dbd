"""Tests for entry models and fossil.store.validator."""

from fossil.core.errors import EntryValidationError
from fossil.store.models import EntryCandidate, EntrySource, EntryType
from fossil.store.validator import validate, validate_patch


class TestValidate:
    """validate() accepts good candidates and lists every violation of bad ones."""

    def test_minimal_candidate(self):
        result = validate({"type": "insight", "title": "Open issues", "content": "12 open issues"})
        candidate = result.unwrap()
        assert candidate.type is EntryType.INSIGHT
        assert candidate.source is EntrySource.MANUAL
        assert candidate.created_by == "unknown"
        assert candidate.tags == []
        assert candidate.metadata == {}

    def test_camel_and_snake_case_keys(self):
        camel = validate({"type": "plan", "title": "t", "content": "c", "createdBy": "ci"}).unwrap()
        snake = validate({"type": "plan", "title": "t", "content": "c", "created_by": "ci"}).unwrap()
        assert camel.created_by == snake.created_by == "ci"

    def test_missing_required_fields(self):
        result = validate({"tags": []})
        assert isinstance(result.error, EntryValidationError)
        fields = {v.field for v in result.error.violations}
        assert {"type", "title", "content"} <= fields

    def test_whitespace_only_title_is_empty(self):
        result = validate({"type": "insight", "title": "   ", "content": "x"})
        assert [v.field for v in result.error.violations] == ["title"]

    def test_collects_all_violations(self):
        result = validate({"type": "rumour", "title": "", "content": "x", "source": "fax"})
        fields = sorted(v.field for v in result.error.violations)
        assert fields == ["source", "title", "type"]

    def test_tags_must_be_non_empty_strings(self):
        result = validate({"type": "insight", "title": "t", "content": "c", "tags": ["ok", "", 3]})
        fields = {v.field for v in result.error.violations}
        assert fields == {"tags.1", "tags.2"}

    def test_metadata_must_be_mapping(self):
        result = validate({"type": "insight", "title": "t", "content": "c", "metadata": ["x"]})
        assert [v.field for v in result.error.violations] == ["metadata"]

    def test_unknown_keys_rejected(self):
        result = validate({"type": "insight", "title": "t", "content": "c", "colour": "red"})
        assert result.is_err()

    def test_non_mapping_rejected(self):
        result = validate(["insight", "t", "c"])
        assert result.error.violations[0].constraint == "mapping_type"

    def test_duplicate_tags_removed_in_order(self):
        candidate = validate({"type": "insight", "title": "t", "content": "c", "tags": ["b", "a", "b"]}).unwrap()
        assert candidate.tags == ["b", "a"]

    def test_model_instance_accepted(self):
        model = EntryCandidate(type=EntryType.ACTION, title="t", content="c")
        assert validate(model).unwrap() == model


class TestValidatePatch:
    def test_empty_patch_is_valid(self):
        patch = validate_patch({}).unwrap()
        assert patch.title is None

    def test_blank_title_rejected(self):
        result = validate_patch({"title": ""})
        assert [v.field for v in result.error.violations] == ["title"]

    def test_id_cannot_be_patched(self):
        assert validate_patch({"id": "fossil_other"}).is_err()
