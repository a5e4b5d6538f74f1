"""
Tests for import validation.

Stage 1 checks structure, stage 2 builds the models.
"""

import pytest

from finsnap.exceptions import MalformedDocumentError, ValidationError
from finsnap.validation import DocumentValidator, validate_label, validate_name


def snapshot(**overrides):
    raw = {
        "id": "s1",
        "label": "January",
        "createdAt": "2024-01-05T15:07:00Z",
        "data": {"assets": [], "liabilities": [], "incomes": [], "expenses": []},
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def validator():
    return DocumentValidator()


class TestFieldValidation:

    def test_label_is_trimmed(self):
        assert validate_label("  Jan ") == "Jan"

    @pytest.mark.parametrize("value", ["", "  ", None, 5])
    def test_empty_label(self, value):
        with pytest.raises(ValidationError) as info:
            validate_label(value)
        assert info.value.field == "label"

    def test_empty_name(self):
        with pytest.raises(ValidationError, match="Name cannot be empty"):
            validate_name("\t")


class TestStructureStage:
    """Stage 1: structural rules."""

    def test_valid_document(self, validator):
        result, document = validator.validate({"snapshots": [snapshot()]})
        assert result.is_valid
        assert document.snapshots[0].label == "January"

    def test_missing_snapshots_array(self, validator):
        result, document = validator.validate({"items": []})
        assert document is None
        assert not result.structure_valid
        assert result.errors[0].field == "snapshots"

    def test_non_object_payload(self, validator):
        result, _ = validator.validate(["not", "a", "document"])
        assert result.has_errors

    @pytest.mark.parametrize("field", ["id", "label", "data"])
    def test_missing_snapshot_field(self, validator, field):
        raw = snapshot()
        del raw[field]
        result, _ = validator.validate({"snapshots": [raw]})
        assert [issue.field for issue in result.errors] == [f"snapshots[0].{field}"]

    def test_blank_id_counts_as_missing(self, validator):
        result, _ = validator.validate({"snapshots": [snapshot(id="  ")]})
        assert result.errors[0].issue_type == "missing"

    def test_missing_category_list_is_a_warning(self, validator):
        """A missing list is corrected to empty, not rejected."""
        raw = snapshot(data={"assets": [{"name": "Cash", "amount": 1}]})
        result, document = validator.validate({"snapshots": [raw]})
        assert result.is_valid
        assert len(result.warnings) == 3
        assert document.snapshots[0].data.incomes == []

    def test_non_list_category(self, validator):
        raw = snapshot(data={"assets": {"name": "Cash"}})
        result, _ = validator.validate({"snapshots": [raw]})
        assert "Invalid data categories" in result.errors[0].message

    def test_non_object_item(self, validator):
        raw = snapshot(data={"assets": ["cash"]})
        result, _ = validator.validate({"snapshots": [raw]})
        assert result.errors[0].field == "snapshots[0].data.assets[0]"

    def test_duplicate_ids(self, validator):
        result, _ = validator.validate({"snapshots": [snapshot(), snapshot(label="Copy")]})
        assert result.errors[0].issue_type == "duplicate"

    def test_every_failure_is_reported(self, validator):
        """Issues for all snapshots are collected, not just the first."""
        bad = [snapshot(id=""), snapshot(id="s2", label=None)]
        result, _ = validator.validate({"snapshots": bad})
        assert result.error_count == 2


class TestContentStage:
    """Stage 2: model building."""

    def test_unknown_category_value(self, validator):
        raw = snapshot(data={"assets": [{"name": "Gold", "amount": 1, "category": "bullion"}]})
        result, document = validator.validate({"snapshots": [raw]})
        assert document is None
        assert result.structure_valid
        assert not result.content_valid
        assert "assets" in result.errors[0].field

    def test_amounts_are_coerced(self, validator):
        raw = snapshot(data={"expenses": [
            {"name": "A", "amount": "-3"},
            {"name": "B", "amount": "45.5abc"},
            {"name": "C"},
        ]})
        _, document = validator.validate({"snapshots": [raw]})
        assert [e.amount for e in document.snapshots[0].data.expenses] == [0.0, 45.5, 0.0]

    def test_blank_category_is_unspecified(self, validator):
        raw = snapshot(data={"incomes": [{"name": "Gift", "amount": 1, "category": ""}]})
        _, document = validator.validate({"snapshots": [raw]})
        assert document.snapshots[0].data.incomes[0].category is None

    def test_missing_created_at_defaults_to_now(self, validator):
        raw = snapshot()
        del raw["createdAt"]
        _, document = validator.validate({"snapshots": [raw]})
        assert document.snapshots[0].created_at.tzinfo is not None

    def test_bad_created_at(self, validator):
        result, _ = validator.validate({"snapshots": [snapshot(createdAt="yesterday")]})
        assert not result.content_valid


class TestBuildDocument:

    def test_raises_with_summary(self, validator):
        with pytest.raises(MalformedDocumentError) as info:
            validator.build_document({"snapshots": [snapshot(id=""), snapshot(id="")]})
        assert "(and 1 more)" in info.value.message
        assert len(info.value.issues) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
