"""
Tests for FinSnap

Test strategy:
1. Unit tests for individual components (models, engine, queries)
2. Store tests against in-memory backends
3. No real API calls in tests (fake models)
"""

import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from finsnap.config import AdvisorSettings, AppSettings, StorageSettings
from finsnap.models import (
    Asset,
    AssetCategory,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Document,
    Expense,
    ItemKind,
    ItemUpdate,
    Liability,
    Snapshot,
    SnapshotData,
    ValidationIssue,
    ValidationResult,
    coerce_amount,
    display_name,
    format_currency,
)
from finsnap.models.items import categorical_fields


class TestAmountCoercion:
    """Tests for the non-negative amount rule."""

    @pytest.mark.parametrize("value,expected", [
        (100, 100.0),
        (12.5, 12.5),
        ("42", 42.0),
        (" 7.25 ", 7.25),
        ("120.5 USD", 120.5),
        ("1e3", 1000.0),
        (".5", 0.5),
        (-1, 0.0),
        ("-3", 0.0),
        (0, 0.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        ([1], 0.0),
        (math.nan, 0.0),
        (math.inf, 0.0),
        ("1e999", 0.0),
    ])
    def test_coerce(self, value, expected):
        assert coerce_amount(value) == expected

    def test_huge_integer_is_zero(self):
        """Integers too large for a float coerce to 0 instead of raising."""
        assert coerce_amount(int("9" * 400)) == 0.0
        assert coerce_amount(-int("9" * 400)) == 0.0

    @pytest.mark.parametrize("value", [5, "-2", "abc", 3.75, None])
    def test_coercion_is_idempotent(self, value):
        once = coerce_amount(value)
        assert coerce_amount(once) == once


class TestItemModels:
    """Tests for the per-kind item models."""

    def test_asset_creation(self):
        asset = Asset(name="  Savings  ", amount="1000", category="cash", liquidity="high")
        assert asset.name == "Savings"
        assert asset.amount == 1000.0
        assert asset.category == AssetCategory.CASH

    def test_blank_category_is_none(self):
        asset = Asset(name="A", amount=1, category="  ", liquidity="")
        assert asset.category is None
        assert asset.liquidity is None

    def test_unknown_category_rejected(self):
        with pytest.raises(PydanticValidationError):
            Expense(name="X", amount=1, category="luxury")

    def test_liability_terms(self):
        assert Liability(name="Loan", term="medium-term").term.value == "medium-term"

    def test_categorical_fields_per_kind(self):
        assert categorical_fields(ItemKind.ASSETS) == ("category", "liquidity")
        assert categorical_fields(ItemKind.LIABILITIES) == ("term",)
        assert categorical_fields("incomes") == ("category",)

    def test_item_update_tracks_explicit_fields(self):
        """Only explicitly passed fields count as changes."""
        assert ItemUpdate(amount=5).changes() == {"amount": 5}
        assert ItemUpdate(category=None).changes() == {"category": None}
        assert ItemUpdate().changes() == {}

    def test_item_update_forbids_unknown_fields(self):
        with pytest.raises(PydanticValidationError):
            ItemUpdate(colour="red")


class TestDisplay:

    @pytest.mark.parametrize("kind,column,value,expected", [
        (ItemKind.ASSETS, "category", "cash", "Cash Equivalents"),
        (ItemKind.ASSETS, "category", AssetCategory.INSURANCE, "Insurance (Cash Value)"),
        (ItemKind.ASSETS, "liquidity", "medium", "Medium"),
        (ItemKind.LIABILITIES, "term", "long-term", "Long-Term"),
        (ItemKind.INCOMES, "category", "passive", "Passive Income"),
        (ItemKind.EXPENSES, "category", "essential", "Essential / Fixed"),
        (ItemKind.EXPENSES, "category", "custom", "custom"),
        (ItemKind.ASSETS, "category", None, ""),
    ])
    def test_display_name(self, kind, column, value, expected):
        assert display_name(kind, column, value) == expected

    def test_format_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(-3) == "-$3.00"
        assert format_currency(10, symbol="€") == "€10.00"


class TestSnapshotModels:
    """Tests for Snapshot and Document."""

    def test_serialized_shape(self):
        snapshot = Snapshot(
            id="a",
            label="Jan",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            data=SnapshotData(assets=[Asset(name="Cash", amount=1, category="cash")]),
        )
        data = snapshot.to_dict()
        assert data["createdAt"] == "2024-01-01T00:00:00Z"
        assert data["data"]["assets"] == [{"name": "Cash", "amount": 1.0, "category": "cash"}]

    def test_accepts_created_at_alias(self):
        snapshot = Snapshot.model_validate(
            {"id": "a", "label": "Jan", "createdAt": "2024-02-03T04:05:06Z"}
        )
        assert snapshot.created_at.month == 2

    def test_default_ids_are_unique(self):
        assert Snapshot(label="A").id != Snapshot(label="B").id

    def test_label_must_not_be_blank(self):
        with pytest.raises(PydanticValidationError):
            Snapshot(label="   ")

    def test_document_lookup(self):
        document = Document(snapshots=[Snapshot(id="a", label="A"), Snapshot(id="b", label="B")])
        assert document.find("b").label == "B"
        assert document.find("z") is None
        assert document.find(None) is None
        assert document.index_of("b") == 1
        assert document.index_of("z") == -1

    def test_snapshot_data_helpers(self):
        data = SnapshotData()
        assert data.is_empty()
        data.items(ItemKind.EXPENSES).append(Expense(name="Rent", amount=1))
        assert data.item_count() == 1

    def test_naive_created_at_is_utc(self):
        snapshot = Snapshot.model_validate(
            {"id": "a", "label": "Jan", "createdAt": "2024-01-01T00:00:00"}
        )
        assert snapshot.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_unknown_snapshot_keys_are_kept(self):
        snapshot = Snapshot.model_validate({"id": "a", "label": "Jan", "note": "yearly"})
        assert snapshot.to_dict()["note"] == "yearly"


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.SNAPSHOT_CREATED,
            description="Snapshot created: Jan",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_item_changed_builder(self):
        event = AuditEventBuilder.item_changed(
            AuditEventType.ITEM_DELETED, "snap-1", "assets", 2, "Car"
        )
        assert event.description == "Item deleted in assets: Car"
        assert event.details == {"kind": "assets", "index": 2, "name": "Car"}

    def test_rejection_is_warning(self):
        event = AuditEventBuilder.operation_rejected("add_item", "not_found", "No item")
        assert event.severity == AuditSeverity.WARNING
        assert event.to_log_dict()["error_code"] == "not_found"


class TestValidationResult:

    def test_counts(self):
        result = ValidationResult(
            structure_valid=True,
            content_valid=False,
            issues=[
                ValidationIssue(field="a", issue_type="missing", message="m", severity="error"),
                ValidationIssue(field="b", issue_type="missing", message="m", severity="warning"),
            ],
        )
        assert not result.is_valid
        assert result.error_count == 1
        assert len(result.warnings) == 1

    def test_severity_pattern(self):
        with pytest.raises(PydanticValidationError):
            ValidationIssue(field="a", issue_type="x", message="m", severity="fatal")


class TestSettings:
    """Settings load from keyword overrides and defaults."""

    def test_storage_defaults(self):
        settings = StorageSettings(backend="memory")
        assert settings.document_key == "financeData"

    def test_storage_backend_is_checked(self):
        with pytest.raises(PydanticValidationError):
            StorageSettings(backend="sqlite")

    def test_blank_api_key_is_not_configured(self):
        assert not AdvisorSettings(api_key="  ").is_configured
        assert AdvisorSettings(api_key="k").is_configured

    def test_log_level_pattern(self):
        with pytest.raises(PydanticValidationError):
            AppSettings(log_level="LOUD")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
