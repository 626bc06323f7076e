"""
Tests for Drawer

Test strategy:
1. Unit tests for individual components (models, normalizer, insights)
2. Integration tests for flows (with fake model objects)
3. No real API calls in tests
"""

import datetime as dt
from decimal import Decimal

import pytest
from pydantic import ValidationError

from drawer.models import (
    CATEGORIES,
    Category,
    ChatMessage,
    ChatRole,
    ExtractedDocument,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
    TransactionType,
    parse_iso_date,
)


def extract(data, today=dt.date(2025, 1, 15)):
    """Validate like the normalizer does, returning (record, defaulted)."""
    context = {"today": today, "defaulted": []}
    record = ExtractedDocument.model_validate(data, context=context)
    return record, context["defaulted"]


class TestExtractedDocument:
    """Tests for the lenient extraction model."""

    def test_well_formed_payload(self):
        """Test that clean model output passes through unchanged."""
        record, defaulted = extract({
            "merchant": "Walmart",
            "amount": 47.53,
            "category": "Finance",
            "transaction_type": "expense",
            "date": "2025-01-15",
            "due_date": None,
            "summary": "Groceries.",
            "raw_text": "WALMART SUPERCENTER",
        })
        assert record.merchant == "Walmart"
        assert record.amount == Decimal("47.53")
        assert record.category == Category.FINANCE
        assert record.transaction_type == TransactionType.EXPENSE
        assert record.date == dt.date(2025, 1, 15)
        assert record.due_date is None
        assert defaulted == []

    def test_empty_payload_gets_every_default(self):
        """Test that a missing field never fails the record."""
        record, defaulted = extract({})
        assert record.merchant == "Unknown"
        assert record.amount == Decimal("0")
        assert record.category == Category.FINANCE
        assert record.transaction_type == TransactionType.RECORD
        assert record.date == dt.date(2025, 1, 15)
        assert record.summary == ""
        assert record.raw_text == ""
        assert {"merchant", "category", "transaction_type", "date"} <= set(defaulted)

    def test_unknown_category_falls_back_to_finance(self):
        record, defaulted = extract({"category": "Unknown-category"})
        assert record.category == Category.FINANCE
        assert "category" in defaulted

    def test_category_is_trimmed(self):
        record, _ = extract({"category": "  Identity/Legal "})
        assert record.category == Category.IDENTITY_LEGAL

    def test_bogus_type_becomes_record_with_zero_amount(self):
        """Test that an unknown type is a record, and records carry no money."""
        record, defaulted = extract({"transaction_type": "bogus", "amount": 12})
        assert record.transaction_type == TransactionType.RECORD
        assert record.amount == 0
        assert "amount" in defaulted

    @pytest.mark.parametrize("raw", [-5, "abc", float("nan"), float("inf"), [1]])
    def test_unusable_amounts_become_zero(self, raw):
        record, defaulted = extract({"amount": raw, "transaction_type": "expense"})
        assert record.amount == 0
        assert "amount" in defaulted

    def test_amount_strings_and_rounding(self):
        """Test numeric strings are accepted and quantized half-up to cents."""
        record, _ = extract({"amount": " 12.345 ", "transaction_type": "expense"})
        assert record.amount == Decimal("12.35")

    def test_boolean_amount_is_numeric(self):
        record, _ = extract({"amount": True, "transaction_type": "income"})
        assert record.amount == Decimal("1.00")

    def test_impossible_date_uses_today(self):
        """Test that the date must be a real calendar day, not just the right shape."""
        record, defaulted = extract({"date": "2024-02-30"})
        assert record.date == dt.date(2025, 1, 15)
        assert "date" in defaulted

    def test_invalid_due_date_is_dropped(self):
        record, defaulted = extract({"due_date": "next Tuesday"})
        assert record.due_date is None
        assert "due_date" in defaulted

    def test_numeric_merchant_is_stringified(self):
        record, _ = extract({"merchant": 7})
        assert record.merchant == "7"


class TestNewDocument:
    """Tests for the strict stored-document payload."""

    def _payload(self, **overrides):
        payload = {
            "file_url": "/uploads/1-1.pdf",
            "merchant": "Acme Corp",
            "amount": Decimal("0.00"),
            "category": Category.FINANCE,
            "transaction_type": TransactionType.RECORD,
            "date": dt.date(2024, 12, 31),
        }
        payload.update(overrides)
        return payload

    def test_record_with_zero_amount(self):
        document = NewDocument(**self._payload())
        assert document.amount == 0
        assert document.raw_text is None

    def test_record_with_amount_is_rejected(self):
        with pytest.raises(ValidationError, match="Record documents must have a zero amount"):
            NewDocument(**self._payload(amount=Decimal("10.00")))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            NewDocument(**self._payload(
                amount=Decimal("-1.00"),
                transaction_type=TransactionType.EXPENSE,
            ))

    def test_empty_merchant_rejected(self):
        with pytest.raises(ValidationError):
            NewDocument(**self._payload(merchant=""))


class TestNotes:
    """Tests for note payloads."""

    def test_note_create_strips_content(self):
        note = NoteCreate(content="  Buy milk  ")
        assert note.content == "Buy milk"
        assert note.is_completed is False

    def test_blank_content_rejected(self):
        with pytest.raises(ValidationError):
            NoteCreate(content="   ")

    def test_blank_reminder_fields_are_none(self):
        note = NoteCreate(content="Call mom", reminder_date="", reminder_time=" ")
        assert note.reminder_date is None
        assert note.reminder_time is None

    @pytest.mark.parametrize("value", ["24:00", "9:30", "09:60", "noon"])
    def test_reminder_time_must_be_hh_mm(self, value):
        with pytest.raises(ValidationError):
            NoteCreate(content="x", reminder_time=value)

    def test_update_tracks_only_set_fields(self):
        update = NoteUpdate(is_completed=True)
        assert update.changes() == {"is_completed": True}

    def test_update_can_clear_reminder(self):
        update = NoteUpdate(reminder_date=None)
        assert update.changes() == {"reminder_date": None}

    def test_update_cannot_clear_content(self):
        with pytest.raises(ValidationError):
            NoteUpdate(content=None)

    def test_stored_note_has_id(self):
        note = Note(id=3, content="Renew passport", reminder_date=dt.date(2026, 3, 1))
        assert note.id == 3
        assert note.created_at.tzinfo is not None


class TestChatMessage:

    def test_roles(self):
        message = ChatMessage(id=1, role="assistant", content="Hi")
        assert message.role == ChatRole.ASSISTANT
        assert message.attachment_url is None


class TestParseIsoDate:

    def test_valid(self):
        assert parse_iso_date("2026-02-20") == dt.date(2026, 2, 20)

    @pytest.mark.parametrize("value", ["2026-2-20", "20-02-2026", "2026-13-01", None, 20260220])
    def test_invalid(self, value):
        assert parse_iso_date(value) is None

    def test_date_passthrough(self):
        assert parse_iso_date(dt.date(2025, 1, 1)) == dt.date(2025, 1, 1)


class TestCategories:
    """Tests for the closed category set."""

    def test_all_categories_exist(self):
        expected = ["Finance", "Health", "Personal", "Home", "Identity/Legal", "Career/School"]
        assert list(CATEGORIES) == expected

    def test_transaction_type_values(self):
        assert TransactionType.EXPENSE.value == "expense"
        assert TransactionType("record") is TransactionType.RECORD


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
