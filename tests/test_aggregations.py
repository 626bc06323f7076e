"""Tests for the aggregation engine."""

import asyncio
import datetime as dt
from decimal import Decimal

import pytest

from drawer.models import Category, NewDocument, Note, NoteCreate, TransactionType
from drawer.models.reports import CalendarEventType
from drawer.queries import (
    DEFAULT_CALENDAR_END,
    DEFAULT_CALENDAR_START,
    REMINDER_ID_OFFSET,
    AggregationEngine,
    calendar_events,
    compute_stats,
    monthly_flow,
    resolve_calendar_range,
    resolve_month,
    storage_by_category,
)
from drawer.services.storage import InMemoryDocumentStorage, InMemoryNoteStorage


def run_async(coro):
    return asyncio.run(coro)


TODAY = dt.date(2025, 1, 15)


class TestComputeStats:

    def test_empty(self):
        stats = compute_stats([])
        assert stats.total_expenses == 0
        assert stats.total_income == 0
        assert stats.total_documents == 0
        assert stats.total_storage_bytes == 0
        assert stats.top_category is None

    def test_records_never_count_towards_money(self, make_document):
        documents = [
            make_document(id=1, amount=Decimal("10.00")),
            make_document(id=2, amount=Decimal("2500.00"), transaction_type=TransactionType.INCOME),
            make_document(id=3, amount=Decimal("0.00"), transaction_type=TransactionType.RECORD,
                          file_size=5000),
        ]
        stats = compute_stats(documents)
        assert stats.total_expenses == Decimal("10.00")
        assert stats.total_income == Decimal("2500.00")
        assert stats.total_documents == 3
        assert stats.total_storage_bytes == 5200

    def test_top_category_by_bytes(self, make_document):
        documents = [
            make_document(id=1, category=Category.HOME, file_size=100),
            make_document(id=2, category=Category.HEALTH, file_size=300),
            make_document(id=3, category=Category.HOME, file_size=150),
        ]
        assert compute_stats(documents).top_category == "Health"

    def test_tie_goes_to_first_encountered(self, make_document):
        documents = [
            make_document(id=2, category=Category.FINANCE, file_size=200),
            make_document(id=1, category=Category.HOME, file_size=200),
        ]
        assert compute_stats(documents).top_category == "Finance"


class TestStorageByCategory:

    def test_descending_by_bytes(self, make_document):
        rows = storage_by_category([
            make_document(id=1, category=Category.HOME, file_size=10),
            make_document(id=2, category=Category.HEALTH, file_size=300),
            make_document(id=3, category=Category.HOME, file_size=15),
        ])
        assert [(r.category, r.count, r.total_bytes) for r in rows] == [
            ("Health", 1, 300),
            ("Home", 2, 25),
        ]

    def test_empty(self):
        assert storage_by_category([]) == []


class TestMonthlyFlow:
    """Tests for daily buckets."""

    def test_leap_february_has_29_zeroed_days(self):
        flow = monthly_flow([], 2024, 2)
        assert len(flow) == 29
        assert flow[0].date == dt.date(2024, 2, 1)
        assert flow[-1].date == dt.date(2024, 2, 29)
        assert all(day.expenses == 0 and day.income == 0 for day in flow)

    def test_sums_per_day_and_skips_records(self, make_document):
        documents = [
            make_document(id=1, amount=Decimal("5.75"), date=dt.date(2025, 1, 10)),
            make_document(id=2, amount=Decimal("4.25"), date=dt.date(2025, 1, 10)),
            make_document(id=3, amount=Decimal("100.00"), date=dt.date(2025, 1, 31),
                          transaction_type=TransactionType.INCOME),
            make_document(id=4, amount=Decimal("0.00"), date=dt.date(2025, 1, 10),
                          transaction_type=TransactionType.RECORD),
            make_document(id=5, amount=Decimal("99.00"), date=dt.date(2025, 2, 1)),
        ]
        flow = monthly_flow(documents, 2025, 1)
        assert len(flow) == 31
        by_day = {day.date: day for day in flow}
        assert by_day[dt.date(2025, 1, 10)].expenses == Decimal("10.00")
        assert by_day[dt.date(2025, 1, 10)].income == 0
        assert by_day[dt.date(2025, 1, 31)].income == Decimal("100.00")
        assert sum(day.expenses for day in flow) == Decimal("10.00")


class TestCalendarEvents:
    """Tests for the unified bills and reminders feed."""

    def test_bill_before_reminder_on_same_day(self, make_document):
        documents = [
            make_document(
                id=3,
                merchant="Comcast",
                amount=Decimal("89.99"),
                category=Category.HOME,
                due_date=dt.date(2026, 2, 20),
                summary="Internet bill.",
            ),
        ]
        notes = [Note(id=1, content="Pay Comcast", reminder_date=dt.date(2026, 2, 20))]

        events = calendar_events(
            documents, notes, dt.date(2026, 2, 1), dt.date(2026, 2, 28)
        )
        assert [(e.id, e.type, e.title) for e in events] == [
            (3, CalendarEventType.BILL, "Comcast - $89.99"),
            (1 + REMINDER_ID_OFFSET, CalendarEventType.REMINDER, "Pay Comcast"),
        ]
        assert events[0].details == "Internet bill."

    def test_ordered_by_date(self, make_document):
        documents = [make_document(id=1, due_date=dt.date(2026, 3, 5))]
        notes = [Note(id=1, content="Earlier", reminder_date=dt.date(2026, 3, 1))]
        events = calendar_events(documents, notes, DEFAULT_CALENDAR_START, DEFAULT_CALENDAR_END)
        assert [e.date for e in events] == [dt.date(2026, 3, 1), dt.date(2026, 3, 5)]

    def test_bounds_are_inclusive(self, make_document):
        documents = [
            make_document(id=1, due_date=dt.date(2026, 2, 1)),
            make_document(id=2, due_date=dt.date(2026, 2, 28)),
            make_document(id=3, due_date=dt.date(2026, 3, 1)),
        ]
        events = calendar_events(documents, [], dt.date(2026, 2, 1), dt.date(2026, 2, 28))
        assert [e.id for e in events] == [1, 2]

    def test_long_reminder_title_is_truncated(self):
        content = "x" * 60
        notes = [Note(id=2, content=content, reminder_date=dt.date(2026, 1, 1))]
        [event] = calendar_events([], notes, DEFAULT_CALENDAR_START, DEFAULT_CALENDAR_END)
        assert event.title == "x" * 50 + "..."
        assert event.details == content

    def test_items_without_dates_are_skipped(self, make_document):
        events = calendar_events(
            [make_document(id=1)],
            [Note(id=1, content="No reminder")],
            DEFAULT_CALENDAR_START,
            DEFAULT_CALENDAR_END,
        )
        assert events == []


class TestResolveMonth:

    def test_defaults_to_today(self):
        assert resolve_month(today=TODAY) == (2025, 1)

    def test_numeric_strings(self):
        assert resolve_month("2024", "2", today=TODAY) == (2024, 2)

    @pytest.mark.parametrize("month", ["13", 0, "abc", True])
    def test_invalid_month_falls_back_alone(self, month):
        assert resolve_month(2024, month, today=TODAY) == (2024, 1)

    def test_invalid_year_falls_back_alone(self):
        assert resolve_month("later", 6, today=TODAY) == (2025, 6)


class TestResolveCalendarRange:

    def test_defaults(self):
        assert resolve_calendar_range() == (dt.date(2020, 1, 1), dt.date(2030, 12, 31))

    def test_parses_iso_dates(self):
        assert resolve_calendar_range("2026-02-01", "2026-02-28") == (
            dt.date(2026, 2, 1),
            dt.date(2026, 2, 28),
        )

    def test_invalid_bound_uses_default(self):
        start, end = resolve_calendar_range("2026-02-30", dt.date(2026, 3, 1))
        assert start == DEFAULT_CALENDAR_START
        assert end == dt.date(2026, 3, 1)


class TestAggregationEngine:
    """The engine reads fresh listings on every call."""

    def test_reads_current_store(self):
        documents = InMemoryDocumentStorage()
        notes = InMemoryNoteStorage()
        engine = AggregationEngine(documents, notes)

        assert run_async(engine.get_stats()).total_documents == 0

        run_async(documents.save_document(NewDocument(
            file_url="/uploads/1-1.pdf",
            merchant="Comcast",
            amount=Decimal("89.99"),
            category=Category.HOME,
            transaction_type=TransactionType.EXPENSE,
            date=dt.date(2026, 2, 1),
            due_date=dt.date(2026, 2, 20),
            file_size=2048,
        )))
        run_async(notes.create_note(NoteCreate(content="Call", reminder_date="2026-02-10")))

        stats = run_async(engine.get_stats())
        assert stats.total_documents == 1
        assert stats.total_expenses == Decimal("89.99")
        assert stats.top_category == "Home"

        [row] = run_async(engine.get_storage_by_category())
        assert row.total_bytes == 2048

        flow = run_async(engine.get_monthly_flow(2026, 2))
        assert flow[0].expenses == Decimal("89.99")

        events = run_async(engine.get_calendar_events(dt.date(2026, 2, 1), dt.date(2026, 2, 28)))
        assert [e.type for e in events] == [CalendarEventType.REMINDER, CalendarEventType.BILL]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
