"""
Aggregation Engine

DESIGN DECISION: Aggregations are DETERMINISTIC and always recomputed.
Every dashboard number comes from a full listing of what is actually
stored - nothing is cached, nothing is estimated, and the assistant
never computes these figures itself.

The pure functions take plain sequences so they can be tested without
a store. AggregationEngine is the thin bridge that reads the store and
hands the listings to them.

RULES:
- Only expense and income amounts are summed; records never are
- Storage bytes count every document, records included
- Ties are resolved by first-encountered order (store order)
"""

import calendar
import datetime as dt
from decimal import Decimal
from typing import Any, Iterable, Optional, Sequence

from drawer.insights.generator import format_money
from drawer.models.document import (
    ZERO,
    Document,
    Note,
    TransactionType,
    parse_iso_date,
    utc_today,
)
from drawer.models.reports import (
    CalendarEvent,
    CalendarEventType,
    CategoryStorage,
    DailyFlow,
    DashboardStats,
)
from drawer.services.storage import DocumentStorageInterface, NoteStorageInterface


DEFAULT_CALENDAR_START = dt.date(2020, 1, 1)
DEFAULT_CALENDAR_END = dt.date(2030, 12, 31)

# Keeps reminder ids clear of document ids in the same feed
REMINDER_ID_OFFSET = 100000
REMINDER_TITLE_LIMIT = 50


# =============================================================================
# PURE AGGREGATIONS
# =============================================================================

def _sum_amounts(documents: Iterable[Document], kind: TransactionType) -> Decimal:
    return sum(
        (doc.amount for doc in documents if doc.transaction_type == kind),
        ZERO,
    )


def _bytes_by_category(documents: Iterable[Document]) -> dict[str, list[int]]:
    """category -> [count, total_bytes], in first-encountered order."""
    groups: dict[str, list[int]] = {}
    for doc in documents:
        entry = groups.setdefault(doc.category.value, [0, 0])
        entry[0] += 1
        entry[1] += doc.file_size or 0
    return groups


def compute_stats(documents: Sequence[Document]) -> DashboardStats:
    """Headline totals for the dashboard."""
    groups = _bytes_by_category(documents)

    top_category = None
    top_bytes = -1
    for category, (_, total_bytes) in groups.items():
        # Strict comparison: the first category wins a tie
        if total_bytes > top_bytes:
            top_category, top_bytes = category, total_bytes

    return DashboardStats(
        total_expenses=_sum_amounts(documents, TransactionType.EXPENSE),
        total_income=_sum_amounts(documents, TransactionType.INCOME),
        total_documents=len(documents),
        total_storage_bytes=sum(doc.file_size or 0 for doc in documents),
        top_category=top_category,
    )


def storage_by_category(documents: Sequence[Document]) -> list[CategoryStorage]:
    """File storage per category, largest first."""
    rows = [
        CategoryStorage(category=category, count=count, total_bytes=total_bytes)
        for category, (count, total_bytes) in _bytes_by_category(documents).items()
    ]
    # sorted() is stable, so equal totals keep first-encountered order
    return sorted(rows, key=lambda row: row.total_bytes, reverse=True)


def monthly_flow(documents: Sequence[Document], year: int, month: int) -> list[DailyFlow]:
    """
    Daily expenses and income for one month.

    Every day of the month is present, zeroed when nothing happened.
    """
    last_day = calendar.monthrange(year, month)[1]
    first = dt.date(year, month, 1)
    last = dt.date(year, month, last_day)

    days: dict[dt.date, DailyFlow] = {
        first + dt.timedelta(days=offset): DailyFlow(date=first + dt.timedelta(days=offset))
        for offset in range(last_day)
    }

    for doc in documents:
        if not first <= doc.date <= last:
            continue
        bucket = days.setdefault(doc.date, DailyFlow(date=doc.date))
        if doc.transaction_type == TransactionType.EXPENSE:
            bucket.expenses += doc.amount
        elif doc.transaction_type == TransactionType.INCOME:
            bucket.income += doc.amount

    return sorted(days.values(), key=lambda flow: flow.date)


def _reminder_title(content: str) -> str:
    if len(content) > REMINDER_TITLE_LIMIT:
        return content[:REMINDER_TITLE_LIMIT] + "..."
    return content


def calendar_events(
    documents: Sequence[Document],
    notes: Sequence[Note],
    start: dt.date,
    end: dt.date,
) -> list[CalendarEvent]:
    """
    Bills (document due dates) and reminders (note reminder dates) in
    [start, end], ordered by date.

    Bills are collected before reminders and the sort is stable, so a
    bill precedes a reminder on the same day.
    """
    events: list[CalendarEvent] = []

    for doc in documents:
        if doc.due_date and start <= doc.due_date <= end:
            events.append(CalendarEvent(
                id=doc.id,
                title=f"{doc.merchant} - {format_money(doc.amount)}",
                date=doc.due_date,
                type=CalendarEventType.BILL,
                details=doc.summary,
            ))

    for note in notes:
        if note.reminder_date and start <= note.reminder_date <= end:
            events.append(CalendarEvent(
                id=note.id + REMINDER_ID_OFFSET,
                title=_reminder_title(note.content),
                date=note.reminder_date,
                type=CalendarEventType.REMINDER,
                details=note.content,
            ))

    return sorted(events, key=lambda event: event.date)


# =============================================================================
# REQUEST PARAMETER RESOLUTION
# =============================================================================

def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def resolve_month(
    year: Any = None,
    month: Any = None,
    today: Optional[dt.date] = None,
) -> tuple[int, int]:
    """
    Year and month for a monthly flow query.

    Each value falls back to the current one independently when it is
    missing, non-numeric or out of range (month 1..12, year 1..9999).
    """
    today = today or utc_today()

    resolved_year = _as_int(year)
    if resolved_year is None or not dt.MINYEAR <= resolved_year <= dt.MAXYEAR:
        resolved_year = today.year

    resolved_month = _as_int(month)
    if resolved_month is None or not 1 <= resolved_month <= 12:
        resolved_month = today.month

    return resolved_year, resolved_month


def _as_date(value: Any) -> Optional[dt.date]:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return parse_iso_date(value)


def resolve_calendar_range(
    start: Any = None,
    end: Any = None,
    default_start: dt.date = DEFAULT_CALENDAR_START,
    default_end: dt.date = DEFAULT_CALENDAR_END,
) -> tuple[dt.date, dt.date]:
    """Inclusive calendar bounds; missing or invalid bounds use the defaults."""
    return (
        _as_date(start) or default_start,
        _as_date(end) or default_end,
    )


# =============================================================================
# STORE-BACKED ENGINE
# =============================================================================

class AggregationEngine:
    """
    Runs the aggregations against the current store contents.

    GUARANTEES:
    - Every call reads fresh listings; nothing is cached
    - Only stored data is used; nothing is estimated
    """

    def __init__(
        self,
        document_storage: DocumentStorageInterface,
        note_storage: NoteStorageInterface,
    ):
        self._documents = document_storage
        self._notes = note_storage

    async def get_stats(self) -> DashboardStats:
        return compute_stats(await self._documents.list_documents())

    async def get_storage_by_category(self) -> list[CategoryStorage]:
        return storage_by_category(await self._documents.list_documents())

    async def get_monthly_flow(self, year: int, month: int) -> list[DailyFlow]:
        return monthly_flow(await self._documents.list_documents(), year, month)

    async def get_calendar_events(self, start: dt.date, end: dt.date) -> list[CalendarEvent]:
        documents = await self._documents.list_documents()
        notes = await self._notes.list_notes()
        return calendar_events(documents, notes, start, end)
