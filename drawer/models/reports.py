"""
Report Models

Read-side shapes produced by the aggregation engine. None of these are
stored - they are recomputed from the current documents and notes on
every request.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CalendarEventType(str, Enum):
    """Source of a calendar entry."""
    BILL = "bill"          # document due date
    REMINDER = "reminder"  # note reminder date


class CalendarEvent(BaseModel):
    """
    One entry of the unified calendar feed.

    Reminder ids are offset so they never collide with document ids
    in the same result set.
    """

    id: int
    title: str
    date: dt.date
    type: CalendarEventType
    details: Optional[str] = None


class DailyFlow(BaseModel):
    """Money in and out on a single day."""

    date: dt.date
    expenses: Decimal = Decimal("0.00")
    income: Decimal = Decimal("0.00")


class CategoryStorage(BaseModel):
    """File storage used by one category."""

    category: str
    count: int = Field(ge=0)
    total_bytes: int = Field(ge=0)


class DashboardStats(BaseModel):
    """Headline numbers for the dashboard."""

    total_expenses: Decimal = Decimal("0.00")
    total_income: Decimal = Decimal("0.00")
    total_documents: int = 0
    total_storage_bytes: int = 0
    top_category: Optional[str] = Field(
        default=None,
        description="Category using the most file storage, None when empty"
    )


class FinancialSummary(BaseModel):
    """
    Totals and inventories handed to the assistant.

    Records are counted but never contribute to any amount.
    """

    total_expenses: Decimal
    total_income: Decimal
    expense_count: int
    income_count: int
    record_count: int
    document_count: int
    note_count: int
    categories: list[str] = Field(default_factory=list)
    merchants: list[str] = Field(default_factory=list)

    @property
    def net(self) -> Decimal:
        """Income minus expenses."""
        return self.total_income - self.total_expenses
