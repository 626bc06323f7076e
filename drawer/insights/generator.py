"""
Insight Generator

Produces the one-sentence "insight" stored with every document: how the
new amount compares with the merchant's previous document, or how close
a bill is to its due date.

This is DETERMINISTIC - no model involvement. The only outside input is
the current time, which callers may pin for reproducibility.

DESIGN DECISION: The percent-change comparison is asymmetric. Any increase
is reported, but a decrease is only reported once it is below -5%. Small
savings are deliberately not announced.
"""

import datetime as dt
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from drawer.models.document import TransactionType, to_cents, utc_now

Number = Union[Decimal, int, float, str]

DECREASE_THRESHOLD = Decimal("-5")
DUE_SOON_DAYS = 7
SECONDS_PER_DAY = 86400


def format_money(amount: Number) -> str:
    """Render a dollar amount with exactly two decimals, e.g. $1234.50."""
    return f"${to_cents(Decimal(str(amount)))}"


def _format_percent(diff: Decimal) -> str:
    """Whole-number magnitude of a percentage."""
    return str(abs(diff).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent_change(current: Decimal, previous: Decimal) -> Decimal:
    return (current - previous) / previous * 100


def days_until(due_date: dt.date, now: Optional[dt.datetime] = None) -> int:
    """
    Whole days from now until midnight UTC of the due date, rounded up.

    A bill due later today yields 0; one due yesterday yields -1.
    """
    now = now or utc_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    due = dt.datetime(due_date.year, due_date.month, due_date.day, tzinfo=dt.timezone.utc)
    # ceil of a negative fraction can produce -0.0; int() normalizes it
    return int(math.ceil((due - now).total_seconds() / SECONDS_PER_DAY))


def generate_insight(
    current_amount: Number,
    previous_amount: Optional[Number],
    due_date: Optional[dt.date],
    category: str,
    transaction_type: Union[TransactionType, str],
    *,
    now: Optional[dt.datetime] = None,
) -> str:
    """
    Build the insight sentence for a newly extracted document.

    Decision order (first match wins):
    1. Records are simply filed
    2. Income is compared with the previous deposit
    3. Expenses are compared with the previous purchase
    4. Expenses with a due date get a due-soon or overdue notice
    5. Otherwise a plain "saved" line
    """
    kind = TransactionType(transaction_type)
    category = getattr(category, "value", category)
    current = Decimal(str(current_amount))
    previous = Decimal(str(previous_amount)) if previous_amount is not None else None

    if kind == TransactionType.RECORD:
        return f"Filed as a record in {category}."

    if kind == TransactionType.INCOME:
        if previous is not None and previous > 0:
            diff = _percent_change(current, previous)
            if diff > 0:
                return (
                    f"Income is {_format_percent(diff)}% higher than your last "
                    f"deposit ({format_money(previous)})."
                )
            elif diff < DECREASE_THRESHOLD:
                return (
                    f"Income is {_format_percent(diff)}% lower than your last "
                    f"deposit ({format_money(previous)})."
                )
        return f"Income of {format_money(current)} recorded in {category}."

    if previous is not None and previous > 0:
        diff = _percent_change(current, previous)
        if diff > 0:
            return (
                f"Alert: This is {_format_percent(diff)}% more expensive than your "
                f"last similar purchase ({format_money(previous)})."
            )
        elif diff < DECREASE_THRESHOLD:
            return (
                f"Great news! This is {_format_percent(diff)}% less than your "
                f"last similar purchase ({format_money(previous)})."
            )

    if due_date:
        days = days_until(due_date, now)
        if 0 <= days <= DUE_SOON_DAYS:
            return f"Reminder: Payment due on {due_date.isoformat()} ({days} days away)."
        if days < 0:
            return (
                f"Alert: This payment was due on {due_date.isoformat()} "
                f"({abs(days)} days overdue)."
            )

    return f"Expense of {format_money(current)} saved in {category}."
