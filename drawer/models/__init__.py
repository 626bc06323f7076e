"""
Data Models Package

This package contains all Pydantic models used in Drawer.
All data flowing through the system must conform to these schemas.
"""

from drawer.models.document import (
    CATEGORIES,
    TRANSACTION_TYPES,
    Category,
    ChatMessage,
    ChatRole,
    Document,
    ExtractedDocument,
    NewChatMessage,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
    TransactionType,
    parse_iso_date,
    to_cents,
    utc_now,
    utc_today,
)
from drawer.models.reports import (
    CalendarEvent,
    CalendarEventType,
    CategoryStorage,
    DailyFlow,
    DashboardStats,
    FinancialSummary,
)

__all__ = [
    # Document models
    "CATEGORIES",
    "TRANSACTION_TYPES",
    "Category",
    "ChatMessage",
    "ChatRole",
    "Document",
    "ExtractedDocument",
    "NewChatMessage",
    "NewDocument",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "TransactionType",
    "parse_iso_date",
    "to_cents",
    "utc_now",
    "utc_today",
    # Report models
    "CalendarEvent",
    "CalendarEventType",
    "CategoryStorage",
    "DailyFlow",
    "DashboardStats",
    "FinancialSummary",
]
