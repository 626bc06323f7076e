"""
Core Data Models for Drawer

These models define the schemas for everything the warehouse stores.
They are designed to:
1. Enforce the document invariants at runtime
2. Absorb untrusted model output without failing a whole record
3. Be serializable for storage and logging

DESIGN DECISION: There are two very different kinds of model here.

- ExtractedDocument is LENIENT. It receives whatever JSON the model produced
  and coerces every field independently to a safe value. One bad field never
  sinks the record.
- NewDocument / Document / NoteCreate are STRICT. By the time data reaches
  them it has been normalized, so a violation is a programming error and is
  raised loudly.
"""

import datetime as dt
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def utc_now() -> dt.datetime:
    """Current time as an aware UTC datetime."""
    return dt.datetime.now(dt.timezone.utc)


def utc_today() -> dt.date:
    """Current calendar date in UTC."""
    return utc_now().date()


def to_cents(value: Decimal) -> Decimal:
    """Quantize a money value to two decimal places (half-up)."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_iso_date(value: Any) -> Optional[dt.date]:
    """
    Parse a strict YYYY-MM-DD value.

    Returns None for anything that is not a real calendar date in that
    exact shape. Date objects pass through unchanged.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not DATE_PATTERN.match(value):
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        return None


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Document categories.

    DESIGN DECISION: A closed set rather than free text keeps the dashboard
    rollups and the assistant's category list stable.
    """
    FINANCE = "Finance"
    HEALTH = "Health"
    PERSONAL = "Personal"
    HOME = "Home"
    IDENTITY_LEGAL = "Identity/Legal"
    CAREER_SCHOOL = "Career/School"


class TransactionType(str, Enum):
    """
    How a document affects the user's money.

    RECORD documents (W-2, ID, lab results...) are informational and are
    excluded from every financial total.
    """
    EXPENSE = "expense"
    INCOME = "income"
    RECORD = "record"


class ChatRole(str, Enum):
    """Author of a chat message."""
    USER = "user"
    ASSISTANT = "assistant"


CATEGORIES = tuple(category.value for category in Category)
TRANSACTION_TYPES = tuple(kind.value for kind in TransactionType)


# =============================================================================
# EXTRACTION - lenient, field-by-field coercion of model output
# =============================================================================

def _mark_defaulted(info: ValidationInfo) -> None:
    """Remember that a field was replaced by its fallback value."""
    if isinstance(info.context, dict):
        info.context.setdefault("defaulted", []).append(info.field_name)


class ExtractedDocument(BaseModel):
    """
    Facts the model extracted from one document.

    CRITICAL: This model never rejects input. Every field falls back to a
    safe default, and the fallbacks are recorded in the validation context
    under "defaulted" so callers can log them.

    Pass {"today": date} in the validation context to pin the fallback date.
    """
    model_config = ConfigDict(validate_default=True)

    merchant: str = None
    amount: Decimal = None
    category: Category = None
    transaction_type: TransactionType = None
    date: dt.date = None
    due_date: Optional[dt.date] = None
    summary: str = None
    raw_text: str = None

    @field_validator("merchant", mode="before")
    @classmethod
    def coerce_merchant(cls, v: Any, info: ValidationInfo) -> str:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str) and v.strip():
            return v.strip()
        _mark_defaulted(info)
        return "Unknown"

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any, info: ValidationInfo) -> Decimal:
        # Mirrors plain numeric coercion: missing and blank mean zero
        if v is None or (isinstance(v, str) and not v.strip()):
            return ZERO
        try:
            if isinstance(v, bool):
                amount = Decimal(int(v))
            elif isinstance(v, (int, float, Decimal)):
                amount = Decimal(str(v))
            elif isinstance(v, str):
                amount = Decimal(v.strip())
            else:
                raise TypeError(f"not a number: {type(v).__name__}")
        except (InvalidOperation, TypeError, ValueError):
            _mark_defaulted(info)
            return ZERO

        if not amount.is_finite() or amount < 0:
            _mark_defaulted(info)
            return ZERO
        try:
            return to_cents(amount)
        except InvalidOperation:
            # Too many digits to hold cents at the decimal context precision
            _mark_defaulted(info)
            return ZERO

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any, info: ValidationInfo) -> Category:
        if isinstance(v, str) and v.strip() in CATEGORIES:
            return Category(v.strip())
        _mark_defaulted(info)
        return Category.FINANCE

    @field_validator("transaction_type", mode="before")
    @classmethod
    def coerce_transaction_type(cls, v: Any, info: ValidationInfo) -> TransactionType:
        if isinstance(v, str) and v.strip() in TRANSACTION_TYPES:
            return TransactionType(v.strip())
        _mark_defaulted(info)
        return TransactionType.RECORD

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any, info: ValidationInfo) -> dt.date:
        parsed = parse_iso_date(v)
        if parsed is not None:
            return parsed
        _mark_defaulted(info)
        today = info.context.get("today") if isinstance(info.context, dict) else None
        return today or utc_today()

    @field_validator("due_date", mode="before")
    @classmethod
    def coerce_due_date(cls, v: Any, info: ValidationInfo) -> Optional[dt.date]:
        if v is None or v == "":
            return None
        parsed = parse_iso_date(v)
        if parsed is None:
            _mark_defaulted(info)
        return parsed

    @field_validator("summary", "raw_text", mode="before")
    @classmethod
    def coerce_text(cls, v: Any, info: ValidationInfo) -> str:
        if v is None:
            return ""
        if isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        _mark_defaulted(info)
        return ""

    @model_validator(mode="after")
    def zero_record_amount(self, info: ValidationInfo) -> "ExtractedDocument":
        """Records never carry money, so they cannot be double-counted."""
        if self.transaction_type == TransactionType.RECORD and self.amount != 0:
            self.amount = ZERO
            if isinstance(info.context, dict):
                info.context.setdefault("defaulted", []).append("amount")
        return self


# =============================================================================
# STORED DOCUMENTS - strict
# =============================================================================

class NewDocument(BaseModel):
    """
    A normalized document ready to be persisted.

    The store assigns id and created_at, producing a Document.
    """

    file_url: str = Field(
        ...,
        min_length=1,
        description="Public path of the stored file (e.g. /uploads/x.pdf)"
    )
    merchant: str = Field(
        ...,
        min_length=1,
        description="Counterparty display name"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Primary monetary value"
    )
    category: Category
    transaction_type: TransactionType = TransactionType.RECORD
    date: dt.date = Field(
        ...,
        description="Document date"
    )
    due_date: Optional[dt.date] = Field(
        default=None,
        description="Payment due date for bills"
    )
    summary: str = ""
    insight: str = ""
    raw_text: Optional[str] = Field(
        default=None,
        description="Full transcription of the document"
    )
    file_size: int = Field(
        default=0,
        ge=0,
        description="Stored file size in bytes"
    )
    file_path: Optional[str] = None

    @model_validator(mode="after")
    def validate_record_amount(self) -> "NewDocument":
        """Records are informational and must not carry an amount."""
        if self.transaction_type == TransactionType.RECORD and self.amount != 0:
            raise ValueError("Record documents must have a zero amount")
        return self


class Document(NewDocument):
    """A persisted document."""

    id: int = Field(
        ...,
        ge=1,
        description="Store-assigned id, increasing with creation order"
    )
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        description="Insertion timestamp"
    )


# =============================================================================
# NOTES
# =============================================================================

class _NoteFields(BaseModel):
    """Shared reminder-field handling for note payloads."""

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("reminder_date", "reminder_time", mode="before", check_fields=False)
    @classmethod
    def blank_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class NoteCreate(_NoteFields):
    """Payload for a new note or reminder."""

    content: str = Field(
        ...,
        min_length=1,
        description="Note text"
    )
    reminder_date: Optional[dt.date] = None
    reminder_time: Optional[str] = Field(
        default=None,
        pattern=TIME_PATTERN,
        description="Reminder time as HH:MM"
    )
    is_completed: bool = False


class NoteUpdate(_NoteFields):
    """
    Partial update for a note.

    Only fields that were explicitly set are applied, so an explicit None
    clears a reminder while an omitted field leaves it untouched.
    """

    content: Optional[str] = Field(default=None, min_length=1)
    reminder_date: Optional[dt.date] = None
    reminder_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    is_completed: Optional[bool] = None

    @field_validator("content")
    @classmethod
    def content_not_null(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            raise ValueError("Note content cannot be cleared")
        return v

    @field_validator("is_completed")
    @classmethod
    def completion_not_null(cls, v: Optional[bool]) -> Optional[bool]:
        if v is None:
            raise ValueError("is_completed must be true or false")
        return v

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set."""
        return self.model_dump(exclude_unset=True)


class Note(NoteCreate):
    """A persisted note."""

    id: int = Field(..., ge=1)
    created_at: dt.datetime = Field(default_factory=utc_now)


# =============================================================================
# CHAT
# =============================================================================

class NewChatMessage(BaseModel):
    """A chat log entry before it is stored."""

    role: ChatRole
    content: str
    attachment_url: Optional[str] = None


class ChatMessage(NewChatMessage):
    """A stored chat log entry. The log is append-only."""

    id: int = Field(..., ge=1)
    created_at: dt.datetime = Field(default_factory=utc_now)
