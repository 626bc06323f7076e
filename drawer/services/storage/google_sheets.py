"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a persistent backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions; ids are max(existing) + 1, so concurrent writers
  from different processes could collide
- Limited query capabilities (we filter and sort in Python)

One worksheet per entity. Rows are serialized by the column lists below,
always written with value_input_option="RAW" so Sheets never reinterprets
dates or amounts.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional, TypeVar

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from drawer.audit import get_logger
from drawer.config import GoogleSheetsSettings, get_settings
from drawer.models.document import (
    Category,
    ChatMessage,
    ChatRole,
    Document,
    NewChatMessage,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
    TransactionType,
    utc_now,
)
from drawer.services.storage.interface import (
    ChatStorageInterface,
    ConnectionError,
    DocumentStorageInterface,
    NotFoundError,
    NoteStorageInterface,
    StorageError,
)

log = get_logger(__name__)

T = TypeVar("T")

# Google Sheets rejects cells longer than this
CELL_CHARACTER_LIMIT = 50000


DOCUMENT_COLUMNS = [
    "id",
    "created_at",
    "merchant",
    "amount",
    "category",
    "transaction_type",
    "date",
    "due_date",
    "summary",
    "insight",
    "raw_text",
    "file_url",
    "file_path",
    "file_size",
]

NOTE_COLUMNS = [
    "id",
    "created_at",
    "content",
    "reminder_date",
    "reminder_time",
    "is_completed",
]

CHAT_COLUMNS = [
    "id",
    "created_at",
    "role",
    "content",
    "attachment_url",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Cell value, tolerating short rows and empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _cell_text(value: str, entity: str, row_id: int, field: str) -> str:
    """Text clipped to what one cell can hold; clipping is logged."""
    if len(value) <= CELL_CHARACTER_LIMIT:
        return value
    log.warning(
        "cell_truncated",
        entity=entity,
        row_id=row_id,
        field=field,
        length=len(value),
        limit=CELL_CHARACTER_LIMIT,
    )
    return value[:CELL_CHARACTER_LIMIT]


def _optional_date(value: str) -> Optional[dt.date]:
    return dt.date.fromisoformat(value) if value else None


def _row_id(row: list) -> Optional[int]:
    try:
        return int(_safe_get(row, 0))
    except ValueError:
        return None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup. Only the connection step
    is retried; individual reads and writes fail immediately.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
        return sheet

    def get_documents_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.documents_sheet_name, DOCUMENT_COLUMNS)

    def get_notes_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.notes_sheet_name, NOTE_COLUMNS)

    def get_chat_sheet(self) -> gspread.Worksheet:
        # The conversation log grows fastest
        return self.get_worksheet(self._settings.chat_sheet_name, CHAT_COLUMNS, rows=5000)


class _SheetRows:
    """Row helpers shared by the entity stores."""

    def _parse_rows(self, rows: list[list], parse: Callable[[list], T], entity: str) -> list[T]:
        """Parse data rows, skipping blank ones and logging malformed ones."""
        parsed = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                parsed.append(parse(row))
            except (ValueError, InvalidOperation, ValidationError) as e:
                log.warning("sheet_row_skipped", entity=entity, row_id=row[0], error=str(e))
        return parsed

    def _next_id(self, rows: list[list]) -> int:
        ids = [row_id for row_id in (_row_id(row) for row in rows) if row_id is not None]
        return max(ids, default=0) + 1

    def _find_row_index(self, all_rows: list[list], entity_id: int) -> Optional[int]:
        """1-based sheet row index for an id; row 1 is the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if _row_id(row) == entity_id:
                return idx
        return None


class GoogleSheetsDocumentStorage(_SheetRows, DocumentStorageInterface):
    """Documents stored one per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, document: Document) -> list:
        """Convert a Document to a spreadsheet row."""
        return [
            str(document.id),
            document.created_at.isoformat(),
            document.merchant,
            str(document.amount),
            document.category.value,
            document.transaction_type.value,
            document.date.isoformat(),
            document.due_date.isoformat() if document.due_date else "",
            document.summary,
            document.insight,
            _cell_text(document.raw_text or "", "document", document.id, "raw_text"),
            document.file_url,
            document.file_path or "",
            str(document.file_size),
        ]

    def _row_to_document(self, row: list) -> Document:
        """Convert a spreadsheet row to a Document."""
        return Document(
            id=int(_safe_get(row, 0)),
            created_at=dt.datetime.fromisoformat(_safe_get(row, 1)),
            merchant=_safe_get(row, 2),
            amount=Decimal(_safe_get(row, 3, "0")),
            category=Category(_safe_get(row, 4)),
            transaction_type=TransactionType(_safe_get(row, 5)),
            date=dt.date.fromisoformat(_safe_get(row, 6)),
            due_date=_optional_date(_safe_get(row, 7)),
            summary=_safe_get(row, 8),
            insight=_safe_get(row, 9),
            raw_text=_safe_get(row, 10) or None,
            file_url=_safe_get(row, 11),
            file_path=_safe_get(row, 12) or None,
            file_size=int(_safe_get(row, 13, "0")),
        )

    async def save_document(self, document: NewDocument) -> Document:
        try:
            sheet = self._client.get_documents_sheet()
            rows = sheet.get_all_values()[1:]
            stored = Document(
                id=self._next_id(rows),
                created_at=utc_now(),
                **document.model_dump(),
            )
            sheet.append_row(self._document_to_row(stored), value_input_option="RAW")
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save document: {e}")

    async def get_document(self, document_id: int) -> Optional[Document]:
        for document in await self.list_documents():
            if document.id == document_id:
                return document
        return None

    async def list_documents(self) -> list[Document]:
        try:
            rows = self._client.get_documents_sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list documents: {e}")

        documents = self._parse_rows(rows, self._row_to_document, "document")
        documents.sort(key=lambda d: (d.created_at, d.id), reverse=True)
        return documents

    async def delete_document(self, document_id: int) -> bool:
        try:
            sheet = self._client.get_documents_sheet()
            idx = self._find_row_index(sheet.get_all_values(), document_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete document: {e}")

    async def get_last_document_by_merchant(self, merchant: str) -> Optional[Document]:
        for document in await self.list_documents():
            if document.merchant == merchant:
                return document
        return None


class GoogleSheetsNoteStorage(_SheetRows, NoteStorageInterface):
    """Notes stored one per row; updates rewrite the row in place."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _note_to_row(self, note: Note) -> list:
        return [
            str(note.id),
            note.created_at.isoformat(),
            note.content,
            note.reminder_date.isoformat() if note.reminder_date else "",
            note.reminder_time or "",
            str(note.is_completed),
        ]

    def _row_to_note(self, row: list) -> Note:
        return Note(
            id=int(_safe_get(row, 0)),
            created_at=dt.datetime.fromisoformat(_safe_get(row, 1)),
            content=_safe_get(row, 2),
            reminder_date=_optional_date(_safe_get(row, 3)),
            reminder_time=_safe_get(row, 4) or None,
            is_completed=_safe_get(row, 5).lower() == "true",
        )

    async def create_note(self, note: NoteCreate) -> Note:
        try:
            sheet = self._client.get_notes_sheet()
            rows = sheet.get_all_values()[1:]
            stored = Note(id=self._next_id(rows), created_at=utc_now(), **note.model_dump())
            sheet.append_row(self._note_to_row(stored), value_input_option="RAW")
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save note: {e}")

    async def get_note(self, note_id: int) -> Optional[Note]:
        for note in await self.list_notes():
            if note.id == note_id:
                return note
        return None

    async def list_notes(self) -> list[Note]:
        try:
            rows = self._client.get_notes_sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list notes: {e}")

        notes = self._parse_rows(rows, self._row_to_note, "note")
        notes.sort(key=lambda n: (n.created_at, n.id), reverse=True)
        return notes

    async def update_note(self, note_id: int, updates: NoteUpdate) -> Note:
        try:
            sheet = self._client.get_notes_sheet()
            all_rows = sheet.get_all_values()
            idx = self._find_row_index(all_rows, note_id)
            if idx is None:
                raise NotFoundError(f"Note not found: {note_id}")

            current = self._row_to_note(all_rows[idx - 1])
            updated = Note.model_validate({**current.model_dump(), **updates.changes()})
            for col_idx, value in enumerate(self._note_to_row(updated), start=1):
                sheet.update_cell(idx, col_idx, value)
            return updated
        except (StorageError, ValidationError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to update note: {e}")

    async def delete_note(self, note_id: int) -> bool:
        try:
            sheet = self._client.get_notes_sheet()
            idx = self._find_row_index(sheet.get_all_values(), note_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete note: {e}")


class GoogleSheetsChatStorage(_SheetRows, ChatStorageInterface):
    """
    Conversation log stored one message per row.

    Append-only; clearing deletes every data row and keeps the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _message_to_row(self, message: ChatMessage) -> list:
        return [
            str(message.id),
            message.created_at.isoformat(),
            message.role.value,
            _cell_text(message.content, "chat_message", message.id, "content"),
            message.attachment_url or "",
        ]

    def _row_to_message(self, row: list) -> ChatMessage:
        return ChatMessage(
            id=int(_safe_get(row, 0)),
            created_at=dt.datetime.fromisoformat(_safe_get(row, 1)),
            role=ChatRole(_safe_get(row, 2)),
            content=_safe_get(row, 3),
            attachment_url=_safe_get(row, 4) or None,
        )

    async def append_message(self, message: NewChatMessage) -> ChatMessage:
        try:
            sheet = self._client.get_chat_sheet()
            rows = sheet.get_all_values()[1:]
            stored = ChatMessage(
                id=self._next_id(rows),
                created_at=utc_now(),
                **message.model_dump(),
            )
            sheet.append_row(self._message_to_row(stored), value_input_option="RAW")
            return stored
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save chat message: {e}")

    async def list_messages(self) -> list[ChatMessage]:
        try:
            rows = self._client.get_chat_sheet().get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list chat messages: {e}")

        messages = self._parse_rows(rows, self._row_to_message, "chat_message")
        messages.sort(key=lambda m: (m.created_at, m.id))
        return messages

    async def clear_messages(self) -> int:
        try:
            sheet = self._client.get_chat_sheet()
            data_rows = len(sheet.get_all_values()) - 1
            if data_rows > 0:
                sheet.delete_rows(2, data_rows + 1)
            return max(data_rows, 0)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear chat messages: {e}")
