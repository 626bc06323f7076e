"""
Main Orchestrator for Drawer

This module ties together all the components and defines the
end-to-end flows for:
1. Document Upload (file → store → extract → normalize → insight → save)
2. Notes (create / update / delete notes and reminders)
3. Reports (dashboard stats, storage, monthly flow, calendar)
4. Chat (message → context → model → route → respond)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing the model returns is stored without normalization
- Insights and aggregations are computed here, never by the model
- Every step is audited under one correlation id per request

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

import datetime as dt
import random
from typing import Any, Callable, NamedTuple, Optional, Union

from pydantic import BaseModel, ValidationError

from drawer.agents import ChatAgent, DocumentExtractionAgent, UpstreamModelError
from drawer.audit import AuditLogger, configure_logging, create_correlation_id, get_logger
from drawer.chat import (
    CreateNoteAction,
    SimulatedEventGenerator,
    file_error_message,
    interpret_reply,
    note_confirmation,
    upload_confirmation,
)
from drawer.config import AppSettings, get_settings
from drawer.extraction import ExtractionError
from drawer.insights import generate_insight
from drawer.models import (
    CalendarEvent,
    CategoryStorage,
    ChatMessage,
    ChatRole,
    DailyFlow,
    DashboardStats,
    Document,
    ExtractedDocument,
    NewChatMessage,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
    utc_now,
)
from drawer.queries import AggregationEngine, resolve_calendar_range, resolve_month
from drawer.rag import build_rag_context
from drawer.services.files import LocalFileStore, StoredFile, UploadRejectedError
from drawer.services.storage import (
    ChatStorageInterface,
    DocumentStorageInterface,
    GoogleSheetsChatStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStorage,
    GoogleSheetsNoteStorage,
    InMemoryChatStorage,
    InMemoryDocumentStorage,
    InMemoryNoteStorage,
    NotFoundError,
    NoteStorageInterface,
    StorageError,
    seed_stores,
)

log = get_logger(__name__)

Clock = Callable[[], dt.datetime]

# Failures of filing an attached file that become an apology in the chat
FILE_PROCESSING_ERRORS = (UpstreamModelError, ExtractionError, StorageError, ValidationError)


class ChatAttachment(BaseModel):
    """A file sent along with a chat message."""

    data: bytes
    filename: str
    mime_type: str


class ChatTurn(BaseModel):
    """Everything one chat exchange produced."""

    user_message: ChatMessage
    assistant_message: ChatMessage
    document: Optional[Document] = None
    note: Optional[Note] = None


class DocumentUploadFlow:
    """
    Orchestrates the document upload flow.

    Flow:
    1. Validate → type and size checked before anything is written
    2. Store → original saved under the upload directory
    3. Extract → model transcribes the file into JSON
    4. Normalize → every field coerced; defaults are audited
    5. History → previous amount for the same merchant
    6. Insight → deterministic one-liner
    7. Save → Document persisted with its file URL

    If extraction fails on the upload path the stored file is removed
    and the error propagates to the caller.
    """

    def __init__(
        self,
        document_storage: DocumentStorageInterface,
        file_store: Optional[LocalFileStore] = None,
        extraction_agent: Optional[DocumentExtractionAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        self._document_storage = document_storage
        self._file_store = file_store or LocalFileStore()
        self._extraction_agent = extraction_agent
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock

    @property
    def file_store(self) -> LocalFileStore:
        return self._file_store

    @property
    def extraction_agent(self) -> DocumentExtractionAgent:
        # Created on first use so the app runs without Gemini until needed
        if self._extraction_agent is None:
            self._extraction_agent = DocumentExtractionAgent()
        return self._extraction_agent

    async def store_file(
        self,
        data: bytes,
        filename: str,
        mime_type: str,
        correlation_id,
    ) -> StoredFile:
        """
        Validate and save the original file.

        Raises:
            UploadRejectedError: Unsupported type, empty or too large
        """
        self._audit_logger.log_upload_received(
            filename=filename,
            mime_type=mime_type,
            file_size=len(data),
            correlation_id=correlation_id,
        )
        try:
            return await self._file_store.save(data, filename, mime_type)
        except UploadRejectedError as e:
            self._audit_logger.log_upload_rejected(
                filename=filename,
                reason=str(e),
                correlation_id=correlation_id,
            )
            raise

    async def file_document(
        self,
        stored: StoredFile,
        data: bytes,
        mime_type: str,
        correlation_id,
    ) -> tuple[Document, ExtractedDocument]:
        """
        Extract, enrich and persist a document for an already stored file.

        Raises:
            UpstreamModelError: The extraction model call failed
            ExtractionError: The model reply had no readable JSON
        """
        now = self._clock()

        try:
            extracted, defaulted = await self.extraction_agent.extract_with_report(
                data, mime_type, today=now.date()
            )
        except UpstreamModelError as e:
            self._audit_logger.log_upstream_error(
                operation="document_extraction",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except ExtractionError as e:
            self._audit_logger.log_extraction_failed(
                error_type=type(e).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        if defaulted:
            self._audit_logger.log_fields_defaulted(defaulted, correlation_id)

        previous = await self._document_storage.get_last_document_by_merchant(
            extracted.merchant
        )
        insight = generate_insight(
            extracted.amount,
            previous.amount if previous else None,
            extracted.due_date,
            extracted.category,
            extracted.transaction_type,
            now=now,
        )

        document = await self._document_storage.save_document(NewDocument(
            file_url=stored.url,
            merchant=extracted.merchant,
            amount=extracted.amount,
            category=extracted.category,
            transaction_type=extracted.transaction_type,
            date=extracted.date,
            due_date=extracted.due_date,
            summary=extracted.summary,
            insight=insight,
            raw_text=extracted.raw_text or None,
            file_size=stored.size,
            file_path=stored.path,
        ))

        self._audit_logger.log_document_saved(
            document_id=document.id,
            merchant=document.merchant,
            amount=str(document.amount),
            transaction_type=document.transaction_type.value,
            correlation_id=correlation_id,
        )
        return document, extracted

    async def upload(self, data: bytes, filename: str, mime_type: str) -> Document:
        """
        Full upload: store the file, then turn it into a Document.

        Raises:
            UploadRejectedError: The file was refused before storing
            UpstreamModelError, ExtractionError: Extraction failed
            StorageError: The document could not be saved

        Any failure after storing removes the stored file before
        propagating.
        """
        correlation_id = create_correlation_id()
        stored = await self.store_file(data, filename, mime_type, correlation_id)

        try:
            document, _ = await self.file_document(stored, data, mime_type, correlation_id)
        except Exception:
            # Nothing references the file unless the document was saved
            await self._file_store.delete(stored.url)
            raise
        return document

    async def list_documents(self) -> list[Document]:
        return await self._document_storage.list_documents()

    async def get_document(self, document_id: int) -> Document:
        document = await self._document_storage.get_document(document_id)
        if document is None:
            raise NotFoundError(f"Document not found: {document_id}")
        return document

    async def read_file(self, url: str) -> bytes:
        """Original bytes behind a /uploads/ URL."""
        return await self._file_store.read(url)

    async def delete_document(self, document_id: int) -> Document:
        """
        Delete a document and its stored file.

        Raises:
            NotFoundError: No such document
        """
        document = await self.get_document(document_id)
        await self._document_storage.delete_document(document_id)
        await self._file_store.delete(document.file_url)
        self._audit_logger.log_document_deleted(
            document_id=document_id,
            file_url=document.file_url,
        )
        return document


class NotesFlow:
    """
    Notes and reminders.

    Input is validated by NoteCreate / NoteUpdate; a pydantic
    ValidationError reaches the caller unchanged.
    """

    def __init__(
        self,
        note_storage: NoteStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._note_storage = note_storage
        self._audit_logger = audit_logger or AuditLogger()

    async def list_notes(self) -> list[Note]:
        return await self._note_storage.list_notes()

    async def get_note(self, note_id: int) -> Note:
        note = await self._note_storage.get_note(note_id)
        if note is None:
            raise NotFoundError(f"Note not found: {note_id}")
        return note

    async def create_note(self, payload: Union[NoteCreate, dict[str, Any]]) -> Note:
        if not isinstance(payload, NoteCreate):
            payload = NoteCreate.model_validate(payload)
        note = await self._note_storage.create_note(payload)
        self._audit_logger.log_note_created(
            note_id=note.id,
            source="user",
            has_reminder=note.reminder_date is not None,
        )
        return note

    async def update_note(
        self,
        note_id: int,
        updates: Union[NoteUpdate, dict[str, Any]],
    ) -> Note:
        if not isinstance(updates, NoteUpdate):
            updates = NoteUpdate.model_validate(updates)
        return await self._note_storage.update_note(note_id, updates)

    async def delete_note(self, note_id: int) -> None:
        if not await self._note_storage.delete_note(note_id):
            raise NotFoundError(f"Note not found: {note_id}")


class ReportsFlow:
    """
    Read-only views over the store.

    Request parameters are resolved here, so callers may pass raw
    query-string values (or nothing) for year, month and date bounds.
    """

    def __init__(
        self,
        document_storage: DocumentStorageInterface,
        note_storage: NoteStorageInterface,
        app_settings: Optional[AppSettings] = None,
        clock: Clock = utc_now,
    ):
        self._document_storage = document_storage
        self._note_storage = note_storage
        self._engine = AggregationEngine(document_storage, note_storage)
        self._app_settings = app_settings or get_settings().app
        self._clock = clock

    async def get_stats(self) -> DashboardStats:
        return await self._engine.get_stats()

    async def get_storage_by_category(self) -> list[CategoryStorage]:
        return await self._engine.get_storage_by_category()

    async def get_monthly_flow(self, year: Any = None, month: Any = None) -> list[DailyFlow]:
        year, month = resolve_month(year, month, today=self._clock().date())
        return await self._engine.get_monthly_flow(year, month)

    async def get_calendar_events(self, start: Any = None, end: Any = None) -> list[CalendarEvent]:
        start, end = resolve_calendar_range(
            start,
            end,
            default_start=self._app_settings.calendar_default_start,
            default_end=self._app_settings.calendar_default_end,
        )
        return await self._engine.get_calendar_events(start, end)

    async def get_rag_context(self) -> str:
        """The exact context the chat model would see right now."""
        return build_rag_context(
            await self._document_storage.list_documents(),
            await self._note_storage.list_notes(),
            today=self._clock().date(),
        )


class ChatFlow:
    """
    Orchestrates one chat exchange.

    Flow:
    1. Log the user message (with attachment URL when a file is sent)
    2. File attached → file it as a document; the chat model is not asked
    3. Otherwise → build context, ask the model, route the reply
    4. Log and return the assistant reply

    A failed extraction or save of an attached file becomes an apologetic
    reply; a failed chat model call propagates after the user message has
    been logged.
    """

    def __init__(
        self,
        document_storage: DocumentStorageInterface,
        note_storage: NoteStorageInterface,
        chat_storage: ChatStorageInterface,
        upload_flow: DocumentUploadFlow,
        chat_agent: Optional[ChatAgent] = None,
        event_generator: Optional[SimulatedEventGenerator] = None,
        audit_logger: Optional[AuditLogger] = None,
        rng: Optional[random.Random] = None,
        clock: Clock = utc_now,
    ):
        self._document_storage = document_storage
        self._note_storage = note_storage
        self._chat_storage = chat_storage
        self._upload_flow = upload_flow
        self._chat_agent = chat_agent
        self._event_generator = event_generator or SimulatedEventGenerator()
        self._audit_logger = audit_logger or AuditLogger()
        self._rng = rng
        self._clock = clock

    @property
    def chat_agent(self) -> ChatAgent:
        if self._chat_agent is None:
            self._chat_agent = ChatAgent()
        return self._chat_agent

    async def list_messages(self) -> list[ChatMessage]:
        return await self._chat_storage.list_messages()

    async def clear_messages(self) -> int:
        return await self._chat_storage.clear_messages()

    async def post_simulated_event(self, name: Optional[str] = None) -> ChatMessage:
        """Store one canned proactive message from the assistant."""
        content = self._event_generator.next_message(name)
        message = await self._chat_storage.append_message(
            NewChatMessage(role=ChatRole.ASSISTANT, content=content)
        )
        self._audit_logger.log("simulated_event", message_id=message.id)
        return message

    async def send_message(
        self,
        message: Optional[str] = None,
        file: Optional[ChatAttachment] = None,
    ) -> ChatTurn:
        """
        Run one chat exchange.

        Raises:
            ValueError: Neither a message nor a file was given
            UploadRejectedError: The attached file was refused
            UpstreamModelError: The chat model call failed
        """
        message = (message or "").strip()
        if not message and file is None:
            raise ValueError("Message or file is required")

        correlation_id = create_correlation_id()

        stored = None
        if file is not None:
            stored = await self._upload_flow.store_file(
                file.data, file.filename, file.mime_type, correlation_id
            )

        user_message = await self._chat_storage.append_message(NewChatMessage(
            role=ChatRole.USER,
            content=message or f"Uploaded: {file.filename}",
            attachment_url=stored.url if stored else None,
        ))

        document = None
        note = None

        if file is not None:
            try:
                document, extracted = await self._upload_flow.file_document(
                    stored, file.data, file.mime_type, correlation_id
                )
                reply_text = upload_confirmation(extracted, document.insight, self._rng)
                reply_kind = "upload"
            except FILE_PROCESSING_ERRORS as e:
                self._audit_logger.log(
                    "chat_file_failed",
                    correlation_id,
                    severity="warning",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                reply_text = file_error_message(e)
                reply_kind = "upload_failed"
            document_count = note_count = 0
        else:
            documents = await self._document_storage.list_documents()
            notes = await self._note_storage.list_notes()
            context = build_rag_context(documents, notes, today=self._clock().date())
            document_count, note_count = len(documents), len(notes)

            try:
                raw_reply = await self.chat_agent.respond(context, message)
            except UpstreamModelError as e:
                self._audit_logger.log_upstream_error(
                    operation="chat",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

            reply = interpret_reply(raw_reply)
            reply_kind = reply.kind
            if isinstance(reply, CreateNoteAction):
                note = await self._create_note_from_action(reply, message, correlation_id)
                reply_text = note_confirmation(
                    note.content, note.reminder_date, note.reminder_time, self._rng
                )
            else:
                reply_text = reply.text

        assistant_message = await self._chat_storage.append_message(
            NewChatMessage(role=ChatRole.ASSISTANT, content=reply_text)
        )
        self._audit_logger.log_chat_answered(
            reply_kind=reply_kind,
            document_count=document_count,
            note_count=note_count,
            correlation_id=correlation_id,
        )

        return ChatTurn(
            user_message=user_message,
            assistant_message=assistant_message,
            document=document,
            note=note,
        )

    async def _create_note_from_action(
        self,
        action: CreateNoteAction,
        user_message: str,
        correlation_id,
    ) -> Note:
        note = await self._note_storage.create_note(NoteCreate(
            content=action.note_content(user_message),
            reminder_date=action.reminder_date,
            reminder_time=action.reminder_time,
        ))
        self._audit_logger.log_note_created(
            note_id=note.id,
            source="assistant",
            has_reminder=note.reminder_date is not None,
            correlation_id=correlation_id,
        )
        return note


class AppComponents(NamedTuple):
    """Everything the front-end needs."""

    upload_flow: DocumentUploadFlow
    notes_flow: NotesFlow
    reports_flow: ReportsFlow
    chat_flow: ChatFlow
    sheets_client: Optional[GoogleSheetsClient]
    document_storage: DocumentStorageInterface
    note_storage: NoteStorageInterface


def create_app_components(use_storage: bool = True) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured persistent backend.
                    Set to False for in-memory storage (tests, demos).
                    Google Sheets falls back to in-memory when it is
                    not configured.

    Returns:
        AppComponents with all flows wired to the same store
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)

    sheets_client = None
    document_storage: DocumentStorageInterface = InMemoryDocumentStorage()
    note_storage: NoteStorageInterface = InMemoryNoteStorage()
    chat_storage: ChatStorageInterface = InMemoryChatStorage()

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            sheets_client = GoogleSheetsClient()
            document_storage = GoogleSheetsDocumentStorage(sheets_client)
            note_storage = GoogleSheetsNoteStorage(sheets_client)
            chat_storage = GoogleSheetsChatStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            log.warning("storage_not_configured", backend="google_sheets", error=str(e))
            sheets_client = None

    audit_logger = AuditLogger()

    upload_flow = DocumentUploadFlow(
        document_storage=document_storage,
        file_store=LocalFileStore(),
        audit_logger=audit_logger,
    )

    return AppComponents(
        upload_flow=upload_flow,
        notes_flow=NotesFlow(note_storage, audit_logger=audit_logger),
        reports_flow=ReportsFlow(document_storage, note_storage, app_settings=app_settings),
        chat_flow=ChatFlow(
            document_storage=document_storage,
            note_storage=note_storage,
            chat_storage=chat_storage,
            upload_flow=upload_flow,
            audit_logger=audit_logger,
        ),
        sheets_client=sheets_client,
        document_storage=document_storage,
        note_storage=note_storage,
    )


async def seed_demo_data(components: AppComponents) -> tuple[int, int]:
    """
    Put the demo drawer into empty stores.

    Stores that already hold data are left alone.

    Returns:
        (documents added, notes added)
    """
    return await seed_stores(components.document_storage, components.note_storage)
