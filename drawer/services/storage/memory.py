"""
In-Memory Storage Implementation

Process-local storage used for tests and for running without Google Sheets.
Data is lost on restart.

Each write is atomic: id assignment and insertion happen under one
threading.Lock. The critical sections never await, so the lock holds across
threads and across event loops (the UI runs every call on a fresh loop).
Nothing spans multiple records.
"""

import threading
from typing import Optional

from drawer.models.document import (
    ChatMessage,
    Document,
    NewChatMessage,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
    utc_now,
)
from drawer.services.storage.interface import (
    ChatStorageInterface,
    DocumentStorageInterface,
    NotFoundError,
    NoteStorageInterface,
)


def _newest_first(items: list) -> list:
    return sorted(items, key=lambda item: (item.created_at, item.id), reverse=True)


class InMemoryDocumentStorage(DocumentStorageInterface):
    """Documents kept in a dict keyed by id."""

    def __init__(self):
        self._documents: dict[int, Document] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    async def save_document(self, document: NewDocument) -> Document:
        with self._lock:
            stored = Document(
                id=self._next_id,
                created_at=utc_now(),
                **document.model_dump(),
            )
            self._documents[stored.id] = stored
            self._next_id += 1
        return stored

    async def get_document(self, document_id: int) -> Optional[Document]:
        return self._documents.get(document_id)

    async def list_documents(self) -> list[Document]:
        return _newest_first(list(self._documents.values()))

    async def delete_document(self, document_id: int) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    async def get_last_document_by_merchant(self, merchant: str) -> Optional[Document]:
        for document in await self.list_documents():
            if document.merchant == merchant:
                return document
        return None


class InMemoryNoteStorage(NoteStorageInterface):
    """Notes kept in a dict keyed by id."""

    def __init__(self):
        self._notes: dict[int, Note] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    async def create_note(self, note: NoteCreate) -> Note:
        with self._lock:
            stored = Note(id=self._next_id, created_at=utc_now(), **note.model_dump())
            self._notes[stored.id] = stored
            self._next_id += 1
        return stored

    async def get_note(self, note_id: int) -> Optional[Note]:
        return self._notes.get(note_id)

    async def list_notes(self) -> list[Note]:
        return _newest_first(list(self._notes.values()))

    async def update_note(self, note_id: int, updates: NoteUpdate) -> Note:
        with self._lock:
            current = self._notes.get(note_id)
            if current is None:
                raise NotFoundError(f"Note not found: {note_id}")
            updated = Note.model_validate({**current.model_dump(), **updates.changes()})
            self._notes[note_id] = updated
        return updated

    async def delete_note(self, note_id: int) -> bool:
        with self._lock:
            return self._notes.pop(note_id, None) is not None


class InMemoryChatStorage(ChatStorageInterface):
    """Conversation log kept in an append-only list."""

    def __init__(self):
        self._messages: list[ChatMessage] = []
        self._next_id = 1
        self._lock = threading.Lock()

    async def append_message(self, message: NewChatMessage) -> ChatMessage:
        with self._lock:
            stored = ChatMessage(
                id=self._next_id,
                created_at=utc_now(),
                **message.model_dump(),
            )
            self._messages.append(stored)
            self._next_id += 1
        return stored

    async def list_messages(self) -> list[ChatMessage]:
        return sorted(self._messages, key=lambda m: (m.created_at, m.id))

    async def clear_messages(self) -> int:
        with self._lock:
            removed = len(self._messages)
            self._messages.clear()
        return removed
