"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a relational database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the reads and writes the warehouse needs. Aggregations are NOT
pushed down into storage; they are recomputed from full listings.

ORDERING CONTRACT:
- Documents and notes are listed newest first (by created_at, then id)
- Chat messages are listed oldest first
- Ids are positive integers that increase with creation order
"""

from abc import ABC, abstractmethod
from typing import Optional

from drawer.models.document import (
    ChatMessage,
    Document,
    NewChatMessage,
    NewDocument,
    Note,
    NoteCreate,
    NoteUpdate,
)


class DocumentStorageInterface(ABC):
    """
    Abstract interface for document storage operations.

    Documents are never mutated after creation.
    """

    @abstractmethod
    async def save_document(self, document: NewDocument) -> Document:
        """
        Persist a new document.

        Args:
            document: The normalized document to save

        Returns:
            The stored document with its assigned id and created_at

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_document(self, document_id: int) -> Optional[Document]:
        """
        Retrieve a document by its ID.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """List every document, newest first."""
        pass

    @abstractmethod
    async def delete_document(self, document_id: int) -> bool:
        """
        Delete a document by ID.

        Returns:
            True if a document was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def get_last_document_by_merchant(self, merchant: str) -> Optional[Document]:
        """
        Most recently created document whose merchant matches exactly.

        Exact string match is intentional - no case folding or fuzzy
        matching. Used to compare a new amount with the previous one.
        """
        pass


class NoteStorageInterface(ABC):
    """Abstract interface for notes and reminders."""

    @abstractmethod
    async def create_note(self, note: NoteCreate) -> Note:
        """Persist a new note and return it with id and created_at."""
        pass

    @abstractmethod
    async def get_note(self, note_id: int) -> Optional[Note]:
        """Retrieve a note by ID, or None."""
        pass

    @abstractmethod
    async def list_notes(self) -> list[Note]:
        """List every note, newest first."""
        pass

    @abstractmethod
    async def update_note(self, note_id: int, updates: NoteUpdate) -> Note:
        """
        Apply the explicitly-set fields of an update.

        Raises:
            NotFoundError: If the note doesn't exist
        """
        pass

    @abstractmethod
    async def delete_note(self, note_id: int) -> bool:
        """Delete a note; False if it did not exist."""
        pass


class ChatStorageInterface(ABC):
    """
    Abstract interface for the conversation log.

    The log is append-only; it can only be cleared as a whole.
    """

    @abstractmethod
    async def append_message(self, message: NewChatMessage) -> ChatMessage:
        """Append a message and return it with id and created_at."""
        pass

    @abstractmethod
    async def list_messages(self) -> list[ChatMessage]:
        """List every message, oldest first."""
        pass

    @abstractmethod
    async def clear_messages(self) -> int:
        """Delete every message; returns how many were removed."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
