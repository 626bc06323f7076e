"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The in-memory backend is the default; Google Sheets is the persistent one.
"""

from drawer.services.storage.interface import (
    ChatStorageInterface,
    ConnectionError,
    DocumentStorageInterface,
    NotFoundError,
    NoteStorageInterface,
    StorageError,
)
from drawer.services.storage.memory import (
    InMemoryChatStorage,
    InMemoryDocumentStorage,
    InMemoryNoteStorage,
)
from drawer.services.storage.google_sheets import (
    GoogleSheetsChatStorage,
    GoogleSheetsClient,
    GoogleSheetsDocumentStorage,
    GoogleSheetsNoteStorage,
)
from drawer.services.storage.seed import DEMO_DOCUMENTS, DEMO_NOTES, seed_stores

__all__ = [
    # Interfaces
    "ChatStorageInterface",
    "DocumentStorageInterface",
    "NoteStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryChatStorage",
    "InMemoryDocumentStorage",
    "InMemoryNoteStorage",
    # Google Sheets implementation
    "GoogleSheetsChatStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStorage",
    "GoogleSheetsNoteStorage",
    # Demo data
    "DEMO_DOCUMENTS",
    "DEMO_NOTES",
    "seed_stores",
]
