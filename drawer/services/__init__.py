"""Services package."""

from drawer.services.files import (
    EmptyUploadError,
    FileStoreError,
    FileTooLargeError,
    LocalFileStore,
    StoredFile,
    StoredFileMissingError,
    UnsupportedFileTypeError,
    UploadRejectedError,
)
from drawer.services.storage import (
    ChatStorageInterface,
    ConnectionError,
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
)

__all__ = [
    # File services
    "EmptyUploadError",
    "FileStoreError",
    "FileTooLargeError",
    "LocalFileStore",
    "StoredFile",
    "StoredFileMissingError",
    "UnsupportedFileTypeError",
    "UploadRejectedError",
    # Storage services
    "ChatStorageInterface",
    "ConnectionError",
    "DocumentStorageInterface",
    "GoogleSheetsChatStorage",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStorage",
    "GoogleSheetsNoteStorage",
    "InMemoryChatStorage",
    "InMemoryDocumentStorage",
    "InMemoryNoteStorage",
    "NotFoundError",
    "NoteStorageInterface",
    "StorageError",
]
