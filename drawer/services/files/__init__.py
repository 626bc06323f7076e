"""Local file storage for uploaded originals."""

from drawer.services.files.local_store import (
    EmptyUploadError,
    FileStoreError,
    FileTooLargeError,
    LocalFileStore,
    StoredFile,
    StoredFileMissingError,
    UnsupportedFileTypeError,
    UploadRejectedError,
)

__all__ = [
    "EmptyUploadError",
    "FileStoreError",
    "FileTooLargeError",
    "LocalFileStore",
    "StoredFile",
    "StoredFileMissingError",
    "UnsupportedFileTypeError",
    "UploadRejectedError",
]
