"""
Local File Store

Uploaded originals are kept on local disk and served under /uploads/.
Only the URL (and path) is stored on the Document; the bytes live here.

CRITICAL: Files are validated BEFORE anything touches the disk.
An unsupported type, an empty file or an oversized file is rejected
with a typed error and nothing is written.

All disk IO runs through asyncio.to_thread so the event loop never
blocks on the file system.
"""

import asyncio
import random
import time
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from drawer.audit import get_logger
from drawer.config import get_settings

log = get_logger(__name__)

URL_PREFIX = "/uploads/"


class FileStoreError(Exception):
    """Base exception for file store errors."""
    pass


class UploadRejectedError(FileStoreError):
    """The upload failed validation and was not stored."""
    pass


class UnsupportedFileTypeError(UploadRejectedError):
    """MIME type is not one of the accepted document formats."""
    pass


class FileTooLargeError(UploadRejectedError):
    """File exceeds the configured size limit."""
    pass


class EmptyUploadError(UploadRejectedError):
    """File has no content."""
    pass


class StoredFileMissingError(FileStoreError):
    """The URL does not point to a stored file."""
    pass


class StoredFile(BaseModel):
    """Where an upload ended up."""

    url: str = Field(..., description="Public path, always under /uploads/")
    path: str = Field(..., description="Absolute path on local disk")
    size: int = Field(..., ge=0)


class LocalFileStore:
    """
    Saves uploads to the configured directory.

    Saved names are "{epoch_ms}-{random}{ext}" so two uploads of the
    same original filename never overwrite each other.
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        allowed_mime_types: Optional[list[str]] = None,
    ):
        app_settings = get_settings().app
        self._upload_dir = Path(upload_dir or app_settings.upload_dir).resolve()
        self._max_bytes = max_bytes or app_settings.max_upload_size_bytes
        self._allowed = [
            mime.lower() for mime in (allowed_mime_types or app_settings.allowed_mime_types_list)
        ]

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def validate_upload(self, filename: str, mime_type: str, size: int) -> None:
        """
        Check an upload before it is written.

        Raises:
            UnsupportedFileTypeError: MIME type not accepted
            EmptyUploadError: Zero-byte file
            FileTooLargeError: Over the size limit
        """
        if (mime_type or "").lower() not in self._allowed:
            raise UnsupportedFileTypeError(
                f"Unsupported file type for {filename}: {mime_type}. "
                "Accepted: PDF, PNG, JPEG, WEBP"
            )
        if size <= 0:
            raise EmptyUploadError(f"Uploaded file {filename} is empty")
        if size > self._max_bytes:
            limit_mb = self._max_bytes // (1024 * 1024)
            raise FileTooLargeError(
                f"File {filename} is too large ({size} bytes). Maximum is {limit_mb} MB"
            )

    def _generate_name(self, filename: str) -> str:
        extension = Path(filename or "").suffix
        return f"{int(time.time() * 1000)}-{random.randrange(10**9)}{extension}"

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(self, data: bytes, filename: str, mime_type: str) -> StoredFile:
        """Validate and write an upload; returns its URL and path."""
        self.validate_upload(filename, mime_type, len(data))

        name = self._generate_name(filename)
        path = self._upload_dir / name
        await asyncio.to_thread(self._write, path, data)

        log.info("file_stored", url=URL_PREFIX + name, size=len(data))
        return StoredFile(url=URL_PREFIX + name, path=str(path), size=len(data))

    def resolve(self, url: str) -> Optional[Path]:
        """
        Local path for an /uploads/ URL.

        Returns None for anything that does not resolve to a file
        directly inside the upload directory.
        """
        if not url or not url.startswith(URL_PREFIX):
            return None
        name = url[len(URL_PREFIX):]
        if not name:
            return None
        path = (self._upload_dir / name).resolve()
        if path.parent != self._upload_dir:
            return None
        return path

    async def read(self, url: str) -> bytes:
        """
        Bytes of a stored file.

        Raises:
            StoredFileMissingError: URL is invalid or the file is gone
        """
        path = self.resolve(url)
        if path is None or not await asyncio.to_thread(path.is_file):
            raise StoredFileMissingError(f"Stored file not found: {url}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete(self, url: Optional[str]) -> bool:
        """
        Remove a stored file.

        A missing file is tolerated; returns whether something was removed.
        """
        path = self.resolve(url or "")
        if path is None:
            return False

        def _unlink() -> bool:
            try:
                path.unlink()
                return True
            except FileNotFoundError:
                return False

        removed = await asyncio.to_thread(_unlink)
        if removed:
            log.info("file_deleted", url=url)
        return removed
