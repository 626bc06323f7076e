"""
Shared test fixtures.

No real API calls in tests: Gemini models are replaced by FakeModel,
which replays canned replies and records what it was sent.
"""

import datetime as dt
from decimal import Decimal

import pytest

from drawer.models import Category, Document, TransactionType
from drawer.services.files import LocalFileStore


FIXED_NOW = dt.datetime(2025, 1, 15, 12, 0, tzinfo=dt.timezone.utc)

ALLOWED_MIME_TYPES = [
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
]


class FakeResponse:
    """Stands in for a Gemini response; .text may raise like a blocked one."""

    def __init__(self, text):
        self._text = text

    @property
    def text(self):
        if isinstance(self._text, Exception):
            raise self._text
        return self._text


class FakeModel:
    """
    Replays replies in order.

    A reply that is an exception is raised from generate_content_async;
    a FakeResponse is returned as-is; anything else is wrapped.
    """

    def __init__(self, replies=()):
        self.replies = list(replies)
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, FakeResponse):
            return reply
        return FakeResponse(reply)


@pytest.fixture
def fake_model():
    """Factory: fake_model("reply 1", "reply 2", ...)."""
    def _make(*replies):
        return FakeModel(replies)
    return _make


@pytest.fixture
def blocked_response():
    """A response whose .text raises, like a safety-blocked candidate."""
    return FakeResponse(ValueError("response was blocked"))


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def file_store(tmp_path):
    return LocalFileStore(
        upload_dir=str(tmp_path / "uploads"),
        max_bytes=1024 * 1024,
        allowed_mime_types=ALLOWED_MIME_TYPES,
    )


@pytest.fixture
def make_document():
    """Factory for stored documents with sensible defaults."""
    def _make(**overrides):
        fields = {
            "id": 1,
            "created_at": FIXED_NOW,
            "file_url": "/uploads/1-1.png",
            "merchant": "Starbucks",
            "amount": Decimal("5.75"),
            "category": Category.FINANCE,
            "transaction_type": TransactionType.EXPENSE,
            "date": dt.date(2025, 1, 10),
            "due_date": None,
            "summary": "Coffee and a muffin.",
            "insight": "",
            "raw_text": None,
            "file_size": 100,
        }
        fields.update(overrides)
        return Document(**fields)
    return _make
