"""
Conversational Action Router

Classifies what the chat model said and shapes what the user sees.

A model reply is one of two variants:
- PlainAnswer: the text is the answer and is returned verbatim
- CreateNoteAction: the text carries a {"action": "create_note", ...} object

DESIGN DECISION: Classification is a two-state parser, not string hacking.
The strict JSON-action parse is attempted first; if it fails for any reason
the reply degrades to PlainAnswer. The router NEVER raises to its caller.

Markdown download links of the form [label](/uploads/...) are part of the
protocol with the UI. The router never strips or rewrites them; the UI uses
extract_download_links / split_download_links to render them as downloads.
"""

import datetime as dt
import json
import random
import re
from typing import Any, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from drawer.audit import get_logger
from drawer.insights.generator import format_money
from drawer.models.document import (
    TIME_PATTERN,
    ExtractedDocument,
    TransactionType,
    parse_iso_date,
)

log = get_logger(__name__)


NOTE_ACTION_PATTERN = re.compile(r'\{[\s\S]*?"action"\s*:\s*"create_note"[\s\S]*?\}')
DOWNLOAD_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((/uploads/[^)\s]+)\)")
_TIME_RE = re.compile(TIME_PATTERN)

EMPTY_REPLY_FALLBACK = "I couldn't process that request. Please try again."

UPLOAD_RESPONSES = [
    "\U0001F4E5 Got it! I've filed that away safely.",
    "✅ All stored! Your data warehouse just got richer.",
    "\U0001F4BE Saved and indexed. Ask me anything about it anytime!",
    "\U0001F389 Done! Another document safely in your vault.",
    "\U0001F4C2 Filed and ready! I've extracted all the details.",
    "\U0001F680 Boom, processed! Everything's stored and searchable.",
    "\U0001F9E0 Smart filing complete! I've got all the key details.",
    "\U0001F4CB Logged and loaded! Your personal warehouse grows.",
    "\U0001F31F Perfect! That's been scanned, extracted, and stored.",
    "\U0001F50D All captured! Every detail is now searchable.",
]

NOTE_RESPONSES = [
    "\U0001F4DD Note saved! I'll keep track of it for you.",
    "✅ Got it! Your note is safely stored.",
    "\U0001F4CC Pinned! That's in your notes now.",
    "\U0001F9E0 Noted! I'll remember that for you.",
    "\U0001F4CB Written down and ready whenever you need it.",
    "\U0001F31F Done! Your note is tucked away safely.",
    "✍️ Jotted down! You can find it in your files.",
    "\U0001F389 Saved! One less thing to remember on your own.",
]


class NoteActionParseFailure(Exception):
    """A create_note object was found but could not be decoded."""
    pass


# =============================================================================
# REPLY VARIANTS
# =============================================================================

class PlainAnswer(BaseModel):
    """The model answered directly; show the text as-is."""

    kind: Literal["answer"] = "answer"
    text: str


class CreateNoteAction(BaseModel):
    """The model asked for a note to be stored."""

    kind: Literal["create_note"] = "create_note"
    content: Optional[str] = None
    reminder_date: Optional[dt.date] = None
    reminder_time: Optional[str] = None
    raw: str = Field(
        default="",
        description="The JSON text the action was parsed from"
    )

    def note_content(self, user_message: str) -> str:
        """Content to store; the user's own words when the model gave none."""
        return self.content or user_message


AssistantReply = Union[PlainAnswer, CreateNoteAction]


class DownloadLink(BaseModel):
    """A [label](/uploads/...) link inside assistant text."""

    label: str
    url: str


# =============================================================================
# PARSING
# =============================================================================

def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


def _coerce_time(value: Any) -> Optional[str]:
    if isinstance(value, str) and _TIME_RE.match(value.strip()):
        return value.strip()
    return None


def parse_note_action(text: str) -> Optional[CreateNoteAction]:
    """
    Strictly parse a create_note action out of model text.

    Returns:
        The action, or None when the text contains no action object

    Raises:
        NoteActionParseFailure: An action object is present but malformed
    """
    match = NOTE_ACTION_PATTERN.search(text or "")
    if not match:
        return None

    raw = match.group(0)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise NoteActionParseFailure(f"Invalid create_note JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise NoteActionParseFailure("create_note payload is not an object")

    content = _first(data, "content")
    if content is not None:
        content = str(content).strip() or None

    return CreateNoteAction(
        content=content,
        reminder_date=parse_iso_date(_first(data, "reminder_date", "reminderDate")),
        reminder_time=_coerce_time(_first(data, "reminder_time", "reminderTime")),
        raw=raw,
    )


def interpret_reply(text: Optional[str]) -> AssistantReply:
    """
    Classify a chat model reply.

    Never raises: a malformed action object is logged and the reply is
    treated as a plain answer with the original text.
    """
    text = text or EMPTY_REPLY_FALLBACK
    try:
        action = parse_note_action(text)
    except NoteActionParseFailure as e:
        log.warning("note_action_parse_failed", error=str(e))
        return PlainAnswer(text=text)

    if action is not None:
        return action
    return PlainAnswer(text=text)


def extract_download_links(text: str) -> list[DownloadLink]:
    """All /uploads/ download links in assistant text, in order."""
    return [
        DownloadLink(label=m.group(1), url=m.group(2))
        for m in DOWNLOAD_LINK_PATTERN.finditer(text or "")
    ]


def split_download_links(text: str) -> list[Union[str, DownloadLink]]:
    """
    Split assistant text into plain segments and download links.

    Joining the segments (links as their markdown) gives back the original
    text, so rendering never loses content.
    """
    segments: list[Union[str, DownloadLink]] = []
    position = 0
    for match in DOWNLOAD_LINK_PATTERN.finditer(text or ""):
        if match.start() > position:
            segments.append(text[position:match.start()])
        segments.append(DownloadLink(label=match.group(1), url=match.group(2)))
        position = match.end()
    if position < len(text or ""):
        segments.append(text[position:])
    return segments


# =============================================================================
# USER-FACING MESSAGES
# =============================================================================

def pick_random(options: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Pick one friendly opener."""
    return (rng or random).choice(options)


def upload_confirmation(
    extracted: ExtractedDocument,
    insight: str,
    rng: Optional[random.Random] = None,
) -> str:
    """Templated reply after a chat-attached file was filed."""
    kind = extracted.transaction_type
    text = f"{pick_random(UPLOAD_RESPONSES, rng)}\n\n"
    text += f"**{extracted.merchant}** | {extracted.category.value} | {kind.value.upper()}\n"
    if kind != TransactionType.RECORD:
        text += f"Amount: **{format_money(extracted.amount)}**\n"
    text += f"\n{extracted.summary}\n\n{insight}"
    if extracted.raw_text:
        text += "\n\nAll details stored and searchable. Ask me anything about this document!"
    return text


def note_confirmation(
    content: str,
    reminder_date: Optional[dt.date] = None,
    reminder_time: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Templated reply after the assistant stored a note."""
    text = f'{pick_random(NOTE_RESPONSES, rng)}\n\n"{content}"'
    if reminder_date:
        at = f" at {reminder_time}" if reminder_time else ""
        text += f"\n\n⏰ Reminder set for {reminder_date.isoformat()}{at}."
    return text


def file_error_message(error: Exception) -> str:
    """What the user sees when a chat-attached file could not be processed."""
    return (
        f"I had trouble processing that file: {error}. "
        "You can try uploading a clearer image or PDF."
    )
