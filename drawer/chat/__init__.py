"""Conversation package: reply routing and simulated events."""

from drawer.chat.events import SimulatedEventGenerator, simulated_scenarios
from drawer.chat.router import (
    EMPTY_REPLY_FALLBACK,
    NOTE_RESPONSES,
    UPLOAD_RESPONSES,
    AssistantReply,
    CreateNoteAction,
    DownloadLink,
    NoteActionParseFailure,
    PlainAnswer,
    extract_download_links,
    file_error_message,
    interpret_reply,
    note_confirmation,
    parse_note_action,
    split_download_links,
    upload_confirmation,
)

__all__ = [
    "EMPTY_REPLY_FALLBACK",
    "NOTE_RESPONSES",
    "UPLOAD_RESPONSES",
    "AssistantReply",
    "CreateNoteAction",
    "DownloadLink",
    "NoteActionParseFailure",
    "PlainAnswer",
    "SimulatedEventGenerator",
    "extract_download_links",
    "file_error_message",
    "interpret_reply",
    "note_confirmation",
    "parse_note_action",
    "simulated_scenarios",
    "split_download_links",
    "upload_confirmation",
]
