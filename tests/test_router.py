"""Tests for the conversational action router."""

import datetime as dt
import random
from decimal import Decimal

import pytest

from drawer.chat import (
    EMPTY_REPLY_FALLBACK,
    NOTE_RESPONSES,
    UPLOAD_RESPONSES,
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
from drawer.models import ExtractedDocument


class TestInterpretReply:
    """Tests for classifying model replies."""

    def test_plain_answer_is_verbatim(self):
        text = "You spent $5.75 at Starbucks on 2025-01-10."
        reply = interpret_reply(text)
        assert isinstance(reply, PlainAnswer)
        assert reply.kind == "answer"
        assert reply.text == text

    def test_create_note(self):
        reply = interpret_reply(
            '{"action":"create_note","content":"Buy milk",'
            '"reminder_date":"2025-02-01","reminder_time":"09:30"}'
        )
        assert isinstance(reply, CreateNoteAction)
        assert reply.kind == "create_note"
        assert reply.content == "Buy milk"
        assert reply.reminder_date == dt.date(2025, 2, 1)
        assert reply.reminder_time == "09:30"

    def test_create_note_inside_prose(self):
        reply = interpret_reply(
            'Sure thing!\n{"action": "create_note", "content": "Call the dentist"}\nDone.'
        )
        assert isinstance(reply, CreateNoteAction)
        assert reply.content == "Call the dentist"
        assert reply.reminder_date is None

    def test_malformed_action_degrades_to_answer(self):
        text = '{"action": "create_note", "content": }'
        reply = interpret_reply(text)
        assert isinstance(reply, PlainAnswer)
        assert reply.text == text

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_reply_uses_fallback(self, text):
        reply = interpret_reply(text)
        assert isinstance(reply, PlainAnswer)
        assert reply.text == EMPTY_REPLY_FALLBACK

    def test_other_actions_are_plain_answers(self):
        reply = interpret_reply('{"action":"delete_everything"}')
        assert isinstance(reply, PlainAnswer)


class TestParseNoteAction:

    def test_no_action(self):
        assert parse_note_action("Just text") is None

    def test_malformed_raises(self):
        with pytest.raises(NoteActionParseFailure):
            parse_note_action('{"action":"create_note", content: "x"}')

    def test_null_strings_and_bad_values_become_none(self):
        action = parse_note_action(
            '{"action":"create_note","content":"x",'
            '"reminder_date":"YYYY-MM-DD or null","reminder_time":"25:00"}'
        )
        assert action.reminder_date is None
        assert action.reminder_time is None

    def test_camel_case_keys(self):
        action = parse_note_action(
            '{"action":"create_note","content":"x","reminderDate":"2025-03-01","reminderTime":"08:00"}'
        )
        assert action.reminder_date == dt.date(2025, 3, 1)
        assert action.reminder_time == "08:00"

    def test_missing_content_uses_user_message(self):
        action = parse_note_action('{"action":"create_note","content":"   "}')
        assert action.content is None
        assert action.note_content("remember the wifi password") == "remember the wifi password"

    def test_raw_is_kept(self):
        raw = '{"action":"create_note","content":"x"}'
        assert parse_note_action(f"prefix {raw} suffix").raw == raw


class TestDownloadLinks:
    """Download links are part of the UI protocol and never rewritten."""

    TEXT = (
        "Here is your W-2: [Download Original Document](/uploads/1700000000000-42.pdf)\n"
        "And an external [site](https://example.com)."
    )

    def test_extract(self):
        assert extract_download_links(self.TEXT) == [
            DownloadLink(label="Download Original Document", url="/uploads/1700000000000-42.pdf")
        ]

    def test_answer_keeps_links(self):
        assert interpret_reply(self.TEXT).text == self.TEXT

    def test_split_preserves_text(self):
        segments = split_download_links(self.TEXT)
        assert len(segments) == 3
        assert isinstance(segments[1], DownloadLink)
        rebuilt = "".join(
            f"[{s.label}]({s.url})" if isinstance(s, DownloadLink) else s for s in segments
        )
        assert rebuilt == self.TEXT

    def test_split_plain_text(self):
        assert split_download_links("nothing here") == ["nothing here"]


class TestConfirmations:
    """Tests for the templated replies."""

    def test_note_confirmation_with_reminder(self):
        text = note_confirmation(
            "Buy milk", dt.date(2025, 2, 1), "09:30", rng=random.Random(1)
        )
        opener, rest = text.split("\n\n", 1)
        assert opener in NOTE_RESPONSES
        assert rest == '"Buy milk"\n\n⏰ Reminder set for 2025-02-01 at 09:30.'

    def test_note_confirmation_date_only(self):
        text = note_confirmation("Buy milk", dt.date(2025, 2, 1), rng=random.Random(1))
        assert text.endswith("⏰ Reminder set for 2025-02-01.")

    def test_note_confirmation_without_reminder(self):
        text = note_confirmation("Buy milk", rng=random.Random(1))
        assert text.endswith('"Buy milk"')

    def test_upload_confirmation_expense(self):
        extracted = ExtractedDocument(
            merchant="Starbucks",
            amount=Decimal("5.75"),
            category="Finance",
            transaction_type="expense",
            date="2025-01-10",
            summary="Coffee.",
            raw_text="STARBUCKS",
        )
        text = upload_confirmation(extracted, "Expense of $5.75 saved in Finance.", random.Random(2))
        assert text.split("\n\n", 1)[0] in UPLOAD_RESPONSES
        assert "**Starbucks** | Finance | EXPENSE\n" in text
        assert "Amount: **$5.75**\n" in text
        assert "\nCoffee.\n\nExpense of $5.75 saved in Finance." in text
        assert text.endswith("Ask me anything about this document!")

    def test_upload_confirmation_record_has_no_amount(self):
        extracted = ExtractedDocument(
            merchant="Acme Corp",
            category="Finance",
            transaction_type="record",
            date="2024-12-31",
            summary="W-2.",
        )
        text = upload_confirmation(extracted, "Filed as a record in Finance.")
        assert "| RECORD\n" in text
        assert "Amount:" not in text
        assert text.endswith("Filed as a record in Finance.")

    def test_file_error_message(self):
        assert file_error_message(ValueError("boom")) == (
            "I had trouble processing that file: boom. "
            "You can try uploading a clearer image or PDF."
        )


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
