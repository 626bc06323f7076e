"""
RAG Context Builder

Serializes the whole warehouse - every document, every note, and a
computed financial summary - into one deterministic block of text.

CRITICAL: This text is the assistant's ONLY source of truth.
- It must be exhaustive: every document's full raw text is included
- It must be exact: amounts are shown with two decimals, never rounded further
- It must be deterministic: the same inputs always give the same text

The LLM is a TRANSLATOR, not an ORACLE. If a fact is not in this block,
the assistant is instructed to say so.
"""

import datetime as dt
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from drawer.insights.generator import format_money
from drawer.models.document import Document, Note, TransactionType, utc_today
from drawer.models.reports import FinancialSummary


ASSISTANT_NAME = "Drawer"


def _unique_in_order(values: Iterable[str]) -> list[str]:
    """Distinct values, keeping the first occurrence of each."""
    return list(dict.fromkeys(values))


def summarize_finances(
    documents: Sequence[Document],
    notes: Sequence[Note] = (),
) -> FinancialSummary:
    """
    Compute the totals shown in the context's financial summary.

    Only expenses and income carry money; records are counted separately.
    """
    expenses = [d for d in documents if d.transaction_type == TransactionType.EXPENSE]
    incomes = [d for d in documents if d.transaction_type == TransactionType.INCOME]
    records = [d for d in documents if d.transaction_type == TransactionType.RECORD]

    return FinancialSummary(
        total_expenses=sum((d.amount for d in expenses), Decimal("0.00")),
        total_income=sum((d.amount for d in incomes), Decimal("0.00")),
        expense_count=len(expenses),
        income_count=len(incomes),
        record_count=len(records),
        document_count=len(documents),
        note_count=len(notes),
        categories=_unique_in_order(d.category.value for d in documents),
        merchants=_unique_in_order(d.merchant for d in documents),
    )


def _preamble(today: dt.date) -> str:
    return (
        f"You are {ASSISTANT_NAME}, an intelligent AI assistant for a personal data "
        "warehouse application.\n"
        "You have access to all the user's stored documents and notes. Answer "
        "questions using ONLY the data below - be specific and precise.\n"
        "\n"
        f"Today's date is {today.isoformat()}.\n"
    )


def _document_block(doc: Document) -> str:
    kind = doc.transaction_type.value
    lines = [f"\n--- Document #{doc.id}: {doc.merchant} [{kind}] ---\n"]

    facts = (
        f"Category: {doc.category.value} | Type: {kind} | "
        f"Amount: {format_money(doc.amount)} | Date: {doc.date.isoformat()}"
    )
    if doc.due_date:
        facts += f" | Due: {doc.due_date.isoformat()}"
    if doc.file_url:
        facts += f" | Download: {doc.file_url}"
    lines.append(facts)

    lines.append(f"\nSummary: {doc.summary}\n")
    if doc.raw_text:
        lines.append(f"Full extracted text:\n{doc.raw_text}\n")
    return "".join(lines)


def _note_line(note: Note) -> str:
    line = f'- Note #{note.id}: "{note.content}"'
    if note.reminder_date:
        at = f" at {note.reminder_time}" if note.reminder_time else ""
        line += f" (Reminder: {note.reminder_date.isoformat()}{at})"
    return line + "\n"


def _summary_block(summary: FinancialSummary) -> str:
    categories = ", ".join(summary.categories) or "none"
    merchants = ", ".join(summary.merchants) or "none"
    return (
        "\n=== FINANCIAL SUMMARY ===\n"
        f"- Total expenses: {format_money(summary.total_expenses)} "
        f"({summary.expense_count} expense documents)\n"
        f"- Total income: {format_money(summary.total_income)} "
        f"({summary.income_count} income documents)\n"
        f"- Net: {_signed_money(summary.net)}\n"
        f"- Records (informational, not counted): {summary.record_count} documents\n"
        f"- Total documents: {summary.document_count}\n"
        f"- Total notes: {summary.note_count}\n"
        f"- Categories: {categories}\n"
        f"- Merchants: {merchants}\n"
    )


def _signed_money(amount: Decimal) -> str:
    """Net can be negative; keep the sign after the dollar sign ($-12.50)."""
    if amount < 0:
        return f"$-{format_money(-amount)[1:]}"
    return format_money(amount)


def build_rag_context(
    documents: Sequence[Document],
    notes: Sequence[Note],
    today: Optional[dt.date] = None,
) -> str:
    """
    Build the full context block for the conversational model.

    Args:
        documents: Every stored document, in store order
        notes: Every stored note, in store order
        today: Date stated in the preamble (defaults to the current UTC date)

    Returns:
        The context text. Sections appear in a fixed order: preamble,
        documents, notes (only when there are any), financial summary.
    """
    today = today or utc_today()
    summary = summarize_finances(documents, notes)

    parts = [_preamble(today)]
    parts.append(f"\n=== STORED DOCUMENTS ({len(documents)} total) ===\n")
    parts.extend(_document_block(doc) for doc in documents)

    if notes:
        parts.append(f"\n=== NOTES & REMINDERS ({len(notes)} total) ===\n")
        parts.extend(_note_line(note) for note in notes)

    parts.append(_summary_block(summary))
    return "".join(parts)
