"""
Demo Data

A small, realistic drawer for first runs and demos: a few receipts, a bill
with a due date, a pay stub, a W-2 and some reminders.

Each store is seeded only while it is empty, so calling this on every start
never duplicates anything and never touches real data.

The sample file URLs do not point at stored files; their download links
report the file as no longer available.
"""

import datetime as dt
from decimal import Decimal

from drawer.audit import get_logger
from drawer.models.document import (
    Category,
    NewDocument,
    NoteCreate,
    TransactionType,
)
from drawer.services.storage.interface import (
    DocumentStorageInterface,
    NoteStorageInterface,
)


log = get_logger(__name__)


DEMO_DOCUMENTS = [
    NewDocument(
        file_url="/uploads/sample-starbucks.pdf",
        merchant="Starbucks",
        amount=Decimal("12.45"),
        category=Category.FINANCE,
        transaction_type=TransactionType.EXPENSE,
        date=dt.date(2026, 2, 10),
        summary="Grande caramel macchiato and a turkey pesto panini at the downtown location.",
        insight="Expense of $12.45 saved in Finance.",
        file_size=45000,
    ),
    NewDocument(
        file_url="/uploads/sample-comcast.pdf",
        merchant="Comcast",
        amount=Decimal("89.99"),
        category=Category.HOME,
        transaction_type=TransactionType.EXPENSE,
        date=dt.date(2026, 2, 1),
        due_date=dt.date(2026, 2, 20),
        summary="Monthly internet service bill for 200Mbps plan.",
        insight="Reminder: Payment due on 2026-02-20 (5 days away).",
        file_size=38000,
    ),
    NewDocument(
        file_url="/uploads/sample-amazon.pdf",
        merchant="Amazon",
        amount=Decimal("156.78"),
        category=Category.FINANCE,
        transaction_type=TransactionType.EXPENSE,
        date=dt.date(2026, 2, 8),
        summary="Wireless earbuds and a phone charging cable purchased online.",
        insight="Expense of $156.78 saved in Finance.",
        file_size=52000,
    ),
    NewDocument(
        file_url="/uploads/sample-paycheck.pdf",
        merchant="Acme Corporation",
        amount=Decimal("2500.00"),
        category=Category.FINANCE,
        transaction_type=TransactionType.INCOME,
        date=dt.date(2026, 2, 14),
        summary="Bi-weekly pay stub from Acme Corporation, net pay $2,500.",
        insight="Income of $2,500.00 recorded in Finance.",
        file_size=67000,
    ),
    NewDocument(
        file_url="/uploads/sample-w2.pdf",
        merchant="Acme Corporation",
        amount=Decimal("0.00"),
        category=Category.FINANCE,
        transaction_type=TransactionType.RECORD,
        date=dt.date(2024, 12, 31),
        summary="W-2 wage statement from Acme Corporation for tax year 2024.",
        insight="Filed as a record in Finance.",
        file_size=41000,
    ),
]

DEMO_NOTES = [
    NoteCreate(
        content="Pay electricity bill - check if rate increased this month",
        reminder_date=dt.date(2026, 2, 28),
        reminder_time="09:00",
    ),
    NoteCreate(
        content="Review annual subscription renewals for Netflix and Spotify",
        reminder_date=dt.date(2026, 2, 26),
        reminder_time="10:00",
    ),
    NoteCreate(
        content="Compare car insurance quotes before renewal on March 15th",
        reminder_date=dt.date(2026, 3, 1),
    ),
]


async def seed_stores(
    document_storage: DocumentStorageInterface,
    note_storage: NoteStorageInterface,
) -> tuple[int, int]:
    """
    Fill empty stores with the demo drawer.

    Returns:
        (documents added, notes added); zero for a store that already
        held data
    """
    documents_added = 0
    if not await document_storage.list_documents():
        for document in DEMO_DOCUMENTS:
            await document_storage.save_document(document)
        documents_added = len(DEMO_DOCUMENTS)
        log.info("demo_documents_seeded", count=documents_added)

    notes_added = 0
    if not await note_storage.list_notes():
        for note in DEMO_NOTES:
            await note_storage.create_note(note)
        notes_added = len(DEMO_NOTES)
        log.info("demo_notes_seeded", count=notes_added)

    return documents_added, notes_added
