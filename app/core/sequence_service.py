"""
Sequence generation: invoice, credit note and student numbers.

- Invoices:     INV-YYYY-NNN
- Credit notes: CN-YYYY-NNN
- Students:     YYYY-NNNN

Numbers are year-scoped per owner. Allocation goes through a
document_sequences row advanced with a single UPDATE ... RETURNING, so two
concurrent requests can never read the same maximum. The increment lives in
the caller's transaction: if the document insert fails and rolls back, the
number is not consumed.
"""
import re
from datetime import date
from typing import Dict, Optional, Pattern
from uuid import UUID

from sqlalchemy import insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import SequenceKind
from app.core.logging import get_logger
from app.core.models import CreditNote, DocumentSequence, Invoice, Student

logger = get_logger(__name__)

PREFIXES: Dict[SequenceKind, Optional[str]] = {
    SequenceKind.invoice: "INV",
    SequenceKind.credit_note: "CN",
    SequenceKind.student: None,
}
PAD_WIDTH: Dict[SequenceKind, int] = {
    SequenceKind.invoice: 3,
    SequenceKind.credit_note: 3,
    SequenceKind.student: 4,
}
_PATTERNS: Dict[SequenceKind, Pattern] = {
    SequenceKind.invoice: re.compile(r"^INV-(\d{4})-(\d+)$"),
    SequenceKind.credit_note: re.compile(r"^CN-(\d{4})-(\d+)$"),
    SequenceKind.student: re.compile(r"^(\d{4})-(\d+)$"),
}


def format_sequence_number(kind: SequenceKind, year: int, value: int) -> str:
    """Format e.g. (invoice, 2025, 7) -> INV-2025-007. Wider values are not truncated."""
    kind = SequenceKind(kind)
    body = f"{year}-{value:0{PAD_WIDTH[kind]}d}"
    prefix = PREFIXES[kind]
    return f"{prefix}-{body}" if prefix else body


def parse_sequence_value(kind: SequenceKind, number: str, year: Optional[int] = None) -> Optional[int]:
    """Sequence value from a formatted number, or None if it does not match (or is another year)."""
    match = _PATTERNS[SequenceKind(kind)].match((number or "").strip())
    if not match:
        return None
    if year is not None and int(match.group(1)) != year:
        return None
    return int(match.group(2))


def _number_column(kind: SequenceKind):
    if kind == SequenceKind.invoice:
        return Invoice, Invoice.number
    if kind == SequenceKind.credit_note:
        return CreditNote, CreditNote.number
    return Student, Student.student_number


async def _current_max(db: AsyncSession, owner_id: UUID, kind: SequenceKind, year: int) -> int:
    """Highest value already present in the entity table for this owner and year."""
    model, column = _number_column(kind)
    prefix = PREFIXES[kind]
    like = f"{prefix}-{year}-%" if prefix else f"{year}-%"
    result = await db.execute(select(column).where(model.owner_id == owner_id, column.like(like)))
    values = [parse_sequence_value(kind, n, year) for n in result.scalars().all()]
    return max((v for v in values if v is not None), default=0)


def _insert_ignoring_conflict(db: AsyncSession, values: dict):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(DocumentSequence).values(**values).on_conflict_do_nothing(
            index_elements=["owner_id", "kind", "year"]
        )
    if dialect == "sqlite":
        return sqlite.insert(DocumentSequence).values(**values).on_conflict_do_nothing(
            index_elements=["owner_id", "kind", "year"]
        )
    return insert(DocumentSequence).values(**values)


def _sequence_filter(owner_id: UUID, kind: SequenceKind, year: int):
    return (
        DocumentSequence.owner_id == owner_id,
        DocumentSequence.kind == kind.value,
        DocumentSequence.year == year,
    )


async def _ensure_sequence_row(db: AsyncSession, owner_id: UUID, kind: SequenceKind, year: int) -> None:
    existing = await db.execute(select(DocumentSequence.id).where(*_sequence_filter(owner_id, kind, year)))
    if existing.scalar_one_or_none() is not None:
        return
    # Seed from existing data so the first allocation is still greater than the current maximum
    start = await _current_max(db, owner_id, kind, year)
    await db.execute(
        _insert_ignoring_conflict(
            db, {"owner_id": owner_id, "kind": kind.value, "year": year, "last_value": start}
        )
    )


async def allocate_number(
    db: AsyncSession,
    owner_id: UUID,
    kind: SequenceKind,
    year: Optional[int] = None,
) -> str:
    """
    Allocate the next number for (owner, kind, year) inside the caller's
    transaction. Does not commit.
    """
    kind = SequenceKind(kind)
    year = year or date.today().year
    await _ensure_sequence_row(db, owner_id, kind, year)
    result = await db.execute(
        update(DocumentSequence)
        .where(*_sequence_filter(owner_id, kind, year))
        .values(last_value=DocumentSequence.last_value + 1)
        .returning(DocumentSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one()
    number = format_sequence_number(kind, year, value)
    logger.info("sequence_allocated", owner_id=str(owner_id), kind=kind.value, number=number)
    return number


async def peek_next_number(
    db: AsyncSession,
    owner_id: UUID,
    kind: SequenceKind,
    year: Optional[int] = None,
) -> str:
    """Number the next allocation would return. Read-only; consumes nothing."""
    kind = SequenceKind(kind)
    year = year or date.today().year
    result = await db.execute(
        select(DocumentSequence.last_value).where(*_sequence_filter(owner_id, kind, year))
    )
    last = result.scalar_one_or_none()
    current = await _current_max(db, owner_id, kind, year)
    return format_sequence_number(kind, year, max(last or 0, current) + 1)


async def generate_invoice_number(db: AsyncSession, owner_id: UUID) -> str:
    return await allocate_number(db, owner_id, SequenceKind.invoice)


async def generate_credit_note_number(db: AsyncSession, owner_id: UUID) -> str:
    return await allocate_number(db, owner_id, SequenceKind.credit_note)


async def generate_student_number(db: AsyncSession, owner_id: UUID) -> str:
    return await allocate_number(db, owner_id, SequenceKind.student)
