"""Credit notes service: numbering, derived totals, issue lifecycle."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.clients.service import get_owned_client
from app.core.config import BillingProfile
from app.core.enums import CreditNoteStatus, SequenceKind
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.logging import get_logger
from app.core.models import CreditNote, CreditNoteItem, Invoice
from app.core.sequence_service import generate_credit_note_number, peek_next_number
from app.core.totals import apply_totals

from .schemas import CreditNoteCreate, CreditNoteItemInput, CreditNoteResponse, CreditNoteUpdate

logger = get_logger(__name__)


def _to_response(cn: CreditNote) -> CreditNoteResponse:
    return CreditNoteResponse.model_validate(cn)


def _new_items(items: List[CreditNoteItemInput]) -> List[CreditNoteItem]:
    return [
        CreditNoteItem(position=i, description=it.description.strip(), quantity=it.quantity, rate=it.rate)
        for i, it in enumerate(items)
    ]


async def _get_owned(db: AsyncSession, owner_id: UUID, credit_note_id: UUID) -> CreditNote:
    result = await db.execute(
        select(CreditNote)
        .where(CreditNote.id == credit_note_id, CreditNote.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    cn = result.scalar_one_or_none()
    if not cn:
        raise NotFoundError("Credit note")
    return cn


async def _check_invoice_link(db: AsyncSession, owner_id: UUID, client_id: UUID, invoice_id: Optional[UUID]) -> None:
    if invoice_id is None:
        return
    result = await db.execute(
        select(Invoice.client_id).where(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
    )
    inv_client = result.scalar_one_or_none()
    if inv_client is None:
        raise NotFoundError("Invoice")
    if inv_client != client_id:
        raise ValidationFailed("Credited invoice belongs to a different client")


def _ensure_draft(cn: CreditNote) -> None:
    if cn.status != CreditNoteStatus.draft.value:
        raise ConflictError("Issued credit notes cannot be modified")


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("credit_note_commit_conflict", error=str(e.orig))
        raise ConflictError("Credit note could not be saved, please retry") from e


async def create_credit_note(
    db: AsyncSession,
    owner_id: UUID,
    payload: CreditNoteCreate,
    profile: BillingProfile,
) -> CreditNoteResponse:
    client = await get_owned_client(db, owner_id, payload.client_id)
    await _check_invoice_link(db, owner_id, client.id, payload.invoice_id)
    number = await generate_credit_note_number(db, owner_id)
    cn = CreditNote(
        owner_id=owner_id,
        client_id=client.id,
        invoice_id=payload.invoice_id,
        number=number,
        date=payload.date or date.today(),
        reason=payload.reason.strip(),
        currency_code=(payload.currency_code or client.currency_code or profile.currency_code).upper(),
        tax_rate=payload.tax_rate if payload.tax_rate is not None else profile.default_tax_rate,
        status=CreditNoteStatus.draft.value,
        items=_new_items(payload.items),
    )
    apply_totals(cn)
    db.add(cn)
    await _commit(db)
    logger.info("credit_note_created", owner_id=str(owner_id), credit_note_id=str(cn.id), number=number, total=str(cn.total))
    return _to_response(await _get_owned(db, owner_id, cn.id))


async def next_credit_note_number(db: AsyncSession, owner_id: UUID) -> str:
    return await peek_next_number(db, owner_id, SequenceKind.credit_note)


async def list_credit_notes(
    db: AsyncSession,
    owner_id: UUID,
    client_id: Optional[UUID] = None,
    status: Optional[CreditNoteStatus] = None,
) -> List[CreditNoteResponse]:
    stmt = select(CreditNote).where(CreditNote.owner_id == owner_id)
    if client_id is not None:
        stmt = stmt.where(CreditNote.client_id == client_id)
    if status is not None:
        stmt = stmt.where(CreditNote.status == status.value)
    stmt = stmt.order_by(CreditNote.date.desc(), CreditNote.number.desc())
    result = await db.execute(stmt)
    return [_to_response(cn) for cn in result.scalars().all()]


async def get_credit_note(db: AsyncSession, owner_id: UUID, credit_note_id: UUID) -> CreditNoteResponse:
    return _to_response(await _get_owned(db, owner_id, credit_note_id))


async def update_credit_note(
    db: AsyncSession,
    owner_id: UUID,
    credit_note_id: UUID,
    payload: CreditNoteUpdate,
) -> CreditNoteResponse:
    cn = await _get_owned(db, owner_id, credit_note_id)
    _ensure_draft(cn)
    data = payload.model_dump(exclude_unset=True)
    for key in ("date", "reason", "currency_code", "tax_rate"):
        if key in data and data[key] is None:
            raise ValidationFailed(f"{key} cannot be empty")
    if "invoice_id" in data:
        await _check_invoice_link(db, owner_id, cn.client_id, data["invoice_id"])
    for key, value in data.items():
        setattr(cn, key, value.upper() if key == "currency_code" else value)
    if "tax_rate" in data:
        apply_totals(cn)
    await _commit(db)
    return _to_response(await _get_owned(db, owner_id, credit_note_id))


async def replace_items(
    db: AsyncSession,
    owner_id: UUID,
    credit_note_id: UUID,
    items: List[CreditNoteItemInput],
) -> CreditNoteResponse:
    cn = await _get_owned(db, owner_id, credit_note_id)
    _ensure_draft(cn)
    cn.items = _new_items(items)
    totals = apply_totals(cn)
    await _commit(db)
    logger.info(
        "credit_note_items_replaced",
        owner_id=str(owner_id),
        credit_note_id=str(credit_note_id),
        total=str(totals.total),
    )
    return _to_response(await _get_owned(db, owner_id, credit_note_id))


async def issue_credit_note(db: AsyncSession, owner_id: UUID, credit_note_id: UUID) -> CreditNoteResponse:
    cn = await _get_owned(db, owner_id, credit_note_id)
    if cn.status != CreditNoteStatus.draft.value:
        raise ConflictError("Credit note has already been issued")
    if not cn.items:
        raise ValidationFailed("A credit note needs at least one item before it can be issued")
    cn.status = CreditNoteStatus.issued.value
    await _commit(db)
    logger.info("credit_note_issued", owner_id=str(owner_id), credit_note_id=str(credit_note_id), total=str(cn.total))
    return _to_response(await _get_owned(db, owner_id, credit_note_id))


async def delete_credit_note(db: AsyncSession, owner_id: UUID, credit_note_id: UUID) -> None:
    cn = await _get_owned(db, owner_id, credit_note_id)
    if cn.status != CreditNoteStatus.draft.value:
        raise ConflictError("Only draft credit notes can be deleted")
    await db.delete(cn)
    await db.commit()
    logger.info("credit_note_deleted", owner_id=str(owner_id), credit_note_id=str(credit_note_id))
