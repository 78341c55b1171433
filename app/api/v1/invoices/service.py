"""Invoices service: numbering, line items with derived totals, status lifecycle, payments, bulk import."""

from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.clients.service import get_owned_client
from app.core.config import BillingProfile
from app.core.enums import InvoiceStatus, SequenceKind
from app.core.exceptions import ConflictError, NotFoundError, ServiceError, ValidationFailed
from app.core.logging import get_logger
from app.core.models import Client, Invoice, InvoiceItem
from app.core.sequence_service import generate_invoice_number, peek_next_number
from app.core.tabular_import import Row, format_row_errors
from app.core.totals import apply_totals

from .schemas import (
    InvoiceCreate,
    InvoiceItemInput,
    InvoiceItemResponse,
    InvoiceItemUpdate,
    InvoiceResponse,
    InvoiceUpdate,
)

logger = get_logger(__name__)

BULK_REQUIRED_HEADERS = ["client_id", "date", "due_date", "tax_rate", "items"]

# Allowed lifecycle moves. paid is terminal.
STATUS_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    InvoiceStatus.draft.value: (InvoiceStatus.sent.value,),
    InvoiceStatus.sent.value: (InvoiceStatus.paid.value, InvoiceStatus.overdue.value),
    InvoiceStatus.overdue.value: (InvoiceStatus.paid.value,),
    InvoiceStatus.paid.value: (),
}


def _item_to_response(item: InvoiceItem) -> InvoiceItemResponse:
    return InvoiceItemResponse.model_validate(item)


def _to_response(inv: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=inv.id,
        number=inv.number,
        client_id=inv.client_id,
        client_name=inv.client.name if inv.client else None,
        recurring_invoice_id=inv.recurring_invoice_id,
        date=inv.date,
        due_date=inv.due_date,
        currency_code=inv.currency_code,
        tax_rate=inv.tax_rate,
        subtotal=inv.subtotal,
        tax_amount=inv.tax_amount,
        total=inv.total,
        status=inv.status,
        paid_on=inv.paid_on,
        notes=inv.notes,
        items=[_item_to_response(i) for i in inv.items],
        created_at=inv.created_at,
        updated_at=inv.updated_at,
    )


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, ())


def _new_items(items: List[InvoiceItemInput], start: int = 0) -> List[InvoiceItem]:
    return [
        InvoiceItem(position=start + i, description=it.description.strip(), quantity=it.quantity, rate=it.rate)
        for i, it in enumerate(items)
    ]


def _renumber(inv: Invoice) -> None:
    for i, item in enumerate(inv.items):
        item.position = i


async def get_owned_invoice(db: AsyncSession, owner_id: UUID, invoice_id: UUID) -> Invoice:
    result = await db.execute(
        select(Invoice)
        .where(Invoice.id == invoice_id, Invoice.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    inv = result.scalar_one_or_none()
    if not inv:
        raise NotFoundError("Invoice")
    return inv


def _ensure_editable(inv: Invoice) -> None:
    if inv.status == InvoiceStatus.paid.value:
        raise ConflictError("Paid invoices cannot be modified")


async def _commit(db: AsyncSession, conflict_message: str) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("invoice_commit_conflict", error=str(e.orig))
        raise ConflictError(conflict_message) from e


def build_invoice(
    client: Client,
    owner_id: UUID,
    number: str,
    payload: InvoiceCreate,
    profile: BillingProfile,
    today: Optional[date] = None,
) -> Invoice:
    """Apply billing defaults and derive totals. The caller allocates the number and commits."""
    inv_date = payload.date or today or date.today()
    if payload.due_date is not None:
        due_date = payload.due_date
    else:
        terms = client.payment_terms if client.payment_terms is not None else profile.default_due_days
        due_date = inv_date + timedelta(days=terms)
    if due_date < inv_date:
        raise ValidationFailed("Due date cannot be before the invoice date")
    inv = Invoice(
        owner_id=owner_id,
        client_id=client.id,
        number=number,
        date=inv_date,
        due_date=due_date,
        currency_code=(payload.currency_code or client.currency_code or profile.currency_code).upper(),
        tax_rate=payload.tax_rate if payload.tax_rate is not None else profile.default_tax_rate,
        status=InvoiceStatus.draft.value,
        notes=payload.notes,
        items=_new_items(payload.items),
    )
    apply_totals(inv)
    return inv


async def create_invoice(
    db: AsyncSession,
    owner_id: UUID,
    payload: InvoiceCreate,
    profile: BillingProfile,
) -> InvoiceResponse:
    client = await get_owned_client(db, owner_id, payload.client_id)
    number = await generate_invoice_number(db, owner_id)
    inv = build_invoice(client, owner_id, number, payload, profile)
    db.add(inv)
    await _commit(db, "Invoice number already exists, please retry")
    logger.info(
        "invoice_created",
        owner_id=str(owner_id),
        invoice_id=str(inv.id),
        number=number,
        total=str(inv.total),
    )
    return _to_response(await get_owned_invoice(db, owner_id, inv.id))


async def next_invoice_number(db: AsyncSession, owner_id: UUID) -> str:
    return await peek_next_number(db, owner_id, SequenceKind.invoice)


async def list_invoices(
    db: AsyncSession,
    owner_id: UUID,
    status: Optional[InvoiceStatus] = None,
    client_id: Optional[UUID] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[InvoiceResponse]:
    stmt = select(Invoice).join(Client, Client.id == Invoice.client_id).where(Invoice.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(Invoice.status == status.value)
    if client_id is not None:
        stmt = stmt.where(Invoice.client_id == client_id)
    if date_from is not None:
        stmt = stmt.where(Invoice.date >= date_from)
    if date_to is not None:
        stmt = stmt.where(Invoice.date <= date_to)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        stmt = stmt.where(or_(func.lower(Invoice.number).like(term), func.lower(Client.name).like(term)))
    stmt = stmt.order_by(Invoice.date.desc(), Invoice.number.desc())
    result = await db.execute(stmt)
    return [_to_response(inv) for inv in result.scalars().all()]


async def get_invoice(db: AsyncSession, owner_id: UUID, invoice_id: UUID) -> InvoiceResponse:
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def update_invoice(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    payload: InvoiceUpdate,
) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    _ensure_editable(inv)
    data = payload.model_dump(exclude_unset=True)
    for key in ("date", "due_date", "currency_code", "tax_rate"):
        if key in data and data[key] is None:
            raise ValidationFailed(f"{key} cannot be empty")
    for key, value in data.items():
        setattr(inv, key, value.upper() if key == "currency_code" else value)
    if inv.due_date < inv.date:
        raise ValidationFailed("Due date cannot be before the invoice date")
    if "tax_rate" in data:
        apply_totals(inv)
    await _commit(db, "Invoice could not be updated")
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def replace_items(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    items: List[InvoiceItemInput],
) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    _ensure_editable(inv)
    inv.items = _new_items(items)
    totals = apply_totals(inv)
    await _commit(db, "Invoice items could not be saved")
    logger.info("invoice_items_replaced", owner_id=str(owner_id), invoice_id=str(invoice_id), total=str(totals.total))
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def add_item(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    item: InvoiceItemInput,
) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    _ensure_editable(inv)
    inv.items.extend(_new_items([item], start=len(inv.items)))
    totals = apply_totals(inv)
    await _commit(db, "Invoice item could not be saved")
    logger.info("invoice_item_added", owner_id=str(owner_id), invoice_id=str(invoice_id), total=str(totals.total))
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


def _find_item(inv: Invoice, item_id: UUID) -> InvoiceItem:
    for item in inv.items:
        if item.id == item_id:
            return item
    raise NotFoundError("Invoice item")


async def update_item(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    item_id: UUID,
    payload: InvoiceItemUpdate,
) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    _ensure_editable(inv)
    item = _find_item(inv, item_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            raise ValidationFailed(f"{key} cannot be empty")
        setattr(item, key, value)
    totals = apply_totals(inv)
    await _commit(db, "Invoice item could not be saved")
    logger.info("invoice_item_updated", owner_id=str(owner_id), invoice_id=str(invoice_id), total=str(totals.total))
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def delete_item(db: AsyncSession, owner_id: UUID, invoice_id: UUID, item_id: UUID) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    _ensure_editable(inv)
    inv.items.remove(_find_item(inv, item_id))
    _renumber(inv)
    totals = apply_totals(inv)
    await _commit(db, "Invoice item could not be removed")
    logger.info("invoice_item_removed", owner_id=str(owner_id), invoice_id=str(invoice_id), total=str(totals.total))
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def change_status(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    target: InvoiceStatus,
    today: Optional[date] = None,
) -> InvoiceResponse:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    if not can_transition(inv.status, target.value):
        raise ConflictError(f"Cannot change invoice status from {inv.status} to {target.value}")
    previous = inv.status
    inv.status = target.value
    if target == InvoiceStatus.paid and inv.paid_on is None:
        inv.paid_on = today or date.today()
    await _commit(db, "Invoice status could not be changed")
    logger.info(
        "invoice_status_changed",
        owner_id=str(owner_id),
        invoice_id=str(invoice_id),
        from_status=previous,
        to_status=target.value,
    )
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def record_payment(
    db: AsyncSession,
    owner_id: UUID,
    invoice_id: UUID,
    paid_on: Optional[date] = None,
) -> InvoiceResponse:
    """Mark a sent or overdue invoice as paid in full."""
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    if not can_transition(inv.status, InvoiceStatus.paid.value):
        raise ConflictError(f"Cannot record a payment on a {inv.status} invoice")
    paid_on = paid_on or date.today()
    if paid_on < inv.date:
        raise ValidationFailed("Payment date cannot be before the invoice date")
    inv.status = InvoiceStatus.paid.value
    inv.paid_on = paid_on
    await _commit(db, "Payment could not be recorded")
    logger.info(
        "invoice_payment_recorded",
        owner_id=str(owner_id),
        invoice_id=str(invoice_id),
        amount=str(inv.total),
        paid_on=paid_on.isoformat(),
    )
    return _to_response(await get_owned_invoice(db, owner_id, invoice_id))


async def delete_invoice(db: AsyncSession, owner_id: UUID, invoice_id: UUID) -> None:
    inv = await get_owned_invoice(db, owner_id, invoice_id)
    if inv.status != InvoiceStatus.draft.value:
        raise ConflictError("Only draft invoices can be deleted")
    await db.delete(inv)
    await db.commit()
    logger.info("invoice_deleted", owner_id=str(owner_id), invoice_id=str(invoice_id), number=inv.number)


async def mark_overdue_invoices(db: AsyncSession, today: date, owner_id: Optional[UUID] = None) -> int:
    """Flip sent invoices past their due date to overdue. Returns the number changed."""
    stmt = (
        update(Invoice)
        .where(Invoice.status == InvoiceStatus.sent.value, Invoice.due_date < today)
        .values(status=InvoiceStatus.overdue.value)
        .execution_options(synchronize_session=False)
    )
    if owner_id is not None:
        stmt = stmt.where(Invoice.owner_id == owner_id)
    result = await db.execute(stmt)
    await db.commit()
    count = result.rowcount or 0
    logger.info("invoices_marked_overdue", owner_id=str(owner_id) if owner_id else None, count=count, as_of=today.isoformat())
    return count


# --- Bulk create ---
def parse_items_cell(cell: str) -> List[InvoiceItemInput]:
    """
    "Design|2|150.00;Hosting|1|49.99" -> two items. Each entry is
    description|quantity|rate.
    """
    items: List[InvoiceItemInput] = []
    for chunk in (cell or "").split(";"):
        if not chunk.strip():
            continue
        parts = [p.strip() for p in chunk.split("|")]
        if len(parts) != 3:
            raise ValueError(f"item '{chunk.strip()}' must be description|quantity|rate")
        try:
            quantity, rate = Decimal(parts[1]), Decimal(parts[2])
        except InvalidOperation as e:
            raise ValueError(f"item '{parts[0]}' has a non-numeric quantity or rate") from e
        items.append(InvoiceItemInput(description=parts[0], quantity=quantity, rate=rate))
    if not items:
        raise ValueError("at least one item is required")
    return items


def _row_to_create(row: Row) -> InvoiceCreate:
    return InvoiceCreate.model_validate(
        {
            "client_id": row.get("client_id", ""),
            "date": row.get("date") or None,
            "due_date": row.get("due_date") or None,
            "tax_rate": row.get("tax_rate") or None,
            "currency_code": row.get("currency_code") or None,
            "notes": row.get("notes") or None,
            "items": parse_items_cell(row.get("items", "")),
        }
    )


def _validation_message(e: ValidationError) -> str:
    return "; ".join(f"{'.'.join(map(str, err['loc'])) or 'row'}: {err['msg']}" for err in e.errors())


async def bulk_create_invoices(
    db: AsyncSession,
    owner_id: UUID,
    rows: List[tuple],
    profile: BillingProfile,
) -> List[InvoiceResponse]:
    """Every row is validated before anything is written; one bad row rejects the file."""
    result = await db.execute(select(Client).where(Client.owner_id == owner_id))
    clients = {c.id: c for c in result.scalars().all()}

    parsed: List[InvoiceCreate] = []
    errors: List[Tuple[int, str]] = []
    for row_num, row in rows:
        try:
            payload = _row_to_create(row)
        except ValidationError as e:
            errors.append((row_num, _validation_message(e)))
            continue
        except ValueError as e:
            errors.append((row_num, str(e)))
            continue
        if payload.client_id not in clients:
            errors.append((row_num, "client not found"))
            continue
        parsed.append(payload)
    if errors:
        logger.warning("invoice_bulk_rejected", owner_id=str(owner_id), failed_rows=len(errors))
        raise ValidationFailed(format_row_errors(errors))

    created: List[Invoice] = []
    try:
        for payload in parsed:
            number = await generate_invoice_number(db, owner_id)
            inv = build_invoice(clients[payload.client_id], owner_id, number, payload, profile)
            db.add(inv)
            created.append(inv)
        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except IntegrityError as e:
        await db.rollback()
        logger.warning("invoice_bulk_conflict", owner_id=str(owner_id), error=str(e.orig))
        raise ConflictError("Invoices could not be created, no rows were saved") from e
    logger.info("invoices_bulk_created", owner_id=str(owner_id), count=len(created))
    return [_to_response(await get_owned_invoice(db, owner_id, inv.id)) for inv in created]
