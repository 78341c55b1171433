"""Recurring invoices service: templates and the generation run."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.clients.service import get_owned_client
from app.core.config import BillingProfile
from app.core.enums import InvoiceStatus, RecurringStatus
from app.core.exceptions import ConflictError, NotFoundError, ServiceError, ValidationFailed
from app.core.logging import get_logger
from app.core.models import Invoice, InvoiceItem, RecurringInvoice
from app.core.recurrence import is_due, next_instance_date, should_complete
from app.core.sequence_service import generate_invoice_number
from app.core.totals import apply_totals
from app.db.session import utcnow

from .schemas import RecurringInvoiceCreate, RecurringInvoiceResponse, RecurringInvoiceUpdate

logger = get_logger(__name__)


@dataclass
class GenerationResult:
    run_date: date
    invoice_numbers: List[str] = field(default_factory=list)
    completed: int = 0
    failed: int = 0


def _to_response(t: RecurringInvoice) -> RecurringInvoiceResponse:
    return RecurringInvoiceResponse(
        id=t.id,
        client_id=t.client_id,
        frequency=t.frequency,
        start_date=t.start_date,
        end_date=t.end_date,
        description=t.description,
        amount=t.amount,
        tax_rate=t.tax_rate,
        currency_code=t.currency_code,
        status=t.status,
        last_generated=t.last_generated,
        last_invoice_date=t.last_invoice_date,
        occurrences_generated=t.occurrences_generated or 0,
        next_invoice_date=next_instance_date(t) if t.status != RecurringStatus.completed.value else None,
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


async def _get_owned(db: AsyncSession, owner_id: UUID, template_id: UUID) -> RecurringInvoice:
    result = await db.execute(
        select(RecurringInvoice).where(RecurringInvoice.id == template_id, RecurringInvoice.owner_id == owner_id)
    )
    t = result.scalar_one_or_none()
    if not t:
        raise NotFoundError("Recurring invoice")
    return t


async def create_recurring_invoice(
    db: AsyncSession,
    owner_id: UUID,
    payload: RecurringInvoiceCreate,
    profile: BillingProfile,
) -> RecurringInvoiceResponse:
    client = await get_owned_client(db, owner_id, payload.client_id)
    t = RecurringInvoice(
        owner_id=owner_id,
        client_id=client.id,
        frequency=payload.frequency.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        description=payload.description.strip(),
        amount=payload.amount,
        tax_rate=payload.tax_rate if payload.tax_rate is not None else profile.default_tax_rate,
        currency_code=(payload.currency_code or client.currency_code or profile.currency_code).upper(),
        status=RecurringStatus.active.value,
        occurrences_generated=0,
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    logger.info("recurring_invoice_created", owner_id=str(owner_id), template_id=str(t.id), frequency=t.frequency)
    return _to_response(t)


async def list_recurring_invoices(
    db: AsyncSession,
    owner_id: UUID,
    status: Optional[RecurringStatus] = None,
    client_id: Optional[UUID] = None,
) -> List[RecurringInvoiceResponse]:
    stmt = select(RecurringInvoice).where(RecurringInvoice.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(RecurringInvoice.status == status.value)
    if client_id is not None:
        stmt = stmt.where(RecurringInvoice.client_id == client_id)
    result = await db.execute(stmt.order_by(RecurringInvoice.start_date, RecurringInvoice.created_at))
    return [_to_response(t) for t in result.scalars().all()]


async def get_recurring_invoice(db: AsyncSession, owner_id: UUID, template_id: UUID) -> RecurringInvoiceResponse:
    return _to_response(await _get_owned(db, owner_id, template_id))


async def update_recurring_invoice(
    db: AsyncSession,
    owner_id: UUID,
    template_id: UUID,
    payload: RecurringInvoiceUpdate,
) -> RecurringInvoiceResponse:
    t = await _get_owned(db, owner_id, template_id)
    if t.status == RecurringStatus.completed.value:
        raise ConflictError("Completed recurring invoices cannot be modified")
    data = payload.model_dump(exclude_unset=True)
    for key in ("description", "amount", "tax_rate", "currency_code"):
        if key in data and data[key] is None:
            raise ValidationFailed(f"{key} cannot be empty")
    if data.get("end_date") is not None and data["end_date"] <= t.start_date:
        raise ValidationFailed("End date must be after the start date")
    for key, value in data.items():
        setattr(t, key, value.upper() if key == "currency_code" else value)
    await db.commit()
    await db.refresh(t)
    return _to_response(t)


async def set_status(
    db: AsyncSession,
    owner_id: UUID,
    template_id: UUID,
    target: RecurringStatus,
) -> RecurringInvoiceResponse:
    """active <-> paused. completed is set by the generation run only."""
    t = await _get_owned(db, owner_id, template_id)
    if t.status == RecurringStatus.completed.value:
        raise ConflictError("Completed recurring invoices cannot be reactivated")
    if target == RecurringStatus.completed:
        raise ValidationFailed("Recurring invoices are completed automatically when their end date is reached")
    if t.status != target.value:
        t.status = target.value
        await db.commit()
        await db.refresh(t)
        logger.info("recurring_invoice_status_changed", owner_id=str(owner_id), template_id=str(template_id), status=target.value)
    return _to_response(t)


async def delete_recurring_invoice(db: AsyncSession, owner_id: UUID, template_id: UUID) -> None:
    """Generated invoices are kept; their template link is cleared."""
    t = await _get_owned(db, owner_id, template_id)
    result = await db.execute(select(Invoice).where(Invoice.recurring_invoice_id == t.id))
    for inv in result.scalars().all():
        inv.recurring_invoice_id = None
    await db.delete(t)
    await db.commit()
    logger.info("recurring_invoice_deleted", owner_id=str(owner_id), template_id=str(template_id))


def _complete(t: RecurringInvoice) -> None:
    t.status = RecurringStatus.completed.value


def locked_template_query(template_id: UUID):
    """Template row, locked until the end of the transaction and reloaded from the database."""
    return (
        select(RecurringInvoice)
        .where(RecurringInvoice.id == template_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


async def _claim_occurrence(db: AsyncSession, t: RecurringInvoice, instance_date: date) -> None:
    """Advance occurrences_generated only if no other run has advanced it since t was read."""
    seen = t.occurrences_generated or 0
    now = utcnow()
    result = await db.execute(
        update(RecurringInvoice)
        .where(RecurringInvoice.id == t.id, RecurringInvoice.occurrences_generated == seen)
        .values(occurrences_generated=seen + 1, last_invoice_date=instance_date, last_generated=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError("Recurring invoice instance was already generated by another run")
    t.occurrences_generated = seen + 1
    t.last_invoice_date = instance_date
    t.last_generated = now


async def _generate_for_template(
    db: AsyncSession,
    t: RecurringInvoice,
    today: date,
    profile: BillingProfile,
) -> Optional[str]:
    """
    One template, one transaction. Returns the new invoice number, if any.

    t must have been read with locked_template_query so the due check sees
    the latest occurrence count; the claim below still guards databases
    without row locks.
    """
    if should_complete(t, today):
        _complete(t)
        await db.commit()
        return None
    if not is_due(t, today):
        await db.commit()
        return None

    instance_date = next_instance_date(t)
    await _claim_occurrence(db, t, instance_date)
    number = await generate_invoice_number(db, t.owner_id)
    inv = Invoice(
        owner_id=t.owner_id,
        client_id=t.client_id,
        recurring_invoice_id=t.id,
        number=number,
        date=instance_date,
        due_date=instance_date + timedelta(days=profile.recurring_due_days),
        currency_code=t.currency_code,
        tax_rate=t.tax_rate,
        status=InvoiceStatus.draft.value,
        items=[InvoiceItem(position=0, description=t.description, quantity=1, rate=t.amount)],
    )
    apply_totals(inv)
    db.add(inv)
    if should_complete(t, today):
        _complete(t)
    await db.commit()
    return number


async def generate_recurring_invoices(
    db: AsyncSession,
    today: date,
    profile: BillingProfile,
    owner_id: Optional[UUID] = None,
) -> GenerationResult:
    """
    Create at most one draft invoice per due, active template.

    Templates are processed in separate transactions so a failure on one is
    logged and rolled back without affecting the rest of the run.
    """
    stmt = select(RecurringInvoice.id).where(RecurringInvoice.status == RecurringStatus.active.value)
    if owner_id is not None:
        stmt = stmt.where(RecurringInvoice.owner_id == owner_id)
    template_ids = list((await db.execute(stmt.order_by(RecurringInvoice.created_at))).scalars().all())
    await db.commit()

    outcome = GenerationResult(run_date=today)
    for template_id in template_ids:
        t = (await db.execute(locked_template_query(template_id))).scalar_one_or_none()
        if t is None or t.status != RecurringStatus.active.value:
            await db.rollback()
            continue
        try:
            number = await _generate_for_template(db, t, today, profile)
        except ConflictError:
            await db.rollback()
            logger.warning("recurring_invoice_already_generated", template_id=str(template_id))
            continue
        except (ServiceError, SQLAlchemyError):
            await db.rollback()
            outcome.failed += 1
            logger.exception("recurring_invoice_generation_failed", template_id=str(template_id))
            continue
        if number:
            outcome.invoice_numbers.append(number)
            logger.info(
                "recurring_invoice_generated",
                owner_id=str(t.owner_id),
                template_id=str(template_id),
                number=number,
                occurrence=t.occurrences_generated,
            )
        if t.status == RecurringStatus.completed.value:
            outcome.completed += 1
            logger.info("recurring_invoice_completed", owner_id=str(t.owner_id), template_id=str(template_id))

    logger.info(
        "recurring_generation_finished",
        run_date=today.isoformat(),
        generated=len(outcome.invoice_numbers),
        completed=outcome.completed,
        failed=outcome.failed,
    )
    return outcome
