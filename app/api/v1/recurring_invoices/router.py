"""Recurring invoices router: templates, pause/resume, generation run."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile
from app.core.enums import RecurringStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    RecurringGenerationResponse,
    RecurringInvoiceCreate,
    RecurringInvoiceResponse,
    RecurringInvoiceUpdate,
    RecurringStatusUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/recurring-invoices", tags=["recurring-invoices"])


@router.post("", response_model=RecurringInvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_invoice(
    payload: RecurringInvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> RecurringInvoiceResponse:
    try:
        return await service.create_recurring_invoice(db, current_user.id, payload, profile)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[RecurringInvoiceResponse])
async def list_recurring_invoices(
    status_filter: Optional[RecurringStatus] = Query(None, alias="status"),
    client_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[RecurringInvoiceResponse]:
    return await service.list_recurring_invoices(db, current_user.id, status=status_filter, client_id=client_id)


@router.post("/generate", response_model=RecurringGenerationResponse)
async def generate_recurring_invoices(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> RecurringGenerationResponse:
    """Run generation as of today for the current owner's templates."""
    outcome = await service.generate_recurring_invoices(db, date.today(), profile, owner_id=current_user.id)
    return RecurringGenerationResponse(
        run_date=outcome.run_date,
        generated=len(outcome.invoice_numbers),
        invoice_numbers=outcome.invoice_numbers,
        completed=outcome.completed,
        failed=outcome.failed,
    )


@router.get("/{template_id}", response_model=RecurringInvoiceResponse)
async def get_recurring_invoice(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RecurringInvoiceResponse:
    try:
        return await service.get_recurring_invoice(db, current_user.id, template_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{template_id}", response_model=RecurringInvoiceResponse)
async def update_recurring_invoice(
    template_id: UUID,
    payload: RecurringInvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RecurringInvoiceResponse:
    try:
        return await service.update_recurring_invoice(db, current_user.id, template_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{template_id}/status", response_model=RecurringInvoiceResponse)
async def set_recurring_invoice_status(
    template_id: UUID,
    payload: RecurringStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> RecurringInvoiceResponse:
    try:
        return await service.set_status(db, current_user.id, template_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_invoice(
    template_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_recurring_invoice(db, current_user.id, template_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
