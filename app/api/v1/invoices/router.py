"""Invoices router: CRUD, items, status, payments, bulk CSV, overdue sweep."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile
from app.core.enums import InvoiceStatus
from app.core.exceptions import ServiceError
from app.core.tabular_import import read_upload
from app.db.session import get_db

from .schemas import (
    BulkInvoiceResponse,
    InvoiceCreate,
    InvoiceItemInput,
    InvoiceItemsReplace,
    InvoiceItemUpdate,
    InvoiceResponse,
    InvoiceStatusUpdate,
    InvoiceUpdate,
    NextNumberResponse,
    OverdueSweepResponse,
    PaymentRecord,
)
from . import service

router = APIRouter(prefix="/api/v1/invoices", tags=["invoices"])


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> InvoiceResponse:
    try:
        return await service.create_invoice(db, current_user.id, payload, profile)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    client_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, description="Match on invoice number or client name"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[InvoiceResponse]:
    return await service.list_invoices(
        db,
        current_user.id,
        status=status_filter,
        client_id=client_id,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/next-number", response_model=NextNumberResponse)
async def get_next_invoice_number(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> NextNumberResponse:
    """Preview only; the number is allocated when the invoice is saved."""
    return NextNumberResponse(number=await service.next_invoice_number(db, current_user.id))


@router.post("/bulk", response_model=BulkInvoiceResponse, status_code=status.HTTP_201_CREATED)
async def bulk_create_invoices(
    file: UploadFile = File(..., description="CSV with columns: client_id, date, due_date, tax_rate, items (desc|qty|rate;...)"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> BulkInvoiceResponse:
    try:
        rows = await read_upload(file, service.BULK_REQUIRED_HEADERS)
        created = await service.bulk_create_invoices(db, current_user.id, rows, profile)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return BulkInvoiceResponse(created=len(created), invoices=created)


@router.post("/mark-overdue", response_model=OverdueSweepResponse)
async def mark_overdue_invoices(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> OverdueSweepResponse:
    today = date.today()
    updated = await service.mark_overdue_invoices(db, today, owner_id=current_user.id)
    return OverdueSweepResponse(updated=updated, as_of=today)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.get_invoice(db, current_user.id, invoice_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: UUID,
    payload: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.update_invoice(db, current_user.id, invoice_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_invoice(db, current_user.id, invoice_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Line items ---
@router.put("/{invoice_id}/items", response_model=InvoiceResponse)
async def replace_invoice_items(
    invoice_id: UUID,
    payload: InvoiceItemsReplace,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.replace_items(db, current_user.id, invoice_id, payload.items)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{invoice_id}/items", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def add_invoice_item(
    invoice_id: UUID,
    payload: InvoiceItemInput,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.add_item(db, current_user.id, invoice_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def update_invoice_item(
    invoice_id: UUID,
    item_id: UUID,
    payload: InvoiceItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.update_item(db, current_user.id, invoice_id, item_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def delete_invoice_item(
    invoice_id: UUID,
    item_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.delete_item(db, current_user.id, invoice_id, item_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Lifecycle ---
@router.post("/{invoice_id}/status", response_model=InvoiceResponse)
async def change_invoice_status(
    invoice_id: UUID,
    payload: InvoiceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.change_status(db, current_user.id, invoice_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{invoice_id}/payment", response_model=InvoiceResponse)
async def record_invoice_payment(
    invoice_id: UUID,
    payload: PaymentRecord,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceResponse:
    try:
        return await service.record_payment(db, current_user.id, invoice_id, payload.paid_on)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
