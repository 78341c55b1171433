"""Credit notes router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.invoices.schemas import NextNumberResponse
from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile
from app.core.enums import CreditNoteStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import CreditNoteCreate, CreditNoteItemsReplace, CreditNoteResponse, CreditNoteUpdate
from . import service

router = APIRouter(prefix="/api/v1/credit-notes", tags=["credit-notes"])


@router.post("", response_model=CreditNoteResponse, status_code=status.HTTP_201_CREATED)
async def create_credit_note(
    payload: CreditNoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> CreditNoteResponse:
    try:
        return await service.create_credit_note(db, current_user.id, payload, profile)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[CreditNoteResponse])
async def list_credit_notes(
    client_id: Optional[UUID] = Query(None),
    status_filter: Optional[CreditNoteStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[CreditNoteResponse]:
    return await service.list_credit_notes(db, current_user.id, client_id=client_id, status=status_filter)


@router.get("/next-number", response_model=NextNumberResponse)
async def get_next_credit_note_number(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> NextNumberResponse:
    return NextNumberResponse(number=await service.next_credit_note_number(db, current_user.id))


@router.get("/{credit_note_id}", response_model=CreditNoteResponse)
async def get_credit_note(
    credit_note_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CreditNoteResponse:
    try:
        return await service.get_credit_note(db, current_user.id, credit_note_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{credit_note_id}", response_model=CreditNoteResponse)
async def update_credit_note(
    credit_note_id: UUID,
    payload: CreditNoteUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CreditNoteResponse:
    try:
        return await service.update_credit_note(db, current_user.id, credit_note_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{credit_note_id}/items", response_model=CreditNoteResponse)
async def replace_credit_note_items(
    credit_note_id: UUID,
    payload: CreditNoteItemsReplace,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CreditNoteResponse:
    try:
        return await service.replace_items(db, current_user.id, credit_note_id, payload.items)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{credit_note_id}/issue", response_model=CreditNoteResponse)
async def issue_credit_note(
    credit_note_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CreditNoteResponse:
    try:
        return await service.issue_credit_note(db, current_user.id, credit_note_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{credit_note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_credit_note(
    credit_note_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_credit_note(db, current_user.id, credit_note_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
