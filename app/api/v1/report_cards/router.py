"""Report cards router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.enums import ReportCardStatus
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    ReportCardCreate,
    ReportCardPopulateRequest,
    ReportCardResponse,
    ReportCardStatusUpdate,
    ReportCardUpdate,
)
from . import service

router = APIRouter(prefix="/api/v1/report-cards", tags=["report-cards"])


@router.post("", response_model=ReportCardResponse, status_code=status.HTTP_201_CREATED)
async def create_report_card(
    payload: ReportCardCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportCardResponse:
    try:
        return await service.create_report_card(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ReportCardResponse])
async def list_report_cards(
    student_id: Optional[UUID] = Query(None),
    term: Optional[int] = Query(None, ge=1, le=4),
    year: Optional[int] = Query(None),
    status_filter: Optional[ReportCardStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ReportCardResponse]:
    return await service.list_report_cards(
        db, current_user.id, student_id=student_id, term=term, year=year, status=status_filter
    )


@router.get("/{report_card_id}", response_model=ReportCardResponse)
async def get_report_card(
    report_card_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportCardResponse:
    try:
        return await service.get_report_card(db, current_user.id, report_card_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{report_card_id}", response_model=ReportCardResponse)
async def update_report_card(
    report_card_id: UUID,
    payload: ReportCardUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportCardResponse:
    try:
        return await service.update_report_card(db, current_user.id, report_card_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{report_card_id}/status", response_model=ReportCardResponse)
async def change_report_card_status(
    report_card_id: UUID,
    payload: ReportCardStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportCardResponse:
    try:
        return await service.change_status(db, current_user.id, report_card_id, payload.status)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{report_card_id}/populate", response_model=ReportCardResponse)
async def populate_report_card(
    report_card_id: UUID,
    payload: ReportCardPopulateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportCardResponse:
    try:
        return await service.populate_report_card(
            db, current_user.id, report_card_id, payload, settings.subject_comment_fallback
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{report_card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report_card(
    report_card_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_report_card(db, current_user.id, report_card_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
