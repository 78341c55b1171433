"""Client statements router."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ClientStatementResponse
from . import service

router = APIRouter(prefix="/api/v1/statements", tags=["statements"])


@router.get("/{client_id}", response_model=ClientStatementResponse)
async def get_client_statement(
    client_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> ClientStatementResponse:
    try:
        return await service.get_client_statement(db, current_user.id, client_id, start_date, end_date, profile)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
