"""Reports router: monthly revenue, top clients, dashboard."""

from datetime import date
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import DashboardSummary, MonthlyRevenueResponse, TopClientItem
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get("/monthly-revenue", response_model=MonthlyRevenueResponse)
async def get_monthly_revenue(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MonthlyRevenueResponse:
    try:
        items = await service.get_monthly_revenue(db, current_user.id, start_date, end_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return MonthlyRevenueResponse(items=items, total=sum((i.amount for i in items), Decimal("0.00")))


@router.get("/top-clients", response_model=List[TopClientItem])
async def get_top_clients(
    start_date: date = Query(...),
    end_date: date = Query(...),
    limit: int = Query(5, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[TopClientItem]:
    try:
        return await service.get_top_clients(db, current_user.id, start_date, end_date, limit=limit)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard_summary(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> DashboardSummary:
    return await service.get_dashboard_summary(db, current_user.id, profile)
