"""Reports service: revenue by month, top clients, dashboard totals. Only paid invoices count as revenue."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import BillingProfile
from app.core.enums import InvoiceStatus
from app.core.exceptions import ValidationFailed
from app.core.models import Client, Invoice, Student
from app.core.totals import quantize_money

from .schemas import DashboardSummary, MonthlyRevenueItem, TopClientItem


def _created_between(start: date, end: date):
    """Inclusive calendar-date range over Invoice.created_at (UTC)."""
    if end < start:
        raise ValidationFailed("End date cannot be before start date")
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return Invoice.created_at >= lower, Invoice.created_at < upper


async def get_monthly_revenue(db: AsyncSession, owner_id: UUID, start: date, end: date) -> List[MonthlyRevenueItem]:
    """Paid invoice totals grouped by month of creation, oldest first, labelled like 'Jan 2025'."""
    result = await db.execute(
        select(Invoice.created_at, Invoice.total).where(
            Invoice.owner_id == owner_id,
            Invoice.status == InvoiceStatus.paid.value,
            *_created_between(start, end),
        )
    )
    buckets: Dict[Tuple[int, int], Decimal] = {}
    for created_at, total in result.all():
        key = (created_at.year, created_at.month)
        buckets[key] = buckets.get(key, Decimal("0")) + (total or Decimal("0"))
    return [
        MonthlyRevenueItem(month=date(year, month, 1).strftime("%b %Y"), amount=quantize_money(amount))
        for (year, month), amount in sorted(buckets.items())
    ]


async def get_top_clients(
    db: AsyncSession,
    owner_id: UUID,
    start: date,
    end: date,
    limit: int = 5,
) -> List[TopClientItem]:
    paid_total = func.coalesce(func.sum(Invoice.total), 0).label("total")
    result = await db.execute(
        select(Client.id, Client.name, paid_total)
        .join(Invoice, Invoice.client_id == Client.id)
        .where(
            Client.owner_id == owner_id,
            Invoice.owner_id == owner_id,
            Invoice.status == InvoiceStatus.paid.value,
            *_created_between(start, end),
        )
        .group_by(Client.id, Client.name)
        .order_by(paid_total.desc(), Client.name)
        .limit(limit)
    )
    return [
        TopClientItem(client_id=row.id, name=row.name, total=quantize_money(Decimal(str(row.total))))
        for row in result.all()
    ]


async def _sum_by_status(db: AsyncSession, owner_id: UUID, status: InvoiceStatus) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Invoice.total), 0)).where(
            Invoice.owner_id == owner_id, Invoice.status == status.value
        )
    )
    return quantize_money(Decimal(str(result.scalar_one())))


async def get_dashboard_summary(db: AsyncSession, owner_id: UUID, profile: BillingProfile) -> DashboardSummary:
    invoice_count = await db.execute(select(func.count(Invoice.id)).where(Invoice.owner_id == owner_id))
    client_count = await db.execute(select(func.count(Client.id)).where(Client.owner_id == owner_id))
    student_count = await db.execute(select(func.count(Student.id)).where(Student.owner_id == owner_id))
    return DashboardSummary(
        currency_code=profile.currency_code,
        total_revenue=await _sum_by_status(db, owner_id, InvoiceStatus.paid),
        outstanding=await _sum_by_status(db, owner_id, InvoiceStatus.sent),
        overdue=await _sum_by_status(db, owner_id, InvoiceStatus.overdue),
        invoice_count=invoice_count.scalar_one(),
        client_count=client_count.scalar_one(),
        student_count=student_count.scalar_one(),
    )
