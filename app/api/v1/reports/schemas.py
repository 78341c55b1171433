from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel


class MonthlyRevenueItem(BaseModel):
    month: str  # "Jan 2025"
    amount: Decimal


class TopClientItem(BaseModel):
    client_id: UUID
    name: str
    total: Decimal


class DashboardSummary(BaseModel):
    currency_code: str
    total_revenue: Decimal
    outstanding: Decimal
    overdue: Decimal
    invoice_count: int
    client_count: int
    student_count: int


class MonthlyRevenueResponse(BaseModel):
    items: List[MonthlyRevenueItem]
    total: Decimal
