"""Client statement schemas."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class StatementEntryResponse(BaseModel):
    date: dt.date
    type: str
    reference: str
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal


class StatementSummaryResponse(BaseModel):
    total_invoices: int
    total_paid: Decimal
    total_outstanding: Decimal
    first_invoice_date: Optional[dt.date] = None
    last_invoice_date: Optional[dt.date] = None


class ClientStatementResponse(BaseModel):
    client_id: UUID
    client_name: str
    currency_code: str
    start_date: dt.date
    end_date: dt.date
    entries: List[StatementEntryResponse]
    summary: StatementSummaryResponse
    opening_balance: Decimal
    closing_balance: Decimal
