"""Recurring invoice schemas."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.core.enums import RecurringFrequency, RecurringStatus


class RecurringInvoiceCreate(BaseModel):
    client_id: UUID
    frequency: RecurringFrequency
    start_date: dt.date
    end_date: Optional[dt.date] = None
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_date is not None and self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class RecurringInvoiceUpdate(BaseModel):
    end_date: Optional[dt.date] = None
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)


class RecurringStatusUpdate(BaseModel):
    status: RecurringStatus


class RecurringInvoiceResponse(BaseModel):
    id: UUID
    client_id: UUID
    frequency: str
    start_date: dt.date
    end_date: Optional[dt.date] = None
    description: str
    amount: Decimal
    tax_rate: Decimal
    currency_code: str
    status: str
    last_generated: Optional[dt.datetime] = None
    last_invoice_date: Optional[dt.date] = None
    occurrences_generated: int
    next_invoice_date: Optional[dt.date] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class RecurringGenerationResponse(BaseModel):
    run_date: dt.date
    generated: int
    invoice_numbers: List[str]
    completed: int
    failed: int
