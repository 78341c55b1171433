"""Invoice schemas. Totals and item amounts are response-only."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.core.enums import InvoiceStatus


class InvoiceItemInput(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., ge=1, decimal_places=2)
    rate: Decimal = Field(..., ge=0, decimal_places=2)


class InvoiceItemUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    quantity: Optional[Decimal] = Field(None, ge=1, decimal_places=2)
    rate: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class InvoiceItemResponse(BaseModel):
    id: UUID
    position: int
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal

    class Config:
        from_attributes = True


class InvoiceCreate(BaseModel):
    client_id: UUID
    date: Optional[dt.date] = Field(None, description="Defaults to today")
    due_date: Optional[dt.date] = Field(None, description="Defaults to date + client payment terms")
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None
    items: List[InvoiceItemInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def due_not_before_date(self):
        if self.date and self.due_date and self.due_date < self.date:
            raise ValueError("due_date cannot be before date")
        return self


class InvoiceUpdate(BaseModel):
    date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = None


class InvoiceItemsReplace(BaseModel):
    items: List[InvoiceItemInput]


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class PaymentRecord(BaseModel):
    paid_on: Optional[dt.date] = Field(None, description="Defaults to today")


class InvoiceResponse(BaseModel):
    id: UUID
    number: str
    client_id: UUID
    client_name: Optional[str] = None
    recurring_invoice_id: Optional[UUID] = None
    date: dt.date
    due_date: dt.date
    currency_code: str
    tax_rate: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    status: str
    paid_on: Optional[dt.date] = None
    notes: Optional[str] = None
    items: List[InvoiceItemResponse] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime


class NextNumberResponse(BaseModel):
    number: str


class BulkInvoiceResponse(BaseModel):
    created: int
    invoices: List[InvoiceResponse]


class OverdueSweepResponse(BaseModel):
    updated: int
    as_of: dt.date
