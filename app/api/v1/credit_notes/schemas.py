"""Credit note schemas."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CreditNoteItemInput(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, decimal_places=2)
    rate: Decimal = Field(..., ge=0, decimal_places=2)


class CreditNoteItemResponse(BaseModel):
    id: UUID
    position: int
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal

    class Config:
        from_attributes = True


class CreditNoteCreate(BaseModel):
    client_id: UUID
    invoice_id: Optional[UUID] = Field(None, description="Invoice being credited; must belong to the same client")
    date: Optional[dt.date] = None
    reason: str = Field(..., min_length=1)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    items: List[CreditNoteItemInput] = Field(default_factory=list)


class CreditNoteUpdate(BaseModel):
    invoice_id: Optional[UUID] = None
    date: Optional[dt.date] = None
    reason: Optional[str] = Field(None, min_length=1)
    currency_code: Optional[str] = Field(None, min_length=3, max_length=3)
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)


class CreditNoteItemsReplace(BaseModel):
    items: List[CreditNoteItemInput]


class CreditNoteResponse(BaseModel):
    id: UUID
    number: str
    client_id: UUID
    invoice_id: Optional[UUID] = None
    date: dt.date
    reason: str
    currency_code: str
    tax_rate: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    status: str
    items: List[CreditNoteItemResponse] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True
