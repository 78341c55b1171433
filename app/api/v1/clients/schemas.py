"""Client schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


def _upper_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("currency_code must be a 3-letter ISO code")
    return v


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    currency_code: Optional[str] = Field(None, description="ISO 4217, e.g. ZAR, USD")
    payment_terms: Optional[int] = Field(None, ge=0, description="Days until an invoice is due")

    @field_validator("currency_code")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    currency_code: Optional[str] = None
    payment_terms: Optional[int] = Field(None, ge=0)

    @field_validator("currency_code")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _upper_currency(v)


class ClientResponse(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    currency_code: Optional[str] = None
    payment_terms: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientImportResponse(BaseModel):
    imported: int
    clients: List[ClientResponse]
