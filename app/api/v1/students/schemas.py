"""Student schemas."""

import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.enums import Language


class StudentCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: dt.date
    grade: int = Field(..., ge=1, le=12)
    language: Language
    parent_name: str = Field(..., min_length=1, max_length=255)
    parent_email: EmailStr
    parent_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None

    @field_validator("language", mode="before")
    @classmethod
    def lower_language(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("date_of_birth")
    @classmethod
    def born_in_past(cls, v: dt.date) -> dt.date:
        if v >= dt.date.today():
            raise ValueError("date_of_birth must be in the past")
        return v


class StudentUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[dt.date] = None
    grade: Optional[int] = Field(None, ge=1, le=12)
    language: Optional[Language] = None
    parent_name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_email: Optional[EmailStr] = None
    parent_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class StudentResponse(BaseModel):
    id: UUID
    student_number: str
    first_name: str
    last_name: str
    date_of_birth: dt.date
    grade: int
    language: str
    parent_name: str
    parent_email: str
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class StudentImportResponse(BaseModel):
    imported: int
    students: List[StudentResponse]
