"""Assessment schemas."""

import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import AssessmentType


class AssessmentCreate(BaseModel):
    student_id: UUID
    subject_id: UUID
    term: int = Field(..., ge=1, le=4)
    year: int = Field(..., ge=2000, le=2100)
    assessment_type: AssessmentType
    weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    score: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    comment: Optional[str] = None


class AssessmentUpdate(BaseModel):
    assessment_type: Optional[AssessmentType] = None
    weight: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    score: Optional[Decimal] = Field(None, ge=0, le=100, decimal_places=2)
    comment: Optional[str] = None


class AssessmentResponse(BaseModel):
    id: UUID
    student_id: UUID
    subject_id: UUID
    subject_code: Optional[str] = None
    term: int
    year: int
    assessment_type: str
    weight: Decimal
    score: Decimal
    comment: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class SubjectAverageResponse(BaseModel):
    student_id: UUID
    subject_id: UUID
    term: int
    year: int
    average: Decimal
    assessment_count: int
    performance_level: str
