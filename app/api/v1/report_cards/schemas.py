"""Report card schemas."""

import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.core.enums import Language, ReportCardStatus


class ReportCardSubjectInput(BaseModel):
    subject_id: UUID
    term_mark: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    year_to_date: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    subject_comment: Optional[str] = None


def _unique_subjects(subjects: Optional[List[ReportCardSubjectInput]]) -> None:
    if subjects is None:
        return
    ids = [s.subject_id for s in subjects]
    if len(ids) != len(set(ids)):
        raise ValueError("Each subject can appear only once on a report card")


class ReportCardCreate(BaseModel):
    student_id: UUID
    term: int = Field(..., ge=1, le=4)
    year: int = Field(..., ge=2000, le=2100)
    teacher_comment: Optional[str] = None
    principal_comment: Optional[str] = None
    attendance_days: int = Field(0, ge=0)
    absent_days: int = Field(0, ge=0)
    subjects: List[ReportCardSubjectInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_subjects(self):
        _unique_subjects(self.subjects)
        return self


class ReportCardUpdate(BaseModel):
    teacher_comment: Optional[str] = None
    principal_comment: Optional[str] = None
    attendance_days: Optional[int] = Field(None, ge=0)
    absent_days: Optional[int] = Field(None, ge=0)
    subjects: Optional[List[ReportCardSubjectInput]] = Field(None, description="Replaces all subject rows when given")

    @model_validator(mode="after")
    def check_subjects(self):
        _unique_subjects(self.subjects)
        return self


class ReportCardStatusUpdate(BaseModel):
    status: ReportCardStatus


class ReportCardPopulateRequest(BaseModel):
    subject_ids: Optional[List[UUID]] = Field(
        None, description="Defaults to every subject with assessments this year up to the report term"
    )
    language: Optional[Language] = Field(None, description="Comment language; defaults to the student's language")


class ReportCardSubjectResponse(BaseModel):
    id: UUID
    subject_id: UUID
    subject_code: Optional[str] = None
    subject_name: Optional[str] = None
    term_mark: Decimal
    year_to_date: Decimal
    subject_comment: Optional[str] = None


class ReportCardResponse(BaseModel):
    id: UUID
    student_id: UUID
    student_number: Optional[str] = None
    student_name: Optional[str] = None
    term: int
    year: int
    status: str
    teacher_comment: Optional[str] = None
    principal_comment: Optional[str] = None
    attendance_days: int
    absent_days: int
    subjects: List[ReportCardSubjectResponse] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime
