import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class SubjectResponse(BaseModel):
    id: UUID
    code: str
    name_en: str
    name_af: str
    grade: int
    category: str
    created_at: dt.datetime

    class Config:
        from_attributes = True


class CommentLibraryResponse(BaseModel):
    id: UUID
    category: str
    language: str
    comment_text: str
    subject_id: Optional[UUID] = None
    performance_level: Optional[str] = None

    class Config:
        from_attributes = True


class SubjectCommentResponse(BaseModel):
    subject_id: UUID
    score: Decimal
    language: str
    performance_level: str
    comment: str
