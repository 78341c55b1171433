from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.core.enums import CommentCategory, Language, PerformanceLevel, SubjectCategory
from app.core.exceptions import ServiceError
from app.core.grading import performance_level
from app.db.session import get_db

from .schemas import CommentLibraryResponse, SubjectCommentResponse, SubjectResponse
from . import service

router = APIRouter(prefix="/api/v1/subjects", tags=["subjects"])


@router.get("", response_model=List[SubjectResponse])
async def list_subjects(
    grade: Optional[int] = Query(None, ge=1, le=12),
    category: Optional[SubjectCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[SubjectResponse]:
    return await service.list_subjects(db, grade=grade, category=category)


@router.get("/comments", response_model=List[CommentLibraryResponse])
async def list_comments(
    subject_id: Optional[UUID] = Query(None),
    language: Optional[Language] = Query(None),
    performance_level: Optional[PerformanceLevel] = Query(None),
    category: Optional[CommentCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[CommentLibraryResponse]:
    return await service.list_comments(
        db, subject_id=subject_id, language=language, level=performance_level, category=category
    )


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SubjectResponse:
    try:
        return await service.get_subject(db, subject_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{subject_id}/comment", response_model=SubjectCommentResponse)
async def generate_subject_comment(
    subject_id: UUID,
    score: Decimal = Query(..., ge=0, le=100),
    language: Language = Query(Language.english),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SubjectCommentResponse:
    try:
        await service.get_subject_or_404(db, subject_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    comment = await service.generate_subject_comment(
        db, subject_id, score, language, settings.subject_comment_fallback
    )
    return SubjectCommentResponse(
        subject_id=subject_id,
        score=score,
        language=language.value,
        performance_level=performance_level(score).value,
        comment=comment,
    )
