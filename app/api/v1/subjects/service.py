from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import CommentCategory, Language, PerformanceLevel, SubjectCategory
from app.core.exceptions import NotFoundError
from app.core.grading import performance_level
from app.core.models import CommentLibraryEntry, Subject

from .schemas import CommentLibraryResponse, SubjectResponse


async def get_subject_or_404(db: AsyncSession, subject_id: UUID) -> Subject:
    result = await db.execute(select(Subject).where(Subject.id == subject_id))
    subject = result.scalar_one_or_none()
    if not subject:
        raise NotFoundError("Subject")
    return subject


async def list_subjects(
    db: AsyncSession,
    grade: Optional[int] = None,
    category: Optional[SubjectCategory] = None,
) -> List[SubjectResponse]:
    stmt = select(Subject)
    if grade is not None:
        stmt = stmt.where(Subject.grade == grade)
    if category is not None:
        stmt = stmt.where(Subject.category == category.value)
    result = await db.execute(stmt.order_by(Subject.grade, Subject.name_en))
    return [SubjectResponse.model_validate(s) for s in result.scalars().all()]


async def get_subject(db: AsyncSession, subject_id: UUID) -> SubjectResponse:
    return SubjectResponse.model_validate(await get_subject_or_404(db, subject_id))


async def list_comments(
    db: AsyncSession,
    subject_id: Optional[UUID] = None,
    language: Optional[Language] = None,
    level: Optional[PerformanceLevel] = None,
    category: Optional[CommentCategory] = None,
) -> List[CommentLibraryResponse]:
    stmt = select(CommentLibraryEntry)
    if subject_id is not None:
        stmt = stmt.where(CommentLibraryEntry.subject_id == subject_id)
    if language is not None:
        stmt = stmt.where(CommentLibraryEntry.language == language.value)
    if level is not None:
        stmt = stmt.where(CommentLibraryEntry.performance_level == level.value)
    if category is not None:
        stmt = stmt.where(CommentLibraryEntry.category == category.value)
    result = await db.execute(stmt.order_by(CommentLibraryEntry.created_at))
    return [CommentLibraryResponse.model_validate(c) for c in result.scalars().all()]


async def generate_subject_comment(
    db: AsyncSession,
    subject_id: UUID,
    score: Decimal,
    language: Language,
    fallback: str,
) -> str:
    """Random library comment for the subject, language and performance level of score."""
    level = performance_level(score)
    result = await db.execute(
        select(CommentLibraryEntry.comment_text)
        .where(
            CommentLibraryEntry.subject_id == subject_id,
            CommentLibraryEntry.language == Language(language).value,
            CommentLibraryEntry.performance_level == level.value,
        )
        .order_by(func.random())
        .limit(1)
    )
    return result.scalar_one_or_none() or fallback
