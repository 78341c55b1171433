"""Assessments service. Every query is scoped through the student's owner."""

from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.students.service import get_owned_student
from app.api.v1.subjects.service import get_subject_or_404
from app.core.exceptions import NotFoundError, ValidationFailed
from app.core.grading import weighted_average
from app.core.logging import get_logger
from app.core.models import Assessment, Student

from .schemas import AssessmentCreate, AssessmentResponse, AssessmentUpdate

logger = get_logger(__name__)


def _to_response(a: Assessment) -> AssessmentResponse:
    return AssessmentResponse(
        id=a.id,
        student_id=a.student_id,
        subject_id=a.subject_id,
        subject_code=a.subject.code if a.subject else None,
        term=a.term,
        year=a.year,
        assessment_type=a.assessment_type,
        weight=a.weight,
        score=a.score,
        comment=a.comment,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


def _owned():
    return select(Assessment).join(Student, Student.id == Assessment.student_id)


async def _get_owned(db: AsyncSession, owner_id: UUID, assessment_id: UUID) -> Assessment:
    result = await db.execute(
        _owned()
        .where(Assessment.id == assessment_id, Student.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    a = result.scalar_one_or_none()
    if not a:
        raise NotFoundError("Assessment")
    return a


async def create_assessment(db: AsyncSession, owner_id: UUID, payload: AssessmentCreate) -> AssessmentResponse:
    await get_owned_student(db, owner_id, payload.student_id)
    await get_subject_or_404(db, payload.subject_id)
    a = Assessment(
        student_id=payload.student_id,
        subject_id=payload.subject_id,
        term=payload.term,
        year=payload.year,
        assessment_type=payload.assessment_type.value,
        weight=payload.weight,
        score=payload.score,
        comment=payload.comment,
    )
    db.add(a)
    await db.commit()
    logger.info("assessment_recorded", owner_id=str(owner_id), assessment_id=str(a.id), student_id=str(a.student_id))
    return _to_response(await _get_owned(db, owner_id, a.id))


async def list_assessments(
    db: AsyncSession,
    owner_id: UUID,
    student_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
    term: Optional[int] = None,
    year: Optional[int] = None,
) -> List[AssessmentResponse]:
    stmt = _owned().where(Student.owner_id == owner_id)
    if student_id is not None:
        stmt = stmt.where(Assessment.student_id == student_id)
    if subject_id is not None:
        stmt = stmt.where(Assessment.subject_id == subject_id)
    if term is not None:
        stmt = stmt.where(Assessment.term == term)
    if year is not None:
        stmt = stmt.where(Assessment.year == year)
    stmt = stmt.order_by(Assessment.year, Assessment.term, Assessment.created_at)
    result = await db.execute(stmt)
    return [_to_response(a) for a in result.scalars().all()]


async def get_assessment(db: AsyncSession, owner_id: UUID, assessment_id: UUID) -> AssessmentResponse:
    return _to_response(await _get_owned(db, owner_id, assessment_id))


async def update_assessment(
    db: AsyncSession,
    owner_id: UUID,
    assessment_id: UUID,
    payload: AssessmentUpdate,
) -> AssessmentResponse:
    a = await _get_owned(db, owner_id, assessment_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None and key != "comment":
            raise ValidationFailed(f"{key} cannot be empty")
        setattr(a, key, value.value if key == "assessment_type" else value)
    await db.commit()
    return _to_response(await _get_owned(db, owner_id, assessment_id))


async def delete_assessment(db: AsyncSession, owner_id: UUID, assessment_id: UUID) -> None:
    a = await _get_owned(db, owner_id, assessment_id)
    await db.delete(a)
    await db.commit()


async def term_results(
    db: AsyncSession,
    student_id: UUID,
    subject_id: UUID,
    term: int,
    year: int,
) -> List[Tuple[Decimal, Decimal]]:
    """(score, weight) pairs; the caller has already checked ownership of the student."""
    result = await db.execute(
        select(Assessment.score, Assessment.weight).where(
            Assessment.student_id == student_id,
            Assessment.subject_id == subject_id,
            Assessment.term == term,
            Assessment.year == year,
        )
    )
    return [(row.score, row.weight) for row in result.all()]


async def calculate_subject_average(
    db: AsyncSession,
    owner_id: UUID,
    student_id: UUID,
    subject_id: UUID,
    term: int,
    year: int,
) -> Tuple[Decimal, int]:
    """Weighted term average and the number of assessments it was built from."""
    await get_owned_student(db, owner_id, student_id)
    pairs = await term_results(db, student_id, subject_id, term, year)
    return weighted_average(pairs), len(pairs)
