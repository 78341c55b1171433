"""Report cards service: one card per student/term/year, publishing lifecycle, population from assessments."""

from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.assessments.service import term_results
from app.api.v1.students.service import get_owned_student
from app.api.v1.subjects.service import generate_subject_comment, get_subject_or_404
from app.core.enums import Language, ReportCardStatus
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.grading import mean, weighted_average
from app.core.logging import get_logger
from app.core.models import Assessment, ReportCard, ReportCardSubject

from .schemas import (
    ReportCardCreate,
    ReportCardPopulateRequest,
    ReportCardResponse,
    ReportCardSubjectInput,
    ReportCardSubjectResponse,
    ReportCardUpdate,
)

logger = get_logger(__name__)

STATUS_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    ReportCardStatus.draft.value: (ReportCardStatus.published.value, ReportCardStatus.archived.value),
    ReportCardStatus.published.value: (ReportCardStatus.archived.value,),
    ReportCardStatus.archived.value: (),
}


def _subject_to_response(row: ReportCardSubject, language: Optional[str]) -> ReportCardSubjectResponse:
    subject = row.subject
    name = None
    if subject is not None:
        name = subject.name_af if language == Language.afrikaans.value else subject.name_en
    return ReportCardSubjectResponse(
        id=row.id,
        subject_id=row.subject_id,
        subject_code=subject.code if subject else None,
        subject_name=name,
        term_mark=row.term_mark,
        year_to_date=row.year_to_date,
        subject_comment=row.subject_comment,
    )


def _to_response(card: ReportCard) -> ReportCardResponse:
    student = card.student
    language = student.language if student else None
    return ReportCardResponse(
        id=card.id,
        student_id=card.student_id,
        student_number=student.student_number if student else None,
        student_name=f"{student.first_name} {student.last_name}" if student else None,
        term=card.term,
        year=card.year,
        status=card.status,
        teacher_comment=card.teacher_comment,
        principal_comment=card.principal_comment,
        attendance_days=card.attendance_days,
        absent_days=card.absent_days,
        subjects=[_subject_to_response(s, language) for s in card.subjects],
        created_at=card.created_at,
        updated_at=card.updated_at,
    )


async def _get_owned(db: AsyncSession, owner_id: UUID, report_card_id: UUID) -> ReportCard:
    result = await db.execute(
        select(ReportCard)
        .where(ReportCard.id == report_card_id, ReportCard.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    card = result.scalar_one_or_none()
    if not card:
        raise NotFoundError("Report card")
    return card


async def _subject_rows(db: AsyncSession, subjects: List[ReportCardSubjectInput]) -> List[ReportCardSubject]:
    rows = []
    for s in subjects:
        await get_subject_or_404(db, s.subject_id)
        rows.append(
            ReportCardSubject(
                subject_id=s.subject_id,
                term_mark=s.term_mark,
                year_to_date=s.year_to_date,
                subject_comment=s.subject_comment,
            )
        )
    return rows


def _ensure_draft(card: ReportCard) -> None:
    if card.status != ReportCardStatus.draft.value:
        raise ConflictError(f"A {card.status} report card cannot be changed")


async def create_report_card(db: AsyncSession, owner_id: UUID, payload: ReportCardCreate) -> ReportCardResponse:
    """Never overwrites: a second card for the same student, term and year is a conflict."""
    await get_owned_student(db, owner_id, payload.student_id)
    existing = await db.execute(
        select(ReportCard.id).where(
            ReportCard.student_id == payload.student_id,
            ReportCard.term == payload.term,
            ReportCard.year == payload.year,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"A report card already exists for this student for term {payload.term} {payload.year}")
    card = ReportCard(
        owner_id=owner_id,
        student_id=payload.student_id,
        term=payload.term,
        year=payload.year,
        status=ReportCardStatus.draft.value,
        teacher_comment=payload.teacher_comment,
        principal_comment=payload.principal_comment,
        attendance_days=payload.attendance_days,
        absent_days=payload.absent_days,
        subjects=await _subject_rows(db, payload.subjects),
    )
    db.add(card)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("report_card_conflict", owner_id=str(owner_id), student_id=str(payload.student_id), error=str(e.orig))
        raise ConflictError(
            f"A report card already exists for this student for term {payload.term} {payload.year}"
        ) from e
    logger.info("report_card_created", owner_id=str(owner_id), report_card_id=str(card.id))
    return _to_response(await _get_owned(db, owner_id, card.id))


async def list_report_cards(
    db: AsyncSession,
    owner_id: UUID,
    student_id: Optional[UUID] = None,
    term: Optional[int] = None,
    year: Optional[int] = None,
    status: Optional[ReportCardStatus] = None,
) -> List[ReportCardResponse]:
    stmt = select(ReportCard).where(ReportCard.owner_id == owner_id)
    if student_id is not None:
        stmt = stmt.where(ReportCard.student_id == student_id)
    if term is not None:
        stmt = stmt.where(ReportCard.term == term)
    if year is not None:
        stmt = stmt.where(ReportCard.year == year)
    if status is not None:
        stmt = stmt.where(ReportCard.status == status.value)
    result = await db.execute(stmt.order_by(ReportCard.year.desc(), ReportCard.term.desc()))
    return [_to_response(c) for c in result.scalars().all()]


async def get_report_card(db: AsyncSession, owner_id: UUID, report_card_id: UUID) -> ReportCardResponse:
    return _to_response(await _get_owned(db, owner_id, report_card_id))


async def update_report_card(
    db: AsyncSession,
    owner_id: UUID,
    report_card_id: UUID,
    payload: ReportCardUpdate,
) -> ReportCardResponse:
    card = await _get_owned(db, owner_id, report_card_id)
    _ensure_draft(card)
    data = payload.model_dump(exclude_unset=True, exclude={"subjects"})
    for key in ("attendance_days", "absent_days"):
        if key in data and data[key] is None:
            raise ValidationFailed(f"{key} cannot be empty")
    for key, value in data.items():
        setattr(card, key, value)
    if payload.subjects is not None:
        card.subjects = await _subject_rows(db, payload.subjects)
    await db.commit()
    return _to_response(await _get_owned(db, owner_id, report_card_id))


async def change_status(
    db: AsyncSession,
    owner_id: UUID,
    report_card_id: UUID,
    target: ReportCardStatus,
) -> ReportCardResponse:
    card = await _get_owned(db, owner_id, report_card_id)
    if target.value not in STATUS_TRANSITIONS.get(card.status, ()):
        raise ConflictError(f"Cannot change report card status from {card.status} to {target.value}")
    previous = card.status
    card.status = target.value
    await db.commit()
    logger.info(
        "report_card_status_changed",
        owner_id=str(owner_id),
        report_card_id=str(report_card_id),
        from_status=previous,
        to_status=target.value,
    )
    return _to_response(await _get_owned(db, owner_id, report_card_id))


async def delete_report_card(db: AsyncSession, owner_id: UUID, report_card_id: UUID) -> None:
    card = await _get_owned(db, owner_id, report_card_id)
    await db.delete(card)
    await db.commit()
    logger.info("report_card_deleted", owner_id=str(owner_id), report_card_id=str(report_card_id))


async def _assessed_subject_ids(db: AsyncSession, student_id: UUID, term: int, year: int) -> List[UUID]:
    result = await db.execute(
        select(Assessment.subject_id)
        .where(Assessment.student_id == student_id, Assessment.year == year, Assessment.term <= term)
        .distinct()
    )
    return list(result.scalars().all())


async def populate_report_card(
    db: AsyncSession,
    owner_id: UUID,
    report_card_id: UUID,
    payload: ReportCardPopulateRequest,
    comment_fallback: str,
) -> ReportCardResponse:
    """
    Fill subject rows from assessments.

    term_mark is the weighted average for the card's term. year_to_date is the
    mean of the weighted averages of terms 1..term that have assessments.
    Rows for subjects not being populated are left alone.
    """
    card = await _get_owned(db, owner_id, report_card_id)
    _ensure_draft(card)
    student = await get_owned_student(db, owner_id, card.student_id)
    language = payload.language or Language(student.language)

    if payload.subject_ids is not None:
        subject_ids = list(dict.fromkeys(payload.subject_ids))
        for subject_id in subject_ids:
            await get_subject_or_404(db, subject_id)
    else:
        subject_ids = await _assessed_subject_ids(db, student.id, card.term, card.year)

    rows_by_subject = {row.subject_id: row for row in card.subjects}
    for subject_id in subject_ids:
        term_averages = []
        for term in range(1, card.term + 1):
            pairs = await term_results(db, student.id, subject_id, term, card.year)
            if pairs:
                term_averages.append((term, weighted_average(pairs)))
        term_mark = next((avg for term, avg in term_averages if term == card.term), weighted_average([]))
        year_to_date = mean(avg for _, avg in term_averages)
        comment = await generate_subject_comment(db, subject_id, term_mark, language, comment_fallback)

        row = rows_by_subject.get(subject_id)
        if row is None:
            row = ReportCardSubject(subject_id=subject_id)
            card.subjects.append(row)
        row.term_mark = term_mark
        row.year_to_date = year_to_date
        row.subject_comment = comment

    await db.commit()
    logger.info(
        "report_card_populated",
        owner_id=str(owner_id),
        report_card_id=str(report_card_id),
        subjects=len(subject_ids),
    )
    return _to_response(await _get_owned(db, owner_id, report_card_id))
