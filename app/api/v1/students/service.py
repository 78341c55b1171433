"""Students service: CRUD with allocated student numbers, bulk import."""

from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import Language, SequenceKind
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.logging import get_logger
from app.core.models import Student
from app.core.sequence_service import generate_student_number, peek_next_number
from app.core.tabular_import import Row, csv_template, format_row_errors

from .schemas import StudentCreate, StudentResponse, StudentUpdate

logger = get_logger(__name__)

IMPORT_REQUIRED_HEADERS = [
    "first_name",
    "last_name",
    "date_of_birth",
    "grade",
    "language",
    "parent_name",
    "parent_email",
]
IMPORT_TEMPLATE_HEADERS = IMPORT_REQUIRED_HEADERS + ["parent_phone", "address"]
IMPORT_TEMPLATE_EXAMPLE = [
    "John",
    "Doe",
    "2010-01-01",
    "7",
    "english",
    "Jane Doe",
    "parent@example.com",
    "+27123456789",
    "123 Main St, City",
]


def _to_response(s: Student) -> StudentResponse:
    return StudentResponse.model_validate(s)


def _new_student(owner_id: UUID, number: str, payload: StudentCreate) -> Student:
    data = payload.model_dump()
    data["language"] = payload.language.value
    data["first_name"] = payload.first_name.strip()
    data["last_name"] = payload.last_name.strip()
    return Student(owner_id=owner_id, student_number=number, **data)


async def get_owned_student(db: AsyncSession, owner_id: UUID, student_id: UUID) -> Student:
    result = await db.execute(select(Student).where(Student.id == student_id, Student.owner_id == owner_id))
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student")
    return student


async def create_student(db: AsyncSession, owner_id: UUID, payload: StudentCreate) -> StudentResponse:
    number = await generate_student_number(db, owner_id)
    student = _new_student(owner_id, number, payload)
    db.add(student)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("student_create_conflict", owner_id=str(owner_id), error=str(e.orig))
        raise ConflictError("Student number already exists, please retry") from e
    await db.refresh(student)
    logger.info("student_created", owner_id=str(owner_id), student_id=str(student.id), student_number=number)
    return _to_response(student)


async def next_student_number(db: AsyncSession, owner_id: UUID) -> str:
    return await peek_next_number(db, owner_id, SequenceKind.student)


async def list_students(
    db: AsyncSession,
    owner_id: UUID,
    grade: Optional[int] = None,
    language: Optional[Language] = None,
    search: Optional[str] = None,
) -> List[StudentResponse]:
    stmt = select(Student).where(Student.owner_id == owner_id)
    if grade is not None:
        stmt = stmt.where(Student.grade == grade)
    if language is not None:
        stmt = stmt.where(Student.language == language.value)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Student.first_name).like(term),
                func.lower(Student.last_name).like(term),
                func.lower(Student.student_number).like(term),
            )
        )
    result = await db.execute(stmt.order_by(Student.last_name, Student.first_name))
    return [_to_response(s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, owner_id: UUID, student_id: UUID) -> StudentResponse:
    return _to_response(await get_owned_student(db, owner_id, student_id))


async def update_student(
    db: AsyncSession,
    owner_id: UUID,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    student = await get_owned_student(db, owner_id, student_id)
    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        if value is None and key not in ("parent_phone", "address"):
            raise ValidationFailed(f"{key} cannot be empty")
        setattr(student, key, value.value if isinstance(value, Language) else value)
    await db.commit()
    await db.refresh(student)
    return _to_response(student)


async def delete_student(db: AsyncSession, owner_id: UUID, student_id: UUID) -> None:
    """Assessments and report cards go with the student."""
    student = await get_owned_student(db, owner_id, student_id)
    await db.delete(student)
    await db.commit()
    logger.info("student_deleted", owner_id=str(owner_id), student_id=str(student_id))


def _row_to_create(row: Row) -> StudentCreate:
    return StudentCreate.model_validate(
        {
            "first_name": row.get("first_name", ""),
            "last_name": row.get("last_name", ""),
            "date_of_birth": row.get("date_of_birth", ""),
            "grade": row.get("grade", ""),
            "language": row.get("language", ""),
            "parent_name": row.get("parent_name", ""),
            "parent_email": row.get("parent_email", ""),
            "parent_phone": row.get("parent_phone") or None,
            "address": row.get("address") or None,
        }
    )


async def import_students(db: AsyncSession, owner_id: UUID, rows: List[tuple]) -> List[StudentResponse]:
    """
    Validate every row, then insert all of them in one transaction.
    A single invalid row rejects the file; nothing is written.
    """
    payloads: List[StudentCreate] = []
    errors = []
    for row_num, row in rows:
        try:
            payloads.append(_row_to_create(row))
        except ValidationError as e:
            errors.append((row_num, "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())))
    if errors:
        logger.warning("student_import_rejected", owner_id=str(owner_id), failed_rows=len(errors))
        raise ValidationFailed(format_row_errors(errors))

    created: List[Student] = []
    try:
        for payload in payloads:
            number = await generate_student_number(db, owner_id)
            student = _new_student(owner_id, number, payload)
            db.add(student)
            created.append(student)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("student_import_conflict", owner_id=str(owner_id), error=str(e.orig))
        raise ConflictError("Students could not be imported, no rows were saved") from e
    for s in created:
        await db.refresh(s)
    logger.info("students_imported", owner_id=str(owner_id), count=len(created))
    return [_to_response(s) for s in created]


def student_import_template() -> str:
    return csv_template(IMPORT_TEMPLATE_HEADERS, IMPORT_TEMPLATE_EXAMPLE)
