"""Students router: CRUD, next number, import, import template."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.invoices.schemas import NextNumberResponse
from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.enums import Language
from app.core.exceptions import ServiceError
from app.core.tabular_import import read_upload
from app.db.session import get_db

from .schemas import StudentCreate, StudentImportResponse, StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentResponse:
    try:
        return await service.create_student(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[StudentResponse])
async def list_students(
    grade: Optional[int] = Query(None, ge=1, le=12),
    language: Optional[Language] = Query(None),
    search: Optional[str] = Query(None, description="Match on name or student number"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[StudentResponse]:
    return await service.list_students(db, current_user.id, grade=grade, language=language, search=search)


@router.get("/next-number", response_model=NextNumberResponse)
async def get_next_student_number(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> NextNumberResponse:
    return NextNumberResponse(number=await service.next_student_number(db, current_user.id))


@router.get("/import/template")
async def download_import_template() -> Response:
    return Response(
        content=service.student_import_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="student-import-template.csv"'},
    )


@router.post("/import", response_model=StudentImportResponse, status_code=status.HTTP_201_CREATED)
async def import_students(
    file: UploadFile = File(
        ...,
        description="CSV or .xlsx with columns: first_name, last_name, date_of_birth, grade, language, parent_name, parent_email (parent_phone, address optional)",
    ),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentImportResponse:
    try:
        rows = await read_upload(file, service.IMPORT_REQUIRED_HEADERS)
        created = await service.import_students(db, current_user.id, rows)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return StudentImportResponse(imported=len(created), students=created)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentResponse:
    try:
        return await service.get_student(db, current_user.id, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentResponse:
    try:
        return await service.update_student(db, current_user.id, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_student(db, current_user.id, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
