"""Assessments router: CRUD and the weighted subject average."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.core.grading import performance_level
from app.db.session import get_db

from .schemas import AssessmentCreate, AssessmentResponse, AssessmentUpdate, SubjectAverageResponse
from . import service

router = APIRouter(prefix="/api/v1/assessments", tags=["assessments"])


@router.post("", response_model=AssessmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assessment(
    payload: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AssessmentResponse:
    try:
        return await service.create_assessment(db, current_user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[AssessmentResponse])
async def list_assessments(
    student_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    term: Optional[int] = Query(None, ge=1, le=4),
    year: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AssessmentResponse]:
    return await service.list_assessments(
        db, current_user.id, student_id=student_id, subject_id=subject_id, term=term, year=year
    )


@router.get("/average", response_model=SubjectAverageResponse)
async def get_subject_average(
    student_id: UUID = Query(...),
    subject_id: UUID = Query(...),
    term: int = Query(..., ge=1, le=4),
    year: int = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SubjectAverageResponse:
    try:
        average, count = await service.calculate_subject_average(
            db, current_user.id, student_id, subject_id, term, year
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SubjectAverageResponse(
        student_id=student_id,
        subject_id=subject_id,
        term=term,
        year=year,
        average=average,
        assessment_count=count,
        performance_level=performance_level(average).value,
    )


@router.get("/{assessment_id}", response_model=AssessmentResponse)
async def get_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AssessmentResponse:
    try:
        return await service.get_assessment(db, current_user.id, assessment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{assessment_id}", response_model=AssessmentResponse)
async def update_assessment(
    assessment_id: UUID,
    payload: AssessmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AssessmentResponse:
    try:
        return await service.update_assessment(db, current_user.id, assessment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assessment(
    assessment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_assessment(db, current_user.id, assessment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
