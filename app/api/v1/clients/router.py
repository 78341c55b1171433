"""Clients router: CRUD, import, import template."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.core.tabular_import import read_upload
from app.db.session import get_db

from .schemas import ClientCreate, ClientImportResponse, ClientResponse, ClientUpdate
from . import service

router = APIRouter(prefix="/api/v1/clients", tags=["clients"])


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClientResponse:
    return await service.create_client(db, current_user.id, payload)


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    search: Optional[str] = Query(None, description="Match on name or email"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ClientResponse]:
    return await service.list_clients(db, current_user.id, search=search)


@router.get("/import/template")
async def download_import_template() -> Response:
    return Response(
        content=service.client_import_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="client-import-template.csv"'},
    )


@router.post("/import", response_model=ClientImportResponse, status_code=status.HTTP_201_CREATED)
async def import_clients(
    file: UploadFile = File(..., description="CSV or .xlsx with columns: name, email, address (phone, payment_terms, currency_code optional)"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClientImportResponse:
    try:
        rows = await read_upload(file, service.IMPORT_REQUIRED_HEADERS)
        created = await service.import_clients(db, current_user.id, rows)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ClientImportResponse(imported=len(created), clients=created)


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClientResponse:
    try:
        return await service.get_client(db, current_user.id, client_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: UUID,
    payload: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClientResponse:
    try:
        return await service.update_client(db, current_user.id, client_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_client(db, current_user.id, client_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
