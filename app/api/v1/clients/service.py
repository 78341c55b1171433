"""Clients service: owner-scoped CRUD and bulk import."""

from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.logging import get_logger
from app.core.models import Client, CreditNote, Invoice, RecurringInvoice
from app.core.tabular_import import Row, csv_template, format_row_errors

from .schemas import ClientCreate, ClientResponse, ClientUpdate

logger = get_logger(__name__)

IMPORT_REQUIRED_HEADERS = ["name", "email", "address"]
IMPORT_TEMPLATE_HEADERS = ["name", "email", "phone", "address", "payment_terms", "currency_code"]
IMPORT_TEMPLATE_EXAMPLE = ["Acme Corp", "contact@acme.com", "+1234567890", "123 Business St, City", "30", "USD"]


def _to_response(c: Client) -> ClientResponse:
    return ClientResponse.model_validate(c)


async def get_owned_client(db: AsyncSession, owner_id: UUID, client_id: UUID) -> Client:
    """Load a client belonging to owner_id or raise 404."""
    result = await db.execute(select(Client).where(Client.id == client_id, Client.owner_id == owner_id))
    client = result.scalar_one_or_none()
    if not client:
        raise NotFoundError("Client")
    return client


async def create_client(db: AsyncSession, owner_id: UUID, payload: ClientCreate) -> ClientResponse:
    client = Client(owner_id=owner_id, **payload.model_dump())
    client.name = client.name.strip()
    db.add(client)
    await db.commit()
    await db.refresh(client)
    logger.info("client_created", owner_id=str(owner_id), client_id=str(client.id))
    return _to_response(client)


async def list_clients(
    db: AsyncSession,
    owner_id: UUID,
    search: Optional[str] = None,
) -> List[ClientResponse]:
    stmt = select(Client).where(Client.owner_id == owner_id)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Client.name).like(term),
                func.lower(func.coalesce(Client.email, "")).like(term),
            )
        )
    stmt = stmt.order_by(Client.name)
    result = await db.execute(stmt)
    return [_to_response(c) for c in result.scalars().all()]


async def get_client(db: AsyncSession, owner_id: UUID, client_id: UUID) -> ClientResponse:
    return _to_response(await get_owned_client(db, owner_id, client_id))


async def update_client(
    db: AsyncSession,
    owner_id: UUID,
    client_id: UUID,
    payload: ClientUpdate,
) -> ClientResponse:
    client = await get_owned_client(db, owner_id, client_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if key == "name" and value is None:
            raise ValidationFailed("Client name cannot be empty")
        setattr(client, key, value.strip() if key == "name" else value)
    await db.commit()
    await db.refresh(client)
    return _to_response(client)


async def delete_client(db: AsyncSession, owner_id: UUID, client_id: UUID) -> None:
    client = await get_owned_client(db, owner_id, client_id)
    for model in (Invoice, CreditNote, RecurringInvoice):
        used = await db.execute(select(func.count(model.id)).where(model.client_id == client_id))
        if used.scalar_one():
            raise ConflictError("Client has invoices, credit notes or recurring invoices and cannot be deleted")
    await db.delete(client)
    await db.commit()
    logger.info("client_deleted", owner_id=str(owner_id), client_id=str(client_id))


def _row_to_create(row: Row) -> ClientCreate:
    data = {
        "name": row.get("name", ""),
        "email": row.get("email") or None,
        "phone": row.get("phone") or None,
        "address": row.get("address") or None,
        "currency_code": row.get("currency_code") or None,
        "payment_terms": row.get("payment_terms") or None,
    }
    return ClientCreate.model_validate(data)


async def import_clients(db: AsyncSession, owner_id: UUID, rows: List[tuple]) -> List[ClientResponse]:
    """All rows are validated first; any failure rejects the whole file."""
    payloads: List[ClientCreate] = []
    errors = []
    for row_num, row in rows:
        try:
            payloads.append(_row_to_create(row))
        except ValidationError as e:
            errors.append((row_num, "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())))
    if errors:
        logger.warning("client_import_rejected", owner_id=str(owner_id), failed_rows=len(errors))
        raise ValidationFailed(format_row_errors(errors))

    created = [Client(owner_id=owner_id, **p.model_dump()) for p in payloads]
    db.add_all(created)
    await db.commit()
    for c in created:
        await db.refresh(c)
    logger.info("clients_imported", owner_id=str(owner_id), count=len(created))
    return [_to_response(c) for c in created]


def client_import_template() -> str:
    return csv_template(IMPORT_TEMPLATE_HEADERS, IMPORT_TEMPLATE_EXAMPLE)
