from datetime import date, timedelta
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.api.v1.recurring_invoices.service import (
    _generate_for_template,
    generate_recurring_invoices,
    locked_template_query,
)
from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.models import RecurringInvoice


async def _create_template(client: AsyncClient, headers, client_id: str, **fields) -> dict:
    body = {
        "client_id": client_id,
        "frequency": "monthly",
        "start_date": "2025-01-15",
        "description": "Monthly retainer",
        "amount": "100.00",
        **fields,
    }
    response = await client.post("/api/v1/recurring-invoices", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _owner_id(client: AsyncClient, headers) -> UUID:
    return UUID((await client.get("/api/v1/auth/me", headers=headers)).json()["id"])


async def _run(session_factory: async_sessionmaker, owner_id: UUID, run_date: date):
    async with session_factory() as db:
        return await generate_recurring_invoices(db, run_date, settings.billing_profile(), owner_id=owner_id)


@pytest.mark.asyncio
async def test_create_template_reports_next_invoice_date(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    t = await _create_template(client, auth_headers, c["id"])
    assert t["status"] == "active"
    assert t["occurrences_generated"] == 0
    assert t["next_invoice_date"] == "2025-02-15"
    assert t["currency_code"] == "ZAR"


@pytest.mark.asyncio
async def test_end_date_must_follow_start_date(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    response = await client.post(
        "/api/v1/recurring-invoices",
        json={
            "client_id": c["id"],
            "frequency": "weekly",
            "start_date": "2025-01-15",
            "end_date": "2025-01-15",
            "description": "x",
            "amount": "1",
        },
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_generate_endpoint_runs_as_of_today(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    await _create_template(client, auth_headers, c["id"], start_date=(date.today() - timedelta(days=10)).isoformat())

    response = await client.post("/api/v1/recurring-invoices/generate", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["run_date"] == date.today().isoformat()
    assert data["generated"] == 1

    response = await client.post("/api/v1/recurring-invoices/generate", headers=auth_headers)
    assert response.json()["generated"] == 0


@pytest.mark.asyncio
async def test_generate_endpoint_ignores_caller_supplied_date(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    today = date.today()
    t = await _create_template(
        client,
        auth_headers,
        c["id"],
        start_date=(today - timedelta(days=10)).isoformat(),
        end_date=(today + timedelta(days=5 * 365)).isoformat(),
    )
    far_future = (today + timedelta(days=6 * 365)).isoformat()

    response = await client.post(
        "/api/v1/recurring-invoices/generate", params={"run_date": far_future}, headers=auth_headers
    )
    data = response.json()
    assert data["run_date"] == today.isoformat()
    assert data["completed"] == 0

    t = (await client.get(f"/api/v1/recurring-invoices/{t['id']}", headers=auth_headers)).json()
    assert t["status"] == "active"
    response = await client.post(
        f"/api/v1/recurring-invoices/{t['id']}/status", json={"status": "paused"}, headers=auth_headers
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_generation_creates_one_invoice_per_due_template(
    client: AsyncClient, auth_headers, make_client, session_factory
) -> None:
    c = await make_client()
    t = await _create_template(client, auth_headers, c["id"])
    owner_id = await _owner_id(client, auth_headers)

    outcome = await _run(session_factory, owner_id, date(2025, 1, 20))
    assert len(outcome.invoice_numbers) == 1
    assert outcome.failed == 0

    invoices = (await client.get("/api/v1/invoices", headers=auth_headers)).json()
    assert len(invoices) == 1
    inv = invoices[0]
    assert inv["recurring_invoice_id"] == t["id"]
    assert inv["date"] == "2025-02-15"
    assert inv["due_date"] == "2025-03-17"
    assert inv["status"] == "draft"
    assert inv["total"] == "115.00"
    assert [i["description"] for i in inv["items"]] == ["Monthly retainer"]

    # same day again: nothing new is due
    outcome = await _run(session_factory, owner_id, date(2025, 1, 20))
    assert outcome.invoice_numbers == []

    t = (await client.get(f"/api/v1/recurring-invoices/{t['id']}", headers=auth_headers)).json()
    assert t["occurrences_generated"] == 1
    assert t["last_invoice_date"] == "2025-02-15"
    assert t["last_generated"] is not None
    assert t["next_invoice_date"] == "2025-03-15"


@pytest.mark.asyncio
async def test_template_not_due_before_start(client: AsyncClient, auth_headers, make_client, session_factory) -> None:
    c = await make_client()
    await _create_template(client, auth_headers, c["id"], start_date="2030-01-01")
    outcome = await _run(session_factory, await _owner_id(client, auth_headers), date(2025, 6, 1))
    assert outcome.invoice_numbers == []


@pytest.mark.asyncio
async def test_template_completes_at_end_date(client: AsyncClient, auth_headers, make_client, session_factory) -> None:
    c = await make_client()
    t = await _create_template(client, auth_headers, c["id"], end_date="2025-03-20")
    owner_id = await _owner_id(client, auth_headers)

    await _run(session_factory, owner_id, date(2025, 1, 20))
    outcome = await _run(session_factory, owner_id, date(2025, 3, 15))
    assert len(outcome.invoice_numbers) == 1
    assert outcome.completed == 1

    t = (await client.get(f"/api/v1/recurring-invoices/{t['id']}", headers=auth_headers)).json()
    assert t["status"] == "completed"
    assert t["occurrences_generated"] == 2

    outcome = await _run(session_factory, owner_id, date(2025, 6, 1))
    assert outcome.invoice_numbers == []
    assert len((await client.get("/api/v1/invoices", headers=auth_headers)).json()) == 2


@pytest.mark.asyncio
async def test_paused_template_is_skipped_and_completed_is_terminal(
    client: AsyncClient, auth_headers, make_client, session_factory
) -> None:
    c = await make_client()
    t = await _create_template(client, auth_headers, c["id"], end_date="2025-02-01")
    owner_id = await _owner_id(client, auth_headers)
    url = f"/api/v1/recurring-invoices/{t['id']}"

    response = await client.post(f"{url}/status", json={"status": "paused"}, headers=auth_headers)
    assert response.json()["status"] == "paused"
    assert (await _run(session_factory, owner_id, date(2025, 1, 20))).invoice_numbers == []

    response = await client.post(f"{url}/status", json={"status": "completed"}, headers=auth_headers)
    assert response.status_code == 400

    response = await client.post(f"{url}/status", json={"status": "active"}, headers=auth_headers)
    assert response.json()["status"] == "active"

    # end date has passed by the run date
    outcome = await _run(session_factory, owner_id, date(2025, 3, 1))
    assert outcome.invoice_numbers == []
    assert outcome.completed == 1

    response = await client.post(f"{url}/status", json={"status": "active"}, headers=auth_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_generation_is_scoped_to_owner(
    client: AsyncClient, auth_headers, other_headers, make_client, session_factory
) -> None:
    c = await make_client()
    await _create_template(client, auth_headers, c["id"])
    outcome = await _run(session_factory, await _owner_id(client, other_headers), date(2025, 1, 20))
    assert outcome.invoice_numbers == []


@pytest.mark.asyncio
async def test_stale_template_read_cannot_generate_the_same_instance(
    client: AsyncClient, auth_headers, make_client, session_factory
) -> None:
    c = await make_client()
    created = await _create_template(client, auth_headers, c["id"])
    owner_id = await _owner_id(client, auth_headers)
    profile = settings.billing_profile()

    async with session_factory() as stale_db:
        result = await stale_db.execute(select(RecurringInvoice).where(RecurringInvoice.id == UUID(created["id"])))
        stale = result.scalar_one()
        await stale_db.commit()

        outcome = await _run(session_factory, owner_id, date(2025, 1, 20))
        assert len(outcome.invoice_numbers) == 1

        with pytest.raises(ConflictError):
            await _generate_for_template(stale_db, stale, date(2025, 1, 20), profile)
        await stale_db.rollback()

    invoices = (await client.get("/api/v1/invoices", headers=auth_headers)).json()
    assert len(invoices) == 1
    t = (await client.get(f"/api/v1/recurring-invoices/{created['id']}", headers=auth_headers)).json()
    assert t["occurrences_generated"] == 1


def test_generation_locks_the_template_row() -> None:
    sql = str(locked_template_query(uuid4()).compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql


@pytest.mark.asyncio
async def test_delete_template_keeps_generated_invoices(
    client: AsyncClient, auth_headers, make_client, session_factory
) -> None:
    c = await make_client()
    t = await _create_template(client, auth_headers, c["id"])
    await _run(session_factory, await _owner_id(client, auth_headers), date(2025, 1, 20))

    response = await client.delete(f"/api/v1/recurring-invoices/{t['id']}", headers=auth_headers)
    assert response.status_code == 204
    invoices = (await client.get("/api/v1/invoices", headers=auth_headers)).json()
    assert len(invoices) == 1
    assert invoices[0]["recurring_invoice_id"] is None
