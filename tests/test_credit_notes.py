from datetime import date

import pytest
from httpx import AsyncClient

YEAR = date.today().year


async def _create_credit_note(client: AsyncClient, headers, client_id: str, **fields) -> dict:
    body = {
        "client_id": client_id,
        "reason": "Overcharged",
        "items": [{"description": "Refund", "quantity": "1.5", "rate": "20.00"}],
        **fields,
    }
    response = await client.post("/api/v1/credit-notes", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_credit_note(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    preview = await client.get("/api/v1/credit-notes/next-number", headers=auth_headers)
    assert preview.json()["number"] == f"CN-{YEAR}-001"

    cn = await _create_credit_note(client, auth_headers, c["id"])
    assert cn["number"] == f"CN-{YEAR}-001"
    assert cn["status"] == "draft"
    assert cn["subtotal"] == "30.00"
    assert cn["tax_amount"] == "4.50"
    assert cn["total"] == "34.50"


@pytest.mark.asyncio
async def test_credit_note_numbers_are_independent_of_invoices(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    await client.post(
        "/api/v1/invoices",
        json={"client_id": c["id"], "items": [{"description": "x", "quantity": 1, "rate": 1}]},
        headers=auth_headers,
    )
    cn = await _create_credit_note(client, auth_headers, c["id"])
    assert cn["number"] == f"CN-{YEAR}-001"


@pytest.mark.asyncio
async def test_linked_invoice_must_belong_to_same_client(client: AsyncClient, auth_headers, make_client) -> None:
    acme = await make_client("Acme")
    beta = await make_client("Beta")
    response = await client.post(
        "/api/v1/invoices",
        json={"client_id": acme["id"], "items": [{"description": "x", "quantity": 1, "rate": 1}]},
        headers=auth_headers,
    )
    invoice_id = response.json()["id"]

    linked = await _create_credit_note(client, auth_headers, acme["id"], invoice_id=invoice_id)
    assert linked["invoice_id"] == invoice_id

    response = await client.post(
        "/api/v1/credit-notes",
        json={"client_id": beta["id"], "invoice_id": invoice_id, "reason": "x", "items": []},
        headers=auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_replace_items_recomputes_totals(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    cn = await _create_credit_note(client, auth_headers, c["id"], tax_rate=0)
    response = await client.put(
        f"/api/v1/credit-notes/{cn['id']}/items",
        json={"items": [{"description": "Partial refund", "quantity": 2, "rate": "12.25"}]},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["total"] == "24.50"


@pytest.mark.asyncio
async def test_issue_locks_credit_note(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    cn = await _create_credit_note(client, auth_headers, c["id"])
    url = f"/api/v1/credit-notes/{cn['id']}"

    response = await client.post(f"{url}/issue", headers=auth_headers)
    assert response.json()["status"] == "issued"

    assert (await client.post(f"{url}/issue", headers=auth_headers)).status_code == 409
    assert (await client.patch(url, json={"reason": "Other"}, headers=auth_headers)).status_code == 409
    assert (await client.delete(url, headers=auth_headers)).status_code == 409


@pytest.mark.asyncio
async def test_empty_credit_note_cannot_be_issued(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    cn = await _create_credit_note(client, auth_headers, c["id"], items=[])
    response = await client.post(f"/api/v1/credit-notes/{cn['id']}/issue", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_draft_credit_note_delete_and_ownership(
    client: AsyncClient, auth_headers, other_headers, make_client
) -> None:
    c = await make_client()
    cn = await _create_credit_note(client, auth_headers, c["id"])
    url = f"/api/v1/credit-notes/{cn['id']}"
    assert (await client.get(url, headers=other_headers)).status_code == 404
    assert (await client.delete(url, headers=other_headers)).status_code == 404
    assert (await client.delete(url, headers=auth_headers)).status_code == 204
    assert (await client.get("/api/v1/credit-notes", headers=auth_headers)).json() == []
