import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_client_crud(client: AsyncClient, auth_headers, make_client) -> None:
    created = await make_client("Acme Corp", currency_code="usd", payment_terms=30)
    assert created["currency_code"] == "USD"

    response = await client.get("/api/v1/clients", params={"search": "acme"}, headers=auth_headers)
    assert [c["id"] for c in response.json()] == [created["id"]]

    response = await client.patch(
        f"/api/v1/clients/{created['id']}", json={"phone": "+27110000000"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "+27110000000"

    response = await client.delete(f"/api/v1/clients/{created['id']}", headers=auth_headers)
    assert response.status_code == 204
    response = await client.get(f"/api/v1/clients/{created['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_other_owner_cannot_see_client(client: AsyncClient, other_headers, make_client) -> None:
    created = await make_client()
    response = await client.get(f"/api/v1/clients/{created['id']}", headers=other_headers)
    assert response.status_code == 404
    response = await client.get("/api/v1/clients", headers=other_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_client_with_invoices_cannot_be_deleted(client: AsyncClient, auth_headers, make_client) -> None:
    created = await make_client()
    response = await client.post(
        "/api/v1/invoices",
        json={"client_id": created["id"], "items": [{"description": "Work", "quantity": 1, "rate": 10}]},
        headers=auth_headers,
    )
    assert response.status_code == 201
    response = await client.delete(f"/api/v1/clients/{created['id']}", headers=auth_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_client_import_all_or_nothing(client: AsyncClient, auth_headers) -> None:
    bad = b"name,email,address\nAcme,acme@example.com,1 Main St\n,broken@example.com,2 Main St\n"
    response = await client.post(
        "/api/v1/clients/import", files={"file": ("clients.csv", bad, "text/csv")}, headers=auth_headers
    )
    assert response.status_code == 400
    assert "Row 3" in response.json()["detail"]
    assert (await client.get("/api/v1/clients", headers=auth_headers)).json() == []

    good = b"name,email,address,payment_terms\nAcme,acme@example.com,1 Main St,30\nBeta,beta@example.com,2 Main St,\n"
    response = await client.post(
        "/api/v1/clients/import", files={"file": ("clients.csv", good, "text/csv")}, headers=auth_headers
    )
    assert response.status_code == 201
    assert response.json()["imported"] == 2
    assert len((await client.get("/api/v1/clients", headers=auth_headers)).json()) == 2


@pytest.mark.asyncio
async def test_client_import_missing_header(client: AsyncClient, auth_headers) -> None:
    content = b"name,email\nAcme,acme@example.com\n"
    response = await client.post(
        "/api/v1/clients/import", files={"file": ("clients.csv", content, "text/csv")}, headers=auth_headers
    )
    assert response.status_code == 400
    assert "address" in response.json()["detail"]


@pytest.mark.asyncio
async def test_client_import_template(client: AsyncClient) -> None:
    response = await client.get("/api/v1/clients/import/template")
    assert response.status_code == 200
    assert response.text.splitlines()[0] == "name,email,phone,address,payment_terms,currency_code"
