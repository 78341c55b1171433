from datetime import date, timedelta

import pytest
from httpx import AsyncClient

YEAR = date.today().year


async def _create_invoice(client: AsyncClient, headers, client_id: str, **fields) -> dict:
    body = {
        "client_id": client_id,
        "items": [
            {"description": "Design", "quantity": 2, "rate": "50.00"},
            {"description": "Hosting", "quantity": 1, "rate": "25.50"},
        ],
        **fields,
    }
    response = await client.post("/api/v1/invoices", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_invoice_derives_totals_and_defaults(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"], date="2025-03-01")

    assert inv["number"] == f"INV-{YEAR}-001"
    assert inv["status"] == "draft"
    assert inv["currency_code"] == "ZAR"
    assert inv["due_date"] == "2025-03-15"
    assert inv["subtotal"] == "125.50"
    assert inv["tax_amount"] == "18.83"
    assert inv["total"] == "144.33"
    assert [i["amount"] for i in inv["items"]] == ["100.00", "25.50"]


@pytest.mark.asyncio
async def test_due_date_uses_client_payment_terms(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client(payment_terms=30, currency_code="USD")
    inv = await _create_invoice(client, auth_headers, c["id"], date="2025-01-01", tax_rate=0)
    assert inv["due_date"] == "2025-01-31"
    assert inv["currency_code"] == "USD"
    assert inv["total"] == "125.50"


@pytest.mark.asyncio
async def test_numbers_are_sequential_and_preview_does_not_consume(
    client: AsyncClient, auth_headers, make_client
) -> None:
    c = await make_client()
    preview = await client.get("/api/v1/invoices/next-number", headers=auth_headers)
    assert preview.json()["number"] == f"INV-{YEAR}-001"
    preview = await client.get("/api/v1/invoices/next-number", headers=auth_headers)
    assert preview.json()["number"] == f"INV-{YEAR}-001"

    first = await _create_invoice(client, auth_headers, c["id"])
    second = await _create_invoice(client, auth_headers, c["id"])
    assert [first["number"], second["number"]] == [f"INV-{YEAR}-001", f"INV-{YEAR}-002"]


@pytest.mark.asyncio
async def test_create_rejected_after_allocation_consumes_no_number(
    client: AsyncClient, auth_headers, make_client
) -> None:
    c = await make_client()
    yesterday = (date.today() - timedelta(days=1)).isoformat()
    response = await client.post(
        "/api/v1/invoices",
        json={"client_id": c["id"], "due_date": yesterday, "items": [{"description": "x", "quantity": 1, "rate": 5}]},
        headers=auth_headers,
    )
    assert response.status_code == 400
    inv = await _create_invoice(client, auth_headers, c["id"])
    assert inv["number"] == f"INV-{YEAR}-001"


@pytest.mark.asyncio
async def test_numbers_are_scoped_per_owner(client: AsyncClient, auth_headers, other_headers, make_client) -> None:
    mine = await make_client()
    theirs = await make_client(headers=other_headers)
    a = await _create_invoice(client, auth_headers, mine["id"])
    b = await _create_invoice(client, other_headers, theirs["id"])
    assert a["number"] == b["number"] == f"INV-{YEAR}-001"


@pytest.mark.asyncio
async def test_item_mutations_keep_totals_consistent(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"])
    url = f"/api/v1/invoices/{inv['id']}"

    response = await client.post(f"{url}/items", json={"description": "Support", "quantity": 3, "rate": "10"}, headers=auth_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["subtotal"] == "155.50"
    assert data["total"] == "178.83"

    item_id = data["items"][0]["id"]
    response = await client.patch(f"{url}/items/{item_id}", json={"quantity": 1}, headers=auth_headers)
    data = response.json()
    assert data["items"][0]["amount"] == "50.00"
    assert data["subtotal"] == "105.50"

    response = await client.delete(f"{url}/items/{item_id}", headers=auth_headers)
    data = response.json()
    assert len(data["items"]) == 2
    assert data["subtotal"] == "55.50"
    assert data["tax_amount"] == "8.33"
    assert data["total"] == "63.83"

    response = await client.put(f"{url}/items", json={"items": []}, headers=auth_headers)
    data = response.json()
    assert (data["subtotal"], data["tax_amount"], data["total"]) == ("0.00", "0.00", "0.00")


@pytest.mark.asyncio
async def test_tax_rate_change_recomputes(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"])
    response = await client.patch(f"/api/v1/invoices/{inv['id']}", json={"tax_rate": "0"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["total"] == "125.50"


@pytest.mark.asyncio
async def test_totals_are_not_accepted_from_input(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"], total="1.00", subtotal="1.00")
    assert inv["total"] == "144.33"


@pytest.mark.asyncio
async def test_status_lifecycle(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"])
    url = f"/api/v1/invoices/{inv['id']}"

    response = await client.post(f"{url}/status", json={"status": "paid"}, headers=auth_headers)
    assert response.status_code == 409

    response = await client.post(f"{url}/status", json={"status": "sent"}, headers=auth_headers)
    assert response.json()["status"] == "sent"

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 409

    response = await client.post(f"{url}/payment", json={"paid_on": date.today().isoformat()}, headers=auth_headers)
    data = response.json()
    assert data["status"] == "paid"
    assert data["paid_on"] == date.today().isoformat()

    response = await client.post(f"{url}/items", json={"description": "Late", "quantity": 1, "rate": 1}, headers=auth_headers)
    assert response.status_code == 409
    response = await client.post(f"{url}/status", json={"status": "sent"}, headers=auth_headers)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_draft_invoice_can_be_deleted(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"])
    assert (await client.delete(f"/api/v1/invoices/{inv['id']}", headers=auth_headers)).status_code == 204
    assert (await client.get(f"/api/v1/invoices/{inv['id']}", headers=auth_headers)).status_code == 404


@pytest.mark.asyncio
async def test_other_owner_gets_404(client: AsyncClient, auth_headers, other_headers, make_client) -> None:
    c = await make_client()
    inv = await _create_invoice(client, auth_headers, c["id"])
    assert (await client.get(f"/api/v1/invoices/{inv['id']}", headers=other_headers)).status_code == 404
    response = await client.post(f"/api/v1/invoices/{inv['id']}/status", json={"status": "sent"}, headers=other_headers)
    assert response.status_code == 404
    response = await client.post(
        "/api/v1/invoices",
        json={"client_id": c["id"], "items": []},
        headers=other_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, auth_headers, make_client) -> None:
    acme = await make_client("Acme Corp")
    beta = await make_client("Beta Ltd")
    a = await _create_invoice(client, auth_headers, acme["id"])
    await _create_invoice(client, auth_headers, beta["id"])
    await client.post(f"/api/v1/invoices/{a['id']}/status", json={"status": "sent"}, headers=auth_headers)

    response = await client.get("/api/v1/invoices", params={"status": "sent"}, headers=auth_headers)
    assert [i["id"] for i in response.json()] == [a["id"]]
    response = await client.get("/api/v1/invoices", params={"search": "beta"}, headers=auth_headers)
    assert [i["client_name"] for i in response.json()] == ["Beta Ltd"]


@pytest.mark.asyncio
async def test_mark_overdue_sweep(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    past = date.today() - timedelta(days=40)
    inv = await _create_invoice(client, auth_headers, c["id"], date=past.isoformat())
    await client.post(f"/api/v1/invoices/{inv['id']}/status", json={"status": "sent"}, headers=auth_headers)
    fresh = await _create_invoice(client, auth_headers, c["id"])
    await client.post(f"/api/v1/invoices/{fresh['id']}/status", json={"status": "sent"}, headers=auth_headers)

    response = await client.post("/api/v1/invoices/mark-overdue", headers=auth_headers)
    assert response.json()["updated"] == 1
    assert (await client.get(f"/api/v1/invoices/{inv['id']}", headers=auth_headers)).json()["status"] == "overdue"
    assert (await client.get(f"/api/v1/invoices/{fresh['id']}", headers=auth_headers)).json()["status"] == "sent"


@pytest.mark.asyncio
async def test_bulk_create(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    csv = (
        "client_id,date,due_date,tax_rate,items\n"
        f"{c['id']},2025-02-01,2025-03-01,15,Design|2|50.00;Hosting|1|25.50\n"
        f"{c['id']},2025-02-02,,,Support|1|100\n"
    ).encode()
    response = await client.post(
        "/api/v1/invoices/bulk", files={"file": ("invoices.csv", csv, "text/csv")}, headers=auth_headers
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["created"] == 2
    assert data["invoices"][0]["total"] == "144.33"
    assert data["invoices"][1]["due_date"] == "2025-02-16"


@pytest.mark.asyncio
async def test_bulk_create_is_all_or_nothing(client: AsyncClient, auth_headers, make_client) -> None:
    c = await make_client()
    csv = (
        "client_id,date,due_date,tax_rate,items\n"
        f"{c['id']},2025-02-01,,15,Design|2|50.00\n"
        f"{c['id']},2025-02-01,,15,Broken|0|50.00\n"
        "not-a-uuid,2025-02-01,,15,Design|1|1\n"
    ).encode()
    response = await client.post(
        "/api/v1/invoices/bulk", files={"file": ("invoices.csv", csv, "text/csv")}, headers=auth_headers
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "Row 3" in detail and "Row 4" in detail
    assert (await client.get("/api/v1/invoices", headers=auth_headers)).json() == []
