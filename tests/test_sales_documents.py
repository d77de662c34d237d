from datetime import date, timedelta
from decimal import Decimal

import pytest

ORDERS = "/api/sales-orders/"
QUOTATIONS = "/api/sales-quotations/"
INVOICES = "/api/sales-invoices/"
RETURNS = "/api/sales-returns/"
INQUIRIES = "/api/sales-inquiries/"

LINES = [
    {"part_no": "BP-101", "description": "Brake pad", "quantity": 10, "unit_price": "2500"},
    {"part_no": "OF-202", "description": "Oil filter", "quantity": 50, "unit_price": "500"},
]


def today(offset: int = 0) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


async def create_order(client, headers, **overrides):
    payload = {"customer_name": "Sharma Auto Works", "items": LINES}
    payload.update(overrides)
    response = await client.post(ORDERS, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_order_totals(client, auth_headers):
    order = await create_order(client, auth_headers, discount="5000", tax="4500", advance_amount="20000")

    assert Decimal(order["sub_total"]) == Decimal("50000")
    assert Decimal(order["total_amount"]) == Decimal("49500")
    assert Decimal(order["balance_amount"]) == Decimal("29500")
    assert order["payment_status"] == "partial"
    assert [Decimal(i["line_total"]) for i in order["items"]] == [Decimal("25000"), Decimal("25000")]


async def test_order_totals_reject_oversized_discount_and_advance(client, auth_headers):
    too_much_discount = await client.post(
        ORDERS, json={"customer_name": "A", "items": LINES, "discount": "60000"}, headers=auth_headers
    )
    too_much_advance = await client.post(
        ORDERS, json={"customer_name": "A", "items": LINES, "advance_amount": "60000"}, headers=auth_headers
    )

    assert too_much_discount.status_code == 400
    assert too_much_advance.status_code == 400


async def test_order_update_recomputes_totals(client, auth_headers):
    order = await create_order(client, auth_headers)

    response = await client.put(
        f"{ORDERS}{order['id']}",
        json={"items": [{"description": "Clutch plate", "quantity": 2, "unit_price": "3000"}], "advance_amount": "6000"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert Decimal(updated["total_amount"]) == Decimal("6000")
    assert Decimal(updated["balance_amount"]) == Decimal("0")
    assert updated["payment_status"] == "paid"
    assert len(updated["items"]) == 1


async def test_order_numbers(client, auth_headers):
    first = await client.get(f"{ORDERS}next-number", headers=auth_headers)
    assert first.json()["data"]["next_number"] == "SO-001"

    order = await create_order(client, auth_headers)
    assert order["order_no"] == "SO-001"

    second = await client.get(f"{ORDERS}next-number", headers=auth_headers)
    assert second.json()["data"]["next_number"] == "SO-002"

    duplicate = await client.post(
        ORDERS, json={"order_no": "SO-001", "customer_name": "A", "items": LINES}, headers=auth_headers
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Order number already exists"


@pytest.mark.parametrize("steps, target, expected", [
    ([], "confirmed", 200),
    ([], "ready", 400),
    (["confirmed", "processing"], "cancelled", 200),
    (["cancelled"], "confirmed", 400),
])
async def test_order_status_flow(client, auth_headers, steps, target, expected):
    order = await create_order(client, auth_headers)
    for step in steps:
        moved = await client.patch(f"{ORDERS}{order['id']}/status", json={"status": step}, headers=auth_headers)
        assert moved.status_code == 200

    response = await client.patch(f"{ORDERS}{order['id']}/status", json={"status": target}, headers=auth_headers)

    assert response.status_code == expected


async def test_only_draft_orders_are_deleted(client, auth_headers):
    order = await create_order(client, auth_headers)
    await client.patch(f"{ORDERS}{order['id']}/status", json={"status": "confirmed"}, headers=auth_headers)

    blocked = await client.delete(f"{ORDERS}{order['id']}", headers=auth_headers)
    assert blocked.status_code == 400

    draft = await create_order(client, auth_headers)
    deleted = await client.delete(f"{ORDERS}{draft['id']}", headers=auth_headers)
    assert deleted.status_code == 200


async def test_quotation_validity_and_totals(client, auth_headers):
    invalid = await client.post(
        QUOTATIONS,
        json={"customer_name": "A", "quotation_date": today(), "valid_until": today(-1), "items": LINES},
        headers=auth_headers,
    )
    assert invalid.status_code == 400

    response = await client.post(
        QUOTATIONS,
        json={"customer_name": "A", "valid_until": today(15), "discount": "1000", "items": LINES},
        headers=auth_headers,
    )
    assert response.status_code == 201
    quotation = response.json()["data"]
    assert quotation["quotation_no"] == "SQ-001"
    assert Decimal(quotation["total_amount"]) == Decimal("49000")

    no_items = await client.post(
        QUOTATIONS, json={"customer_name": "A", "valid_until": today(15), "items": []}, headers=auth_headers
    )
    assert no_items.status_code == 422


async def test_inquiry_lifecycle(client, auth_headers):
    response = await client.post(
        INQUIRIES, json={"customer_name": "Verma Garage", "subject": "Need brake pads for fleet"}, headers=auth_headers
    )
    assert response.status_code == 201
    inquiry = response.json()["data"]
    assert inquiry["inquiry_no"] == "INQ-001"
    assert inquiry["status"] == "new"

    updated = await client.put(f"{INQUIRIES}{inquiry['id']}", json={"status": "quoted"}, headers=auth_headers)
    assert updated.json()["data"]["status"] == "quoted"

    found = await client.get(INQUIRIES, params={"search": "fleet"}, headers=auth_headers)
    assert found.json()["data"]["total_count"] == 1


async def test_invoice_copies_order_and_opens_receivable(client, auth_headers):
    order = await create_order(client, auth_headers, customer_phone="9800000001")

    response = await client.post(
        INVOICES,
        json={"order_id": order["id"], "due_date": today(30), "status": "sent", "tax": "900"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    invoice = response.json()["data"]
    assert invoice["customer_name"] == "Sharma Auto Works"
    assert len(invoice["items"]) == 2
    assert Decimal(invoice["total_amount"]) == Decimal("50900")

    receivables = (await client.get("/api/receivables/", headers=auth_headers)).json()["data"]
    assert receivables["total_count"] == 1
    receivable = receivables["items"][0]
    assert receivable["invoice_no"] == invoice["invoice_no"]
    assert Decimal(receivable["balance_amount"]) == Decimal("50900")
    assert receivable["status"] == "pending"


async def test_sending_draft_invoice_opens_one_receivable(client, auth_headers):
    response = await client.post(
        INVOICES, json={"customer_name": "A", "due_date": today(10), "items": LINES}, headers=auth_headers
    )
    invoice = response.json()["data"]
    assert invoice["status"] == "draft"
    assert (await client.get("/api/receivables/", headers=auth_headers)).json()["data"]["total_count"] == 0

    for _ in range(2):
        sent = await client.put(f"{INVOICES}{invoice['id']}", json={"status": "sent"}, headers=auth_headers)
        assert sent.status_code == 200

    assert (await client.get("/api/receivables/", headers=auth_headers)).json()["data"]["total_count"] == 1

    blocked = await client.delete(f"{INVOICES}{invoice['id']}", headers=auth_headers)
    assert blocked.status_code == 400


async def test_invoice_due_date_before_invoice_date(client, auth_headers):
    response = await client.post(
        INVOICES,
        json={"customer_name": "A", "invoice_date": today(), "due_date": today(-1), "items": LINES},
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_return_refund_and_status_flow(client, auth_headers):
    invoice = (await client.post(
        INVOICES, json={"customer_name": "Sharma Auto Works", "due_date": today(10), "items": LINES}, headers=auth_headers
    )).json()["data"]
    items = [{"part_no": "BP-101", "quantity": 2, "unit_price": "2500", "return_reason": "Damaged"}]

    too_much = await client.post(
        RETURNS, json={"invoice_id": invoice["id"], "refund_amount": "6000", "items": items}, headers=auth_headers
    )
    assert too_much.status_code == 400

    response = await client.post(RETURNS, json={"invoice_id": invoice["id"], "items": items}, headers=auth_headers)
    assert response.status_code == 201
    sales_return = response.json()["data"]
    assert sales_return["return_no"] == "SR-001"
    assert sales_return["invoice_no"] == invoice["invoice_no"]
    assert sales_return["customer_name"] == "Sharma Auto Works"
    assert Decimal(sales_return["refund_amount"]) == Decimal("5000")
    assert sales_return["items"][0]["return_reason"] == "Damaged"

    url = f"{RETURNS}{sales_return['id']}"
    assert (await client.patch(f"{url}/status", json={"status": "approved"}, headers=auth_headers)).status_code == 200
    assert (await client.patch(f"{url}/status", json={"status": "rejected"}, headers=auth_headers)).status_code == 400
    assert (await client.put(url, json={"notes": "late"}, headers=auth_headers)).status_code == 400
    assert (await client.patch(f"{url}/status", json={"status": "processed"}, headers=auth_headers)).status_code == 200
    assert (await client.delete(url, headers=auth_headers)).status_code == 400
