from decimal import Decimal

PARTS = "/api/parts/"
STRUCTURES = "/api/customer-price-structures/"


async def test_part_number_is_unique(client, auth_headers, make_part):
    await make_part(part_no="OF-100")

    response = await client.post(PARTS, json={"part_no": "OF-100"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Part number already exists"


async def test_part_search_and_update(client, auth_headers, make_part):
    await make_part(part_no="OF-100", brand="Mann", description="Oil filter")
    pad = await make_part(part_no="BP-200", brand="Bosch", description="Brake pad")

    found = await client.get(PARTS, params={"search": "bosch"}, headers=auth_headers)
    assert [p["part_no"] for p in found.json()["data"]["items"]] == ["BP-200"]
    assert found.json()["data"]["total_count"] == 1

    updated = await client.patch(f"{PARTS}{pad['id']}", json={"price_b": "2100"}, headers=auth_headers)
    assert Decimal(updated.json()["data"]["price_b"]) == Decimal("2100")


async def test_part_with_unknown_category_is_rejected(client, auth_headers):
    response = await client.post(
        PARTS,
        json={"part_no": "X-1", "category_id": "00000000-0000-0000-0000-000000000001"},
        headers=auth_headers,
    )

    assert response.status_code == 404


async def test_customer_crud(client, auth_headers, make_customer):
    customer = await make_customer(name="Gupta Motors", customer_type="wholesale")

    listed = await client.get("/api/customers/", params={"search": "gupta"}, headers=auth_headers)
    assert listed.json()["data"]["total_count"] == 1

    updated = await client.patch(f"/api/customers/{customer['id']}", json={"phone": "9811111111"}, headers=auth_headers)
    assert updated.json()["data"]["phone"] == "9811111111"

    deleted = await client.delete(f"/api/customers/{customer['id']}", headers=auth_headers)
    assert deleted.status_code == 200


async def test_structure_takes_customer_type_defaults(client, auth_headers, make_customer):
    customer = await make_customer(name="Gupta Motors", customer_type="wholesale")

    response = await client.post(
        STRUCTURES,
        json={"customer_id": customer["id"], "customer_type": "wholesale", "credit_limit": "100000"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    structure = response.json()["data"]
    assert structure["customer_name"] == "Gupta Motors"
    assert structure["price_category"] == "B"
    assert Decimal(structure["discount_percentage"]) == Decimal("10")
    assert structure["credit_days"] == 45


async def test_structure_dates_must_be_ordered(client, auth_headers):
    response = await client.post(
        STRUCTURES,
        json={
            "customer_name": "Walk-in Market",
            "customer_type": "market",
            "effective_from": "2024-06-01",
            "effective_to": "2024-05-01",
        },
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_bulk_update_by_customer_type(client, auth_headers):
    for name in ("Alpha Distributors", "Beta Distributors"):
        await client.post(STRUCTURES, json={"customer_name": name, "customer_type": "distributor"}, headers=auth_headers)
    await client.post(STRUCTURES, json={"customer_name": "Corner Shop", "customer_type": "retail"}, headers=auth_headers)

    response = await client.post(
        f"{STRUCTURES}bulk-update",
        json={"customer_type": "distributor", "credit_days": 120},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["updated_count"] == 2

    listed = await client.get(STRUCTURES, params={"customer_type": "distributor"}, headers=auth_headers)
    assert {s["credit_days"] for s in listed.json()["data"]["items"]} == {120}


async def test_order_lines_use_customer_price_level(client, auth_headers, make_part, make_customer):
    part = await make_part(price_a="2500", price_b="2200", price_m="2000")
    customer = await make_customer(name="Gupta Motors", customer_type="wholesale")

    response = await client.post(
        "/api/sales-orders/",
        json={
            "customer_id": customer["id"],
            "customer_name": customer["name"],
            "items": [{"part_id": part["id"], "quantity": 2}],
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    order = response.json()["data"]
    assert order["price_category"] == "B"
    assert order["customer_type"] == "wholesale"
    assert Decimal(order["items"][0]["unit_price"]) == Decimal("2200")
    assert order["items"][0]["part_no"] == part["part_no"]


async def test_customer_with_unpaid_receivable_is_kept(client, auth_headers, make_customer):
    customer = await make_customer(customer_type="distributor")
    await make_customer(name="Corner Shop")
    await client.post(
        "/api/receivables/",
        json={
            "invoice_no": "INV-500",
            "customer_id": customer["id"],
            "customer_name": customer["name"],
            "invoice_date": "2024-01-01",
            "due_date": "2024-02-01",
            "total_amount": "1000",
        },
        headers=auth_headers,
    )

    distributors = await client.get("/api/customers/", params={"customer_type": "distributor"}, headers=auth_headers)
    assert [c["id"] for c in distributors.json()["data"]["items"]] == [customer["id"]]

    blocked = await client.delete(f"/api/customers/{customer['id']}", headers=auth_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Customer has unpaid receivables"
