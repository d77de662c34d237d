import pytest

CHALLANS = "/api/delivery-challans/"

ITEMS = [
    {"part_no": "BP-101", "description": "Brake pad", "ordered_qty": 10},
    {"part_no": "OF-202", "description": "Oil filter", "ordered_qty": 4, "delivered_qty": 1},
]


async def create_challan(client, headers, **overrides):
    payload = {"customer_name": "Sharma Auto Works", "delivery_address": "Plot 4, Industrial Area", "items": ITEMS}
    payload.update(overrides)
    response = await client.post(CHALLANS, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def set_status(client, headers, challan_id, new_status):
    return await client.patch(f"{CHALLANS}{challan_id}/status", json={"status": new_status}, headers=headers)


async def ready_challan(client, headers):
    challan = await create_challan(client, headers)
    response = await set_status(client, headers, challan["id"], "ready")
    assert response.status_code == 200
    return response.json()["data"]


async def test_create_computes_pending_and_number(client, auth_headers):
    challan = await create_challan(client, auth_headers)

    assert challan["challan_no"] == "DC-001"
    assert challan["status"] == "draft"
    assert {i["part_no"]: i["pending_qty"] for i in challan["items"]} == {"BP-101": 10, "OF-202": 3}

    next_number = await client.get(f"{CHALLANS}next-number", headers=auth_headers)
    assert next_number.json()["data"]["next_number"] == "DC-002"


async def test_create_requires_items(client, auth_headers):
    response = await client.post(CHALLANS, json={"customer_name": "A", "items": []}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Challan must have at least one item"


async def test_delivered_cannot_exceed_ordered(client, auth_headers):
    response = await client.post(
        CHALLANS,
        json={"customer_name": "A", "items": [{"part_no": "X", "ordered_qty": 2, "delivered_qty": 3}]},
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_challan_copies_order_lines(client, auth_headers):
    order = (await client.post(
        "/api/sales-orders/",
        json={"customer_name": "Gupta Motors", "items": [{"part_no": "CL-1", "quantity": 3, "unit_price": "900"}]},
        headers=auth_headers,
    )).json()["data"]

    challan = await create_challan(client, auth_headers, customer_name=None, order_id=order["id"], items=[])

    assert challan["customer_name"] == "Gupta Motors"
    assert challan["items"][0]["part_no"] == "CL-1"
    assert challan["items"][0]["ordered_qty"] == 3
    assert challan["items"][0]["pending_qty"] == 3


async def test_update_recomputes_pending(client, auth_headers):
    challan = await create_challan(client, auth_headers)

    response = await client.put(
        f"{CHALLANS}{challan['id']}",
        json={"items": [{"part_no": "BP-101", "ordered_qty": 8, "delivered_qty": 2}]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert [i["pending_qty"] for i in response.json()["data"]["items"]] == [6]


async def test_dispatch_requires_ready(client, auth_headers):
    challan = await create_challan(client, auth_headers)

    response = await client.post(f"{CHALLANS}{challan['id']}/dispatch", json={}, headers=auth_headers)

    assert response.status_code == 400


async def test_full_dispatch_and_delivery(client, auth_headers):
    challan = await ready_challan(client, auth_headers)

    dispatched = await client.post(
        f"{CHALLANS}{challan['id']}/dispatch",
        json={"vehicle_no": "MH12AB1234", "driver_name": "Ramesh"},
        headers=auth_headers,
    )
    assert dispatched.status_code == 200
    data = dispatched.json()["data"]
    assert data["status"] == "dispatched"
    assert data["vehicle_no"] == "MH12AB1234"
    assert data["dispatch_date"] is not None
    assert {i["part_no"]: i["dispatched_qty"] for i in data["items"]} == {"BP-101": 10, "OF-202": 4}

    delivered = await client.post(f"{CHALLANS}{challan['id']}/deliver", json={"receiver_name": "Anil"}, headers=auth_headers)
    assert delivered.status_code == 200
    data = delivered.json()["data"]
    assert data["status"] == "delivered"
    assert data["receiver_name"] == "Anil"
    assert [i["pending_qty"] for i in data["items"]] == [0, 0]


async def test_partial_delivery_then_completion(client, auth_headers):
    challan = await ready_challan(client, auth_headers)
    first, second = sorted(challan["items"], key=lambda i: i["part_no"])
    url = f"{CHALLANS}{challan['id']}"

    await client.post(f"{url}/dispatch", json={}, headers=auth_headers)

    partial = await client.post(
        f"{url}/deliver",
        json={"receiver_name": "Anil", "items": [{"item_id": first["id"], "delivered_qty": 6, "remarks": "4 short"}]},
        headers=auth_headers,
    )
    assert partial.status_code == 200
    data = partial.json()["data"]
    assert data["status"] == "partial"
    pending = {i["id"]: i["pending_qty"] for i in data["items"]}
    assert pending == {first["id"]: 4, second["id"]: 0}

    completed = await client.post(f"{url}/deliver", json={"receiver_name": "Anil"}, headers=auth_headers)
    assert completed.json()["data"]["status"] == "delivered"


async def test_dispatch_quantities_are_bounded(client, auth_headers):
    challan = await ready_challan(client, auth_headers)
    first, second = sorted(challan["items"], key=lambda i: i["part_no"])
    url = f"{CHALLANS}{challan['id']}/dispatch"

    over = await client.post(url, json={"items": [{"item_id": first["id"], "dispatched_qty": 11}]}, headers=auth_headers)
    assert over.status_code == 400

    nothing = await client.post(
        url,
        json={"items": [{"item_id": first["id"], "dispatched_qty": 0}, {"item_id": second["id"], "dispatched_qty": 0}]},
        headers=auth_headers,
    )
    assert nothing.status_code == 400

    unknown = await client.post(
        url, json={"items": [{"item_id": "00000000-0000-0000-0000-000000000001", "dispatched_qty": 1}]}, headers=auth_headers
    )
    assert unknown.status_code == 400


async def test_delivery_cannot_exceed_dispatch(client, auth_headers):
    challan = await ready_challan(client, auth_headers)
    first = next(i for i in challan["items"] if i["part_no"] == "BP-101")
    url = f"{CHALLANS}{challan['id']}"
    await client.post(f"{url}/dispatch", json={"items": [{"item_id": first["id"], "dispatched_qty": 5}]}, headers=auth_headers)

    response = await client.post(
        f"{url}/deliver",
        json={"receiver_name": "Anil", "items": [{"item_id": first["id"], "delivered_qty": 6}]},
        headers=auth_headers,
    )

    assert response.status_code == 400


@pytest.mark.parametrize("path, expected", [
    (["ready", "draft"], 200),
    (["cancelled"], 200),
    (["delivered"], 400),
    (["dispatched"], 400),
    (["cancelled", "ready"], 400),
])
async def test_status_transitions(client, auth_headers, path, expected):
    challan = await create_challan(client, auth_headers)

    response = None
    for new_status in path:
        response = await set_status(client, auth_headers, challan["id"], new_status)

    assert response.status_code == expected


async def test_edit_locked_after_dispatch(client, auth_headers):
    challan = await ready_challan(client, auth_headers)
    await client.post(f"{CHALLANS}{challan['id']}/dispatch", json={}, headers=auth_headers)

    response = await client.put(f"{CHALLANS}{challan['id']}", json={"notes": "late"}, headers=auth_headers)

    assert response.status_code == 400


async def test_only_draft_challans_are_deleted(client, auth_headers):
    ready = await ready_challan(client, auth_headers)
    assert (await client.delete(f"{CHALLANS}{ready['id']}", headers=auth_headers)).status_code == 400

    draft = await create_challan(client, auth_headers)
    assert (await client.delete(f"{CHALLANS}{draft['id']}", headers=auth_headers)).status_code == 200


async def test_stats_and_status_filter(client, auth_headers):
    await create_challan(client, auth_headers)
    ready = await ready_challan(client, auth_headers)
    dispatched = await ready_challan(client, auth_headers)
    await client.post(f"{CHALLANS}{dispatched['id']}/dispatch", json={}, headers=auth_headers)
    await set_status(client, auth_headers, dispatched["id"], "in_transit")

    stats = (await client.get(f"{CHALLANS}stats", headers=auth_headers)).json()["data"]
    assert stats == {"total": 3, "draft": 1, "ready": 1, "dispatched": 1, "delivered": 0, "partial": 0}

    listed = await client.get(CHALLANS, params={"status": "ready"}, headers=auth_headers)
    assert [c["id"] for c in listed.json()["data"]["items"]] == [ready["id"]]


async def test_partial_dispatch_is_topped_up_then_delivered(client, auth_headers):
    challan = await ready_challan(client, auth_headers)
    first, second = sorted(challan["items"], key=lambda i: i["part_no"])
    url = f"{CHALLANS}{challan['id']}"

    await client.post(f"{url}/dispatch", json={"items": [{"item_id": first["id"], "dispatched_qty": 5}]}, headers=auth_headers)
    partial = await client.post(f"{url}/deliver", json={"receiver_name": "Anil"}, headers=auth_headers)
    assert partial.json()["data"]["status"] == "partial"
    assert {i["id"]: i["pending_qty"] for i in partial.json()["data"]["items"]} == {first["id"]: 5, second["id"]: 0}

    reduced = await client.post(f"{url}/dispatch", json={"items": [{"item_id": first["id"], "dispatched_qty": 4}]}, headers=auth_headers)
    assert reduced.status_code == 400

    topped_up = await client.post(f"{url}/dispatch", json={"vehicle_no": "MH12CD5678"}, headers=auth_headers)
    assert topped_up.status_code == 200
    data = topped_up.json()["data"]
    assert data["status"] == "dispatched"
    assert {i["id"]: i["dispatched_qty"] for i in data["items"]} == {first["id"]: 10, second["id"]: 4}

    nothing_left = await client.post(f"{url}/dispatch", json={}, headers=auth_headers)
    assert nothing_left.status_code == 400

    delivered = await client.post(f"{url}/deliver", json={"receiver_name": "Anil"}, headers=auth_headers)
    assert delivered.json()["data"]["status"] == "delivered"
    assert [i["pending_qty"] for i in delivered.json()["data"]["items"]] == [0, 0]


async def test_numbering_continues_past_three_digits(client, auth_headers):
    for number in ("DC-998", "DC-1000", "DC-999"):
        await create_challan(client, auth_headers, challan_no=number)

    next_number = await client.get(f"{CHALLANS}next-number", headers=auth_headers)
    assert next_number.json()["data"]["next_number"] == "DC-1001"

    challan = await create_challan(client, auth_headers)
    assert challan["challan_no"] == "DC-1001"
