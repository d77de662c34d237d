import logging

from sqlalchemy.exc import OperationalError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.categories.models import Category

URL = "/api/categories/"


async def create_category(client, headers, **payload):
    response = await client.post(URL, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_create_main_category_defaults(client, auth_headers):
    category = await create_category(client, auth_headers, name="Brakes")

    assert category["type"] == "main"
    assert category["status"] == "A"
    assert category["parent_id"] is None


async def test_main_category_never_keeps_parent(client, auth_headers):
    brakes = await create_category(client, auth_headers, name="Brakes")

    category = await create_category(client, auth_headers, name="Engine", type="main", parent_id=brakes["id"])

    assert category["parent_id"] is None


async def test_subcategory_requires_main_parent(client, auth_headers):
    brakes = await create_category(client, auth_headers, name="Brakes")
    pads = await create_category(client, auth_headers, name="Pads", type="sub", parent_id=brakes["id"])
    assert pads["parent"]["name"] == "Brakes"

    missing_parent = await client.post(URL, json={"name": "Discs", "type": "sub"}, headers=auth_headers)
    assert missing_parent.status_code == 400

    sub_parent = await client.post(URL, json={"name": "Shoes", "type": "sub", "parent_id": pads["id"]}, headers=auth_headers)
    assert sub_parent.status_code == 400
    assert sub_parent.json()["message"] == "Parent must be a main category"


async def test_duplicate_name_is_rejected(client, auth_headers):
    await create_category(client, auth_headers, name="Filters")

    response = await client.post(URL, json={"name": "Filters"}, headers=auth_headers)

    assert response.status_code == 400


async def test_type_main_lists_only_top_level(client, auth_headers):
    brakes = await create_category(client, auth_headers, name="Brakes")
    await create_category(client, auth_headers, name="Pads", type="sub", parent_id=brakes["id"])
    await create_category(client, auth_headers, name="Suspension")

    response = await client.get(URL, params={"type": "main"}, headers=auth_headers)

    assert response.status_code == 200
    categories = response.json()["data"]
    assert [c["name"] for c in categories] == ["Brakes", "Suspension"]
    assert [s["name"] for s in categories[0]["subcategories"]] == ["Pads"]


async def test_status_filter(client, auth_headers):
    await create_category(client, auth_headers, name="Lighting", status="I")
    await create_category(client, auth_headers, name="Wipers")

    active = await client.get(URL, params={"status": "A"}, headers=auth_headers)
    everything = await client.get(URL, params={"status": "all"}, headers=auth_headers)

    assert [c["name"] for c in active.json()["data"]] == ["Wipers"]
    assert len(everything.json()["data"]) == 2


async def test_malformed_json_is_bad_request(client, auth_headers):
    headers = {**auth_headers, "Content-Type": "application/json"}

    response = await client.post(URL, content="{\"name\": ", headers=headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request body"


async def test_missing_body_is_bad_request(client, auth_headers):
    response = await client.post(URL, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request body"


async def test_field_errors_are_unprocessable(client, auth_headers):
    response = await client.post(URL, json={"name": ""}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "name"


async def test_requires_authentication(client):
    response = await client.get(URL)

    assert response.status_code == 401


async def test_update_and_delete(client, auth_headers):
    brakes = await create_category(client, auth_headers, name="Brakes")
    await create_category(client, auth_headers, name="Pads", type="sub", parent_id=brakes["id"])

    updated = await client.put(f"{URL}{brakes['id']}", json={"description": "Braking system"}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["description"] == "Braking system"

    blocked = await client.delete(f"{URL}{brakes['id']}", headers=auth_headers)
    assert blocked.status_code == 400

    lone = await create_category(client, auth_headers, name="Mirrors")
    deleted = await client.delete(f"{URL}{lone['id']}", headers=auth_headers)
    assert deleted.status_code == 200

    gone = await client.get(f"{URL}{lone['id']}", headers=auth_headers)
    assert gone.status_code == 404


def fail_category_queries(monkeypatch, relational_only: bool):
    original_exec = AsyncSession.exec

    async def failing_exec(self, statement, *args, **kwargs):
        froms = statement.get_final_froms() if hasattr(statement, "get_final_froms") else []
        if Category.__table__ in froms and (statement._with_options or not relational_only):
            raise OperationalError("SELECT categories", {}, Exception("relation lookup failed"))
        return await original_exec(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "exec", failing_exec)


async def test_list_falls_back_to_flat_query(client, auth_headers, monkeypatch, caplog):
    brakes = await create_category(client, auth_headers, name="Brakes")
    await create_category(client, auth_headers, name="Pads", type="sub", parent_id=brakes["id"])
    fail_category_queries(monkeypatch, relational_only=True)

    with caplog.at_level(logging.WARNING, logger="src.categories.services"):
        response = await client.get(URL, headers=auth_headers)

    assert response.status_code == 200
    categories = response.json()["data"]
    assert [c["name"] for c in categories] == ["Brakes", "Pads"]
    assert all(c["subcategories"] == [] and c["parent"] is None for c in categories)
    assert categories[1]["parent_id"] == brakes["id"]
    assert "trying without relations" in caplog.text


async def test_list_fails_when_flat_query_fails_too(client, auth_headers, monkeypatch):
    await create_category(client, auth_headers, name="Brakes")
    fail_category_queries(monkeypatch, relational_only=False)

    response = await client.get(URL, headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["message"].startswith("Failed to fetch categories:")
    assert "relation lookup failed" in response.json()["message"]
