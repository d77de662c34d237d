import pytest

from src.auth.models import Role
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, add_user, token_for


async def login(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    return await client.post("/api/auth/login", json={"email": email, "password": password})


async def test_login_returns_token_pair(client, admin_user):
    response = await login(client)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == ADMIN_EMAIL
    assert data["role"] == "admin"
    assert data["access_token"].count(".") == 2
    assert data["refresh_token"].count(".") == 2


async def test_login_with_wrong_password_is_rejected(client, admin_user):
    response = await login(client, password="not-the-password")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Invalid Credentials", "data": None}


async def test_me_returns_current_user(client, auth_headers):
    response = await client.get("/api/auth/me", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["email"] == ADMIN_EMAIL


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer not-a-jwt"}])
async def test_me_requires_valid_token(client, admin_user, headers):
    response = await client.get("/api/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["success"] is False


async def test_logout_revokes_access_token(client, admin_user, fake_redis):
    tokens = (await login(client)).json()["data"]
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    response = await client.post("/api/auth/logout", json={"refresh_token": tokens["refresh_token"]}, headers=headers)
    assert response.status_code == 200
    assert len(fake_redis.store) == 2

    response = await client.get("/api/auth/me", headers=headers)
    assert response.status_code == 401
    assert "revoked" in response.json()["message"]


async def test_refresh_token_rotation_blocks_reuse(client, admin_user):
    tokens = (await login(client)).json()["data"]
    refresh_headers = {"Authorization": f"Bearer {tokens['refresh_token']}"}

    response = await client.post("/api/auth/renew_access_token", headers=refresh_headers)
    assert response.status_code == 201
    renewed = response.json()["data"]
    assert renewed["access_token"] != tokens["access_token"]

    reused = await client.post("/api/auth/renew_access_token", headers=refresh_headers)
    assert reused.status_code == 401


async def test_access_token_cannot_renew(client, auth_headers):
    response = await client.post("/api/auth/renew_access_token", headers=auth_headers)

    assert response.status_code == 401


async def test_admin_creates_user(client, auth_headers):
    payload = {"email": "Accounts@AutoParts.com", "full_name": "Accounts Desk", "password": "s3cretpass", "role": "accounts"}

    response = await client.post("/api/auth/users", json=payload, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["data"]["email"] == "accounts@autoparts.com"

    duplicate = await client.post("/api/auth/users", json=payload, headers=auth_headers)
    assert duplicate.status_code == 400


async def test_non_admin_cannot_create_user(client, session_maker):
    staff = await add_user(session_maker, "staff@autoparts.com", Role.STAFF)
    headers = {"Authorization": f"Bearer {token_for(staff)}"}
    payload = {"email": "new@autoparts.com", "full_name": "New User", "password": "s3cretpass"}

    response = await client.post("/api/auth/users", json=payload, headers=headers)

    assert response.status_code == 403
