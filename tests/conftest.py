import os

# Settings are read when src is first imported.
os.environ.setdefault("JWT_KEY", "test-jwt-key-with-enough-length-for-hs256")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.db.redis as redis_module
from src import app
from src.auth.models import User, Role
from src.db.main import get_Session, import_models
from src.utils.auth import create_token, generate_password_hash, access_token_expiry

ADMIN_EMAIL = "admin@autoparts.com"
ADMIN_PASSWORD = "password123"


class FakeRedis:
    """In-memory stand-in for the token blocklist client."""

    def __init__(self):
        self.store = {}

    async def setex(self, name, time, value):
        self.store[name] = (value, time)

    async def get(self, name):
        entry = self.store.get(name)
        return entry[0] if entry else None

    async def ping(self):
        return True

    async def close(self):
        self.store.clear()


@pytest.fixture
def fake_redis(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(redis_module, "redis_client", client)
    return client


@pytest_asyncio.fixture
async def session_maker():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


async def add_user(session_maker, email: str, role: Role) -> User:
    async with session_maker() as session:
        user = User(
            email=email,
            full_name=email.split("@")[0].title(),
            password_hash=generate_password_hash(ADMIN_PASSWORD),
            role=role,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def token_for(user: User) -> str:
    return create_token(user.model_dump(), access_token_expiry, type="access")


@pytest_asyncio.fixture
async def admin_user(session_maker):
    return await add_user(session_maker, ADMIN_EMAIL, Role.ADMIN)


@pytest.fixture
def auth_headers(admin_user):
    return {"Authorization": f"Bearer {token_for(admin_user)}"}


@pytest_asyncio.fixture
async def client(session_maker, fake_redis):
    async def override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_Session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_part(client, auth_headers):
    async def _make_part(**overrides):
        payload = {
            "part_no": f"BP-{uuid.uuid4().hex[:6].upper()}",
            "description": "Brake pad set",
            "brand": "Bosch",
            "cost_price": "1500.00",
            "price_a": "2500.00",
            "price_b": "2200.00",
            "price_m": "2000.00",
        }
        payload.update(overrides)
        response = await client.post("/api/parts/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make_part


@pytest.fixture
def make_customer(client, auth_headers):
    async def _make_customer(**overrides):
        payload = {
            "name": "Sharma Auto Works",
            "phone": "9800000001",
            "customer_type": "retail",
        }
        payload.update(overrides)
        response = await client.post("/api/customers/", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make_customer
