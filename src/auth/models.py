from sqlmodel import SQLModel, Field, Column
import uuid
from datetime import datetime, timezone
import sqlalchemy.dialects.postgresql as pg

from enum import Enum


def utc_now():
    return datetime.now(timezone.utc)

class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    SALES = "sales"
    ACCOUNTS = "accounts"
    STAFF = "staff"

class User(SQLModel, table=True):
    __tablename__ = "users"

    user_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(unique=True, index=True)
    full_name: str
    password_hash: str = Field(exclude=True)
    role: Role = Field(default=Role.STAFF)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
