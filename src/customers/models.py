from sqlmodel import SQLModel, Field, Column
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

def utc_now():
    return datetime.now(timezone.utc)

class CustomerType(str, Enum):
    RETAIL = "retail"
    WHOLESALE = "wholesale"
    MARKET = "market"
    DISTRIBUTOR = "distributor"

class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(index=True)
    name: str = Field(index=True)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    customer_type: CustomerType = Field(default=CustomerType.RETAIL, index=True)

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
