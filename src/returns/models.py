from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class ReturnStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PROCESSED = "processed"
    REJECTED = "rejected"


class SalesReturn(SQLModel, table=True):
    __tablename__ = "sales_returns"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    return_no: str = Field(unique=True, index=True)
    invoice_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_invoices.id")
    invoice_no: Optional[str] = None
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_phone: Optional[str] = None
    return_date: date = Field(default_factory=date.today)
    status: ReturnStatus = Field(default=ReturnStatus.DRAFT, index=True)

    total_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    refund_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)  # never above total_amount
    reason: Optional[str] = None
    notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    items: List["ReturnItem"] = Relationship(back_populates="sales_return", sa_relationship_kwargs={"cascade": "all, delete-orphan"})


class ReturnItem(SQLModel, table=True):
    __tablename__ = "sales_return_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    return_id: uuid.UUID = Field(foreign_key="sales_returns.id")
    part_id: Optional[uuid.UUID] = Field(default=None, foreign_key="parts.id")
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(decimal_places=2)
    line_total: Decimal = Field(decimal_places=2)
    return_reason: Optional[str] = None
    uom: str = Field(default="pcs")

    sales_return: SalesReturn = Relationship(back_populates="items")
