from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class QuotationStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class SalesQuotation(SQLModel, table=True):
    __tablename__ = "sales_quotations"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quotation_no: str = Field(unique=True, index=True)
    inquiry_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_inquiries.id")
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    quotation_date: date = Field(default_factory=date.today)
    valid_until: date
    status: QuotationStatus = Field(default=QuotationStatus.DRAFT, index=True)

    sub_total: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    items: List["QuotationItem"] = Relationship(back_populates="quotation", sa_relationship_kwargs={"cascade": "all, delete-orphan"})


class QuotationItem(SQLModel, table=True):
    __tablename__ = "sales_quotation_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quotation_id: uuid.UUID = Field(foreign_key="sales_quotations.id")
    part_id: Optional[uuid.UUID] = Field(default=None, foreign_key="parts.id")
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(decimal_places=2)
    line_total: Decimal = Field(decimal_places=2)   # quantity * unit_price
    uom: str = Field(default="pcs")

    quotation: SalesQuotation = Relationship(back_populates="items")
