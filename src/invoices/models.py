from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class SalesInvoice(SQLModel, table=True):
    __tablename__ = "sales_invoices"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    invoice_no: str = Field(unique=True, index=True)
    order_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_orders.id")
    quotation_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_quotations.id")
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    invoice_date: date = Field(default_factory=date.today)
    due_date: date
    status: InvoiceStatus = Field(default=InvoiceStatus.DRAFT, index=True)

    sub_total: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    balance_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)  # total_amount - paid_amount
    notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    items: List["InvoiceItem"] = Relationship(back_populates="invoice", sa_relationship_kwargs={"cascade": "all, delete-orphan"})


class InvoiceItem(SQLModel, table=True):
    __tablename__ = "sales_invoice_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    invoice_id: uuid.UUID = Field(foreign_key="sales_invoices.id")
    part_id: Optional[uuid.UUID] = Field(default=None, foreign_key="parts.id", index=True)
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(decimal_places=2)
    line_total: Decimal = Field(decimal_places=2)
    uom: str = Field(default="pcs")

    invoice: SalesInvoice = Relationship(back_populates="items")
