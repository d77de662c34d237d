from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum
from src.customers.models import CustomerType
from src.parts.models import PriceCategory

def utc_now():
    return datetime.now(timezone.utc)

class OrderStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY = "ready"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class SalesOrder(SQLModel, table=True):
    __tablename__ = "sales_orders"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_no: str = Field(unique=True, index=True)
    quotation_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_quotations.id")
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    price_category: PriceCategory = Field(default=PriceCategory.RETAIL)
    order_date: date = Field(default_factory=date.today)
    expected_delivery_date: Optional[date] = None
    status: OrderStatus = Field(default=OrderStatus.DRAFT, index=True)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    payment_terms: Optional[str] = None

    sub_total: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    tax: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    discount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    total_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    advance_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    balance_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)  # total_amount - advance_amount

    notes: Optional[str] = None
    delivery_notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    items: List["OrderItem"] = Relationship(back_populates="order", sa_relationship_kwargs={"cascade": "all, delete-orphan"})


class OrderItem(SQLModel, table=True):
    __tablename__ = "sales_order_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    order_id: uuid.UUID = Field(foreign_key="sales_orders.id")
    part_id: Optional[uuid.UUID] = Field(default=None, foreign_key="parts.id")
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(decimal_places=2)  # Captured snapshot
    line_total: Decimal = Field(decimal_places=2)
    uom: str = Field(default="pcs")

    order: SalesOrder = Relationship(back_populates="items")
