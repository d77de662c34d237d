from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class ChallanStatus(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    DISPATCHED = "dispatched"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    PARTIAL = "partial"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class DeliveryChallan(SQLModel, table=True):
    __tablename__ = "delivery_challans"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    challan_no: str = Field(unique=True, index=True)
    order_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_orders.id", index=True)
    order_no: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_invoices.id")
    invoice_no: Optional[str] = None

    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None

    delivery_date: date = Field(default_factory=date.today)
    dispatch_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None

    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    transporter: Optional[str] = None

    status: ChallanStatus = Field(default=ChallanStatus.DRAFT, index=True)
    dispatched_by: Optional[str] = None
    delivery_confirmed_by: Optional[str] = None
    receiver_name: Optional[str] = None

    total_packages: int = Field(default=0)
    total_weight: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    notes: Optional[str] = None
    dispatch_notes: Optional[str] = None
    delivery_notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    items: List["ChallanItem"] = Relationship(back_populates="challan", sa_relationship_kwargs={"cascade": "all, delete-orphan"})


class ChallanItem(SQLModel, table=True):
    __tablename__ = "delivery_challan_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    challan_id: uuid.UUID = Field(foreign_key="delivery_challans.id")
    part_id: Optional[uuid.UUID] = Field(default=None, foreign_key="parts.id")
    part_no: Optional[str] = None
    description: Optional[str] = None
    ordered_qty: int = Field(gt=0)
    dispatched_qty: int = Field(default=0)
    delivered_qty: int = Field(default=0)
    pending_qty: int = Field(default=0)  # ordered_qty - delivered_qty
    uom: str = Field(default="pcs")
    remarks: Optional[str] = None

    challan: DeliveryChallan = Relationship(back_populates="items")
