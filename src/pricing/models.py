from sqlmodel import SQLModel, Field, Column
import uuid
from datetime import datetime, date, timezone
import sqlalchemy.dialects.postgresql as pg
from enum import Enum
from decimal import Decimal
from typing import Optional
from src.customers.models import CustomerType
from src.parts.models import PriceCategory


def utc_now():
    return datetime.now(timezone.utc)

class StructureStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class PriceStructure(SQLModel, table=True):
    __tablename__ = "customer_price_structures"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_type: CustomerType = Field(index=True)
    discount_percentage: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    credit_limit: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    credit_days: int = Field(default=30)
    price_category: PriceCategory = Field(default=PriceCategory.RETAIL)
    special_discount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    min_order_value: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    status: StructureStatus = Field(default=StructureStatus.ACTIVE)
    effective_from: date = Field(default_factory=date.today)
    effective_to: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
