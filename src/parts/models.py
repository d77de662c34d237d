from sqlmodel import SQLModel, Field, Column
import uuid
from datetime import datetime, timezone
import sqlalchemy.dialects.postgresql as pg
from enum import Enum
from decimal import Decimal
from typing import Optional
from src.categories.models import RecordStatus


def utc_now():
    return datetime.now(timezone.utc)

class PriceCategory(str, Enum):
    RETAIL = "A"
    WHOLESALE = "B"
    MARKET = "M"


class Part(SQLModel, table=True):
    __tablename__ = "parts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    part_no: str = Field(unique=True, index=True)
    description: Optional[str] = None
    brand: Optional[str] = Field(default=None, index=True)
    category_id: Optional[uuid.UUID] = Field(default=None, foreign_key="categories.id", index=True)
    uom: str = Field(default="pcs")
    cost_price: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    price_a: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    price_b: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    price_m: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    status: RecordStatus = Field(default=RecordStatus.ACTIVE)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )


def price_for_category(part: Part, price_category: Optional[PriceCategory]) -> Decimal:
    """Unit price of ``part`` at the customer's price level (retail when unknown)."""
    if price_category == PriceCategory.WHOLESALE:
        return part.price_b
    if price_category == PriceCategory.MARKET:
        return part.price_m
    return part.price_a
