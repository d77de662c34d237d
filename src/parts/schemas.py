from pydantic import Field, BaseModel, ConfigDict
import uuid
from src.categories.models import RecordStatus
from datetime import datetime
from typing import Optional
from decimal import Decimal
from src.utils.pagination import PaginatedResponse


class Part(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    part_no: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    uom: str
    cost_price: Decimal
    price_a: Decimal
    price_b: Decimal
    price_m: Decimal
    status: RecordStatus
    created_at: datetime

class PartCreateInput(BaseModel):
    part_no: str = Field(min_length=1)
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    uom: str = "pcs"
    cost_price: Decimal = Field(default=Decimal("0"), ge=0)
    price_a: Decimal = Field(default=Decimal("0"), ge=0)
    price_b: Decimal = Field(default=Decimal("0"), ge=0)
    price_m: Decimal = Field(default=Decimal("0"), ge=0)
    status: RecordStatus = RecordStatus.ACTIVE

class UpdatePartInput(BaseModel):
    description: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    uom: Optional[str] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    price_a: Optional[Decimal] = Field(default=None, ge=0)
    price_b: Optional[Decimal] = Field(default=None, ge=0)
    price_m: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[RecordStatus] = None

class PartResponse(BaseModel):
    success: bool
    message: str
    data: Part

class PartListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[Part]


class LineItemInput(BaseModel):
    part_id: Optional[uuid.UUID] = None
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int = Field(gt=0)
    # Taken from the part's price level when omitted.
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    uom: Optional[str] = None

class LineItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    part_id: Optional[uuid.UUID] = None
    part_no: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    uom: str
