from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.customers.models import CustomerType
from src.parts.models import PriceCategory
from src.pricing.models import StructureStatus
from src.utils.pagination import PaginatedResponse


class PriceStructure(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_type: CustomerType
    discount_percentage: Decimal
    credit_limit: Decimal
    credit_days: int
    price_category: PriceCategory
    special_discount: Decimal
    min_order_value: Decimal
    status: StructureStatus
    effective_from: date
    effective_to: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime

class PriceStructureInput(BaseModel):
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = None
    customer_type: CustomerType
    # Left unset, these come from the customer type's defaults.
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    credit_days: Optional[int] = Field(default=None, ge=0)
    price_category: Optional[PriceCategory] = None
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    special_discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    min_order_value: Decimal = Field(default=Decimal("0"), ge=0)
    status: StructureStatus = StructureStatus.ACTIVE
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    notes: Optional[str] = None

class PriceStructureUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    credit_days: Optional[int] = Field(default=None, ge=0)
    price_category: Optional[PriceCategory] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    special_discount: Optional[Decimal] = Field(default=None, ge=0, le=100)
    min_order_value: Optional[Decimal] = Field(default=None, ge=0)
    status: Optional[StructureStatus] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    notes: Optional[str] = None

class BulkUpdateInput(BaseModel):
    customer_type: CustomerType
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    price_category: Optional[PriceCategory] = None
    credit_days: Optional[int] = Field(default=None, ge=0)

class PriceStructureResponse(BaseModel):
    success: bool
    message: str
    data: PriceStructure

class PriceStructureListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[PriceStructure]

class BulkUpdateData(BaseModel):
    updated_count: int

class BulkUpdateResponse(BaseModel):
    success: bool
    message: str
    data: BulkUpdateData
