from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.returns.models import ReturnStatus
from src.parts.schemas import LineItemInput, LineItem
from src.utils.pagination import PaginatedResponse


class ReturnItem(LineItem):
    return_reason: Optional[str] = None

class SalesReturn(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    return_no: str
    invoice_id: Optional[uuid.UUID] = None
    invoice_no: Optional[str] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_phone: Optional[str] = None
    return_date: date
    status: ReturnStatus
    total_amount: Decimal
    refund_amount: Decimal
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[ReturnItem] = []

class ReturnItemInput(LineItemInput):
    return_reason: Optional[str] = None

class ReturnInput(BaseModel):
    return_no: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_phone: Optional[str] = None
    return_date: Optional[date] = None
    # Defaults to the return total.
    refund_amount: Optional[Decimal] = Field(default=None, ge=0)
    reason: Optional[str] = None
    notes: Optional[str] = None
    items: List[ReturnItemInput] = Field(min_length=1)

class ReturnUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_phone: Optional[str] = None
    return_date: Optional[date] = None
    refund_amount: Optional[Decimal] = Field(default=None, ge=0)
    reason: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[List[ReturnItemInput]] = Field(default=None, min_length=1)

class ReturnStatusInput(BaseModel):
    status: ReturnStatus

class ReturnResponse(BaseModel):
    success: bool
    message: str
    data: SalesReturn

class ReturnListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[SalesReturn]
