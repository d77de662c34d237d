from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.quotations.models import QuotationStatus
from src.parts.schemas import LineItemInput, LineItem
from src.utils.pagination import PaginatedResponse


class SalesQuotation(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    quotation_no: str
    inquiry_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    quotation_date: date
    valid_until: date
    status: QuotationStatus
    sub_total: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime
    items: List[LineItem] = []

class QuotationInput(BaseModel):
    quotation_no: Optional[str] = None
    inquiry_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    quotation_date: Optional[date] = None
    valid_until: date
    status: QuotationStatus = QuotationStatus.DRAFT
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    items: List[LineItemInput] = Field(min_length=1)

class QuotationUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    quotation_date: Optional[date] = None
    valid_until: Optional[date] = None
    status: Optional[QuotationStatus] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    discount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)

class QuotationResponse(BaseModel):
    success: bool
    message: str
    data: SalesQuotation

class QuotationListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[SalesQuotation]
