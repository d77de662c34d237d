from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.orders.models import OrderStatus, PaymentStatus
from src.customers.models import CustomerType
from src.parts.models import PriceCategory
from src.parts.schemas import LineItemInput, LineItem
from src.utils.pagination import PaginatedResponse


class SalesOrder(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    order_no: str
    quotation_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    price_category: PriceCategory
    order_date: date
    expected_delivery_date: Optional[date] = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_terms: Optional[str] = None
    sub_total: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    advance_amount: Decimal
    balance_amount: Decimal
    notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    created_at: datetime
    items: List[LineItem] = []

class OrderInput(BaseModel):
    order_no: Optional[str] = None
    quotation_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    price_category: Optional[PriceCategory] = None
    order_date: Optional[date] = None
    expected_delivery_date: Optional[date] = None
    payment_terms: Optional[str] = None
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    advance_amount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    items: List[LineItemInput] = Field(min_length=1)

class OrderUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    expected_delivery_date: Optional[date] = None
    payment_terms: Optional[str] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    discount: Optional[Decimal] = Field(default=None, ge=0)
    advance_amount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)

class OrderStatusInput(BaseModel):
    status: OrderStatus

class OrderResponse(BaseModel):
    success: bool
    message: str
    data: SalesOrder

class OrderListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[SalesOrder]
