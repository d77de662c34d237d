from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.invoices.models import InvoiceStatus
from src.parts.schemas import LineItemInput, LineItem
from src.utils.pagination import PaginatedResponse


class SalesInvoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    invoice_no: str
    order_id: Optional[uuid.UUID] = None
    quotation_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    invoice_date: date
    due_date: date
    status: InvoiceStatus
    sub_total: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    notes: Optional[str] = None
    created_at: datetime
    items: List[LineItem] = []

class InvoiceInput(BaseModel):
    invoice_no: Optional[str] = None
    order_id: Optional[uuid.UUID] = None
    quotation_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: date
    status: InvoiceStatus = InvoiceStatus.DRAFT
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    # May be omitted when invoicing an order; its lines are copied.
    items: Optional[List[LineItemInput]] = None

class InvoiceUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    discount: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[LineItemInput]] = Field(default=None, min_length=1)

class InvoiceResponse(BaseModel):
    success: bool
    message: str
    data: SalesInvoice

class InvoiceListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[SalesInvoice]
