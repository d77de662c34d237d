from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import uuid
from datetime import datetime
from src.customers.models import CustomerType
from src.utils.pagination import PaginatedResponse

class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    customer_type: CustomerType = CustomerType.RETAIL

class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    customer_type: Optional[CustomerType] = None

class CustomerInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    customer_type: CustomerType
    created_at: datetime

class CustomerResponse(BaseModel):
    success: bool
    message: str
    data: CustomerInfo

class CustomerListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[CustomerInfo]
