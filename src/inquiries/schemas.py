from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, date
import uuid
from src.inquiries.models import InquiryStatus
from src.utils.pagination import PaginatedResponse


class SalesInquiry(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    inquiry_no: str
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    inquiry_date: date
    status: InquiryStatus
    subject: str
    description: Optional[str] = None
    follow_up_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime

class InquiryInput(BaseModel):
    inquiry_no: Optional[str] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str = Field(min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    inquiry_date: Optional[date] = None
    status: InquiryStatus = InquiryStatus.NEW
    subject: str = Field(min_length=1)
    description: Optional[str] = None
    follow_up_date: Optional[date] = None
    notes: Optional[str] = None

class InquiryUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    inquiry_date: Optional[date] = None
    status: Optional[InquiryStatus] = None
    subject: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    follow_up_date: Optional[date] = None
    notes: Optional[str] = None

class InquiryResponse(BaseModel):
    success: bool
    message: str
    data: SalesInquiry

class InquiryListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[SalesInquiry]
