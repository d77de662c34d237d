from sqlmodel import SQLModel, Field, Column
import uuid
from datetime import datetime, date, timezone
import sqlalchemy.dialects.postgresql as pg
from enum import Enum
from typing import Optional


def utc_now():
    return datetime.now(timezone.utc)

class InquiryStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUOTED = "quoted"
    CONVERTED = "converted"
    LOST = "lost"


class SalesInquiry(SQLModel, table=True):
    __tablename__ = "sales_inquiries"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    inquiry_no: str = Field(unique=True, index=True)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    inquiry_date: date = Field(default_factory=date.today)
    status: InquiryStatus = Field(default=InquiryStatus.NEW, index=True)
    subject: str
    description: Optional[str] = None
    follow_up_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
