from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
from enum import Enum
import uuid
from src.receivables.models import ReceivableStatus, ReminderChannel, RescheduleReason, PaymentMethod
from src.utils.pagination import PaginatedResponse


class RescheduleEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    previous_due_date: date
    new_due_date: date
    reason: RescheduleReason
    notes: Optional[str] = None
    rescheduled_by: uuid.UUID
    rescheduled_at: datetime

class ReminderLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    channel: ReminderChannel
    message: str
    promised_date: Optional[date] = None
    promised_amount: Optional[Decimal] = None
    sent_by: uuid.UUID
    sent_at: datetime

class ReceivablePayment(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    amount: Decimal
    payment_date: date
    method: PaymentMethod
    reference: Optional[str] = None
    recorded_by: uuid.UUID
    created_at: datetime

class Receivable(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    invoice_id: Optional[uuid.UUID] = None
    invoice_no: str
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    invoice_date: date
    original_due_date: date
    current_due_date: date
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    days_overdue: int
    status: ReceivableStatus
    reminder_count: int
    last_reminder_date: Optional[date] = None
    next_reminder_date: Optional[date] = None
    promised_date: Optional[date] = None
    promised_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: datetime
    reschedule_history: List[RescheduleEntry] = []
    reminder_history: List[ReminderLog] = []
    payments: List[ReceivablePayment] = []

class ReceivableInput(BaseModel):
    """Either ``invoice_id`` or the manual invoice fields."""
    invoice_id: Optional[uuid.UUID] = None
    invoice_no: Optional[str] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    total_amount: Optional[Decimal] = Field(default=None, gt=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None

class SendReminderInput(BaseModel):
    receivable_ids: List[uuid.UUID] = Field(min_length=1)
    channel: ReminderChannel
    message: str = Field(min_length=1)
    promised_date: Optional[date] = None
    promised_amount: Optional[Decimal] = Field(default=None, gt=0)

class RescheduleInput(BaseModel):
    new_due_date: date
    reason: RescheduleReason
    notes: Optional[str] = None

class PaymentInput(BaseModel):
    amount: Decimal = Field(gt=0)
    payment_date: Optional[date] = None
    method: PaymentMethod = PaymentMethod.CASH
    reference: Optional[str] = None

class ManualStatus(str, Enum):
    PENDING = "pending"
    DISPUTED = "disputed"

class ReceivableUpdate(BaseModel):
    notes: Optional[str] = None
    status: Optional[ManualStatus] = None

class ReminderTemplate(BaseModel):
    name: str
    message: str

class ReceivableSummary(BaseModel):
    total_receivables: int
    total_balance: Decimal
    overdue_count: int
    overdue_amount: Decimal
    pending_reminders: int
    promised_payments: int

class ReceivableResponse(BaseModel):
    success: bool
    message: str
    data: Receivable

class ReceivableListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[Receivable]

class ReminderResultResponse(BaseModel):
    success: bool
    message: str
    data: List[Receivable]

class ReminderTemplateResponse(BaseModel):
    success: bool
    message: str
    data: List[ReminderTemplate]

class ReceivableSummaryResponse(BaseModel):
    success: bool
    message: str
    data: ReceivableSummary
