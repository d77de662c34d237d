from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class ReceivableStatus(str, Enum):
    PENDING = "pending"
    OVERDUE = "overdue"
    REMINDED = "reminded"
    RESCHEDULED = "rescheduled"
    PROMISED = "promised"
    DISPUTED = "disputed"
    PAID = "paid"

class ReminderChannel(str, Enum):
    SMS = "sms"
    EMAIL = "email"
    WHATSAPP = "whatsapp"

class RescheduleReason(str, Enum):
    CUSTOMER_REQUEST = "customer_request"
    FINANCIAL_DIFFICULTY = "financial_difficulty"
    PARTIAL_PAYMENT = "partial_payment"
    DISPUTE_RESOLUTION = "dispute_resolution"
    GOODWILL = "goodwill"
    OTHER = "other"

class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CARD = "card"
    ONLINE = "online"


class Receivable(SQLModel, table=True):
    __tablename__ = "receivables"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    invoice_id: Optional[uuid.UUID] = Field(default=None, foreign_key="sales_invoices.id", unique=True)
    invoice_no: str = Field(index=True)
    customer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="customers.id", index=True)
    customer_name: str = Field(index=True)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    invoice_date: date
    original_due_date: date
    current_due_date: date

    total_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    balance_amount: Decimal = Field(default=Decimal("0.00"), decimal_places=2)

    status: ReceivableStatus = Field(default=ReceivableStatus.PENDING, index=True)
    reminder_count: int = Field(default=0)
    last_reminder_date: Optional[date] = None
    next_reminder_date: Optional[date] = None
    promised_date: Optional[date] = None
    promised_amount: Optional[Decimal] = Field(default=None, decimal_places=2)
    notes: Optional[str] = None

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    reschedule_history: List["RescheduleEntry"] = Relationship(back_populates="receivable", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    reminder_history: List["ReminderLog"] = Relationship(back_populates="receivable", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    payments: List["ReceivablePayment"] = Relationship(back_populates="receivable", sa_relationship_kwargs={"cascade": "all, delete-orphan"})

    @property
    def days_overdue(self) -> int:
        return max(0, (date.today() - self.current_due_date).days)


class RescheduleEntry(SQLModel, table=True):
    __tablename__ = "receivable_reschedules"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    receivable_id: uuid.UUID = Field(foreign_key="receivables.id", index=True)
    previous_due_date: date
    new_due_date: date
    reason: RescheduleReason
    notes: Optional[str] = None
    rescheduled_by: uuid.UUID
    rescheduled_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    receivable: Receivable = Relationship(back_populates="reschedule_history")


class ReminderLog(SQLModel, table=True):
    __tablename__ = "receivable_reminders"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    receivable_id: uuid.UUID = Field(foreign_key="receivables.id", index=True)
    channel: ReminderChannel
    message: str
    promised_date: Optional[date] = None
    promised_amount: Optional[Decimal] = Field(default=None, decimal_places=2)
    sent_by: uuid.UUID
    sent_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    receivable: Receivable = Relationship(back_populates="reminder_history")


class ReceivablePayment(SQLModel, table=True):
    __tablename__ = "receivable_payments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    receivable_id: uuid.UUID = Field(foreign_key="receivables.id", index=True)
    amount: Decimal = Field(decimal_places=2)
    payment_date: date = Field(default_factory=date.today)
    method: PaymentMethod = Field(default=PaymentMethod.CASH)
    reference: Optional[str] = None
    recorded_by: uuid.UUID
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    receivable: Receivable = Relationship(back_populates="payments")
