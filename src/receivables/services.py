"""Receivables: follow-up of unpaid invoices.

Each receivable tracks one invoice balance through reminders, reschedules
and payments. Reminder dispatch is recorded in the reminder history and
written to the log; no message gateway is involved.
"""

import logging
from typing import List, Optional
from datetime import date, timedelta
from decimal import Decimal
from sqlmodel import select, func, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.config import Config
from src.invoices.models import SalesInvoice, InvoiceStatus
from src.receivables.models import (
    Receivable, ReceivableStatus, RescheduleEntry, ReminderLog, ReceivablePayment,
)
from src.receivables.schemas import (
    ReceivableInput, SendReminderInput, RescheduleInput, PaymentInput, ReceivableUpdate, ReceivableSummary,
)
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import to_money

logger = logging.getLogger(__name__)
authServices = AuthServices()

REMINDER_TEMPLATES = [
    {
        "name": "Friendly Reminder",
        "message": "Dear {customer}, this is a friendly reminder that your payment of Rs. {amount} for invoice {invoice} is due on {dueDate}. Please arrange the payment. Thank you!",
    },
    {
        "name": "Overdue Notice",
        "message": "Dear {customer}, your payment of Rs. {amount} for invoice {invoice} is now {days} days overdue. Please clear the outstanding balance at your earliest convenience.",
    },
    {
        "name": "Final Notice",
        "message": "Dear {customer}, this is a final reminder for the overdue payment of Rs. {amount} for invoice {invoice}. Please make the payment immediately to avoid any service interruption.",
    },
]


def render_reminder(template: str, receivable: Receivable) -> str:
    """Fill the reminder placeholders for one receivable.

    Unknown braces are left as they are, so plain ``str.replace`` is used
    instead of ``str.format``.
    """
    values = {
        "{customer}": receivable.customer_name,
        "{amount}": f"{to_money(receivable.balance_amount):,.2f}",
        "{invoice}": receivable.invoice_no,
        "{dueDate}": receivable.current_due_date.isoformat(),
        "{days}": str(receivable.days_overdue),
    }
    message = template
    for placeholder, value in values.items():
        message = message.replace(placeholder, value)
    return message


def is_settled(receivable: Receivable) -> bool:
    return receivable.status == ReceivableStatus.PAID or receivable.balance_amount <= 0


def receivable_options():
    return (
        selectinload(Receivable.reschedule_history),
        selectinload(Receivable.reminder_history),
        selectinload(Receivable.payments),
    )


async def open_receivable_for_invoice(invoice: SalesInvoice, session: AsyncSession) -> Receivable:
    """Add a receivable for ``invoice`` unless one is already open.

    The caller owns the transaction.
    """
    existing = (await session.exec(select(Receivable).where(Receivable.invoice_id == invoice.id))).first()
    if existing:
        return existing

    receivable = Receivable(
        invoice_id=invoice.id,
        invoice_no=invoice.invoice_no,
        customer_id=invoice.customer_id,
        customer_name=invoice.customer_name,
        customer_phone=invoice.customer_phone,
        customer_email=invoice.customer_email,
        invoice_date=invoice.invoice_date,
        original_due_date=invoice.due_date,
        current_due_date=invoice.due_date,
        total_amount=invoice.total_amount,
        paid_amount=invoice.paid_amount,
        balance_amount=invoice.balance_amount,
        status=ReceivableStatus.PAID if invoice.balance_amount <= 0 else ReceivableStatus.PENDING,
    )
    session.add(receivable)
    logger.info(f"Opened receivable for invoice {invoice.invoice_no}")
    return receivable


async def sync_receivable_for_invoice(invoice: SalesInvoice, session: AsyncSession) -> Optional[Receivable]:
    """Bring the receivable of ``invoice`` in line with the edited invoice.

    A sent invoice without a receivable gets one. An existing receivable
    takes over the invoice totals and contact details; it is removed when
    the invoice is cancelled, which is refused once payments were recorded.
    The caller owns the transaction.
    """
    statement = select(Receivable).where(Receivable.invoice_id == invoice.id).options(*receivable_options())
    receivable = (await session.exec(statement)).first()

    if invoice.status == InvoiceStatus.CANCELLED:
        if receivable is None:
            return None
        if to_money(receivable.paid_amount) > 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot cancel an invoice with recorded payments"
            )
        await session.delete(receivable)
        logger.info(f"Closed receivable for cancelled invoice {invoice.invoice_no}")
        return None

    if receivable is None:
        if invoice.status == InvoiceStatus.SENT:
            return await open_receivable_for_invoice(invoice, session)
        return None

    for field in ("invoice_no", "customer_id", "customer_name", "customer_phone", "customer_email", "invoice_date"):
        setattr(receivable, field, getattr(invoice, field))
    receivable.total_amount = to_money(invoice.total_amount)
    receivable.paid_amount = to_money(invoice.paid_amount)
    receivable.balance_amount = receivable.total_amount - receivable.paid_amount
    if receivable.balance_amount <= 0:
        receivable.balance_amount = Decimal("0.00")
        receivable.status = ReceivableStatus.PAID
        invoice.status = InvoiceStatus.PAID
    return receivable


class ReceivableServices:

    async def create_receivable(self, receivable_input: ReceivableInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        if receivable_input.invoice_id:
            invoice = (await session.exec(select(SalesInvoice).where(SalesInvoice.id == receivable_input.invoice_id))).first()
            if not invoice:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Invoice not found"
                )
            existing = (await session.exec(select(Receivable.id).where(Receivable.invoice_id == invoice.id))).first()
            if existing:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="A receivable already exists for this invoice"
                )
            receivable = await open_receivable_for_invoice(invoice, session)
            receivable.notes = receivable_input.notes
        else:
            missing = [
                field for field in ("invoice_no", "customer_name", "invoice_date", "due_date", "total_amount")
                if getattr(receivable_input, field) is None
            ]
            if missing:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Missing required fields: {', '.join(missing)}"
                )
            total_amount = to_money(receivable_input.total_amount)
            paid_amount = to_money(receivable_input.paid_amount)
            if paid_amount > total_amount:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Paid amount cannot exceed the total amount"
                )
            receivable = Receivable(
                invoice_no=receivable_input.invoice_no,
                customer_id=receivable_input.customer_id,
                customer_name=receivable_input.customer_name,
                customer_phone=receivable_input.customer_phone,
                customer_email=receivable_input.customer_email,
                invoice_date=receivable_input.invoice_date,
                original_due_date=receivable_input.due_date,
                current_due_date=receivable_input.due_date,
                total_amount=total_amount,
                paid_amount=paid_amount,
                balance_amount=total_amount - paid_amount,
                status=ReceivableStatus.PAID if paid_amount >= total_amount else ReceivableStatus.PENDING,
                notes=receivable_input.notes,
            )
            session.add(receivable)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create receivable: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create receivable"
            )

        return await self.get_receivable_by_id(receivable.id, session)

    async def mark_overdue(self, session: AsyncSession):
        statement = select(Receivable).where(
            Receivable.status == ReceivableStatus.PENDING,
            Receivable.current_due_date < date.today(),
            Receivable.balance_amount > 0,
        )
        overdue = (await session.exec(statement)).all()
        if not overdue:
            return

        for receivable in overdue:
            receivable.status = ReceivableStatus.OVERDUE

        try:
            await session.commit()
        except DatabaseError as e:
            await session.rollback()
            logger.error(f"Failed to mark receivables overdue: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_all_receivables(
        self,
        session: AsyncSession,
        params: ListParameters,
        status_filter: Optional[ReceivableStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
    ):
        await self.mark_overdue(session)

        statement = select(Receivable).options(*receivable_options())

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                Receivable.invoice_no.ilike(term),
                Receivable.customer_name.ilike(term),
            ))
        if status_filter:
            statement = statement.where(Receivable.status == status_filter)
        if customer_id:
            statement = statement.where(Receivable.customer_id == customer_id)

        statement = statement.order_by(Receivable.current_due_date.asc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_receivable_by_id(self, receivable_id: uuid.UUID, session: AsyncSession, for_update: bool = False):
        statement = (
            select(Receivable)
            .where(Receivable.id == receivable_id)
            .options(*receivable_options())
            .execution_options(populate_existing=True)
        )
        if for_update:
            statement = statement.with_for_update()

        receivable = (await session.exec(statement)).first()

        if not receivable:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Receivable not found"
            )
        return receivable

    async def send_reminders(self, reminder_input: SendReminderInput, session: AsyncSession, user_id: str) -> List[Receivable]:
        await authServices.check_user_exists(user_id, session)

        receivable_ids = list(dict.fromkeys(reminder_input.receivable_ids))
        receivables = [await self.get_receivable_by_id(r_id, session) for r_id in receivable_ids]

        settled = [r.invoice_no for r in receivables if is_settled(r)]
        if settled:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot send reminders for settled receivables: {', '.join(settled)}"
            )

        today = date.today()
        sender = uuid.UUID(user_id)

        for receivable in receivables:
            message = render_reminder(reminder_input.message, receivable)
            logger.info(
                f"Reminder via {reminder_input.channel.value} to {receivable.customer_name} "
                f"for invoice {receivable.invoice_no}: {message}"
            )

            receivable.reminder_history.append(ReminderLog(
                channel=reminder_input.channel,
                message=message,
                promised_date=reminder_input.promised_date,
                promised_amount=reminder_input.promised_amount,
                sent_by=sender,
            ))
            receivable.reminder_count += 1
            receivable.last_reminder_date = today
            receivable.next_reminder_date = today + timedelta(days=Config.REMINDER_INTERVAL_DAYS)

            if reminder_input.promised_date:
                receivable.promised_date = reminder_input.promised_date
                receivable.promised_amount = reminder_input.promised_amount
                receivable.status = ReceivableStatus.PROMISED
            else:
                receivable.status = ReceivableStatus.REMINDED

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return [await self.get_receivable_by_id(r_id, session) for r_id in receivable_ids]

    async def reschedule(self, receivable_id: uuid.UUID, reschedule_input: RescheduleInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        receivable = await self.get_receivable_by_id(receivable_id, session)

        if is_settled(receivable):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reschedule a settled receivable"
            )
        if reschedule_input.new_due_date < date.today():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New due date cannot be in the past"
            )
        if reschedule_input.new_due_date == receivable.current_due_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New due date must differ from the current due date"
            )

        previous_due_date = receivable.current_due_date
        receivable.reschedule_history.append(RescheduleEntry(
            previous_due_date=previous_due_date,
            new_due_date=reschedule_input.new_due_date,
            reason=reschedule_input.reason,
            notes=reschedule_input.notes,
            rescheduled_by=uuid.UUID(user_id),
        ))
        receivable.current_due_date = reschedule_input.new_due_date
        receivable.status = ReceivableStatus.RESCHEDULED

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        logger.info(
            f"Receivable {receivable.invoice_no} rescheduled from {previous_due_date} "
            f"to {reschedule_input.new_due_date} ({reschedule_input.reason.value})"
        )
        return await self.get_receivable_by_id(receivable_id, session)

    async def record_payment(self, receivable_id: uuid.UUID, payment_input: PaymentInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        # Row lock so concurrent payments cannot both pass the balance check.
        receivable = await self.get_receivable_by_id(receivable_id, session, for_update=True)

        if is_settled(receivable):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Receivable is already settled"
            )

        amount = to_money(payment_input.amount)
        if amount > receivable.balance_amount:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Payment amount cannot exceed the outstanding balance"
            )

        receivable.payments.append(ReceivablePayment(
            amount=amount,
            payment_date=payment_input.payment_date or date.today(),
            method=payment_input.method,
            reference=payment_input.reference,
            recorded_by=uuid.UUID(user_id),
        ))
        receivable.paid_amount = to_money(receivable.paid_amount) + amount
        receivable.balance_amount = to_money(receivable.total_amount) - receivable.paid_amount
        if receivable.balance_amount <= 0:
            receivable.balance_amount = Decimal("0.00")
            receivable.status = ReceivableStatus.PAID

        if receivable.invoice_id:
            invoice = (await session.exec(
                select(SalesInvoice).where(SalesInvoice.id == receivable.invoice_id).with_for_update()
            )).first()
            if invoice:
                invoice.paid_amount = to_money(invoice.paid_amount) + amount
                invoice.balance_amount = max(Decimal("0.00"), to_money(invoice.total_amount) - invoice.paid_amount)
                if invoice.balance_amount == 0:
                    invoice.status = InvoiceStatus.PAID

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to record payment on {receivable.invoice_no}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to record payment"
            )

        logger.info(f"Payment of {amount} recorded on receivable {receivable.invoice_no}")
        return await self.get_receivable_by_id(receivable_id, session)

    async def update_receivable(self, receivable_id: uuid.UUID, update_data: ReceivableUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update (notes, status)"
            )

        receivable = await self.get_receivable_by_id(receivable_id, session)

        if update_data.status is not None:
            if is_settled(receivable):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Cannot change the status of a settled receivable"
                )
            receivable.status = ReceivableStatus(update_data.status.value)
        if "notes" in update_dict:
            receivable.notes = update_data.notes

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_receivable_by_id(receivable_id, session)

    async def get_summary(self, session: AsyncSession) -> ReceivableSummary:
        today = date.today()
        open_filter = Receivable.status != ReceivableStatus.PAID
        overdue_filter = (open_filter, Receivable.current_due_date < today, Receivable.balance_amount > 0)

        total_count = (await session.exec(select(func.count(Receivable.id)))).one()
        total_balance = (await session.exec(
            select(func.coalesce(func.sum(Receivable.balance_amount), 0)).where(open_filter)
        )).one()
        overdue_count = (await session.exec(select(func.count(Receivable.id)).where(*overdue_filter))).one()
        overdue_amount = (await session.exec(
            select(func.coalesce(func.sum(Receivable.balance_amount), 0)).where(*overdue_filter)
        )).one()
        pending_reminders = (await session.exec(
            select(func.count(Receivable.id)).where(
                Receivable.status.in_([ReceivableStatus.PENDING, ReceivableStatus.OVERDUE])
            )
        )).one()
        promised = (await session.exec(
            select(func.count(Receivable.id)).where(Receivable.status == ReceivableStatus.PROMISED)
        )).one()

        return ReceivableSummary(
            total_receivables=total_count,
            total_balance=to_money(total_balance),
            overdue_count=overdue_count,
            overdue_amount=to_money(overdue_amount),
            pending_reminders=pending_reminders,
            promised_payments=promised,
        )
