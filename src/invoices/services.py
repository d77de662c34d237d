import logging
from typing import Optional
from datetime import date
from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.parts.schemas import LineItemInput
from src.parts.services import PartServices
from src.pricing.services import price_category_for_customer
from src.orders.models import SalesOrder
from src.invoices.models import SalesInvoice, InvoiceItem, InvoiceStatus
from src.invoices.schemas import InvoiceInput, InvoiceUpdate
from src.receivables.services import open_receivable_for_invoice, sync_receivable_for_invoice
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import compute_totals

logger = logging.getLogger(__name__)
authServices = AuthServices()
partServices = PartServices()

INVOICE_PREFIX = "INV"
LOCKED_INVOICE_STATUSES = {InvoiceStatus.PAID, InvoiceStatus.CANCELLED}


def apply_totals(invoice: SalesInvoice):
    totals = compute_totals(
        [item.line_total for item in invoice.items],
        invoice.discount,
        invoice.tax,
        settled=invoice.paid_amount,
    )
    invoice.sub_total = totals.sub_total
    invoice.total_amount = totals.total_amount
    invoice.balance_amount = totals.balance_amount


class InvoiceServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, SalesInvoice.invoice_no, INVOICE_PREFIX)

    async def create_invoice(self, invoice: InvoiceInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        invoice_dict = invoice.model_dump(exclude={"items"})
        items = invoice.items
        price_category = None

        if invoice.order_id:
            order = (await session.exec(
                select(SalesOrder).where(SalesOrder.id == invoice.order_id).options(selectinload(SalesOrder.items))
            )).first()
            if not order:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Order not found"
                )
            for field in ("customer_id", "customer_name", "customer_email", "customer_phone"):
                if invoice_dict[field] is None:
                    invoice_dict[field] = getattr(order, field)
            price_category = order.price_category
            if not items:
                items = [
                    LineItemInput(
                        part_id=line.part_id,
                        part_no=line.part_no,
                        description=line.description,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        uom=line.uom,
                    )
                    for line in order.items
                ]

        if not invoice_dict["customer_name"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer name is required"
            )

        if invoice_dict["invoice_date"] is None:
            invoice_dict["invoice_date"] = date.today()
        if invoice.due_date < invoice_dict["invoice_date"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Due date cannot be before the invoice date"
            )

        invoice_dict["invoice_no"] = await assign_document_number(
            session, SalesInvoice.invoice_no, INVOICE_PREFIX, invoice.invoice_no, "Invoice"
        )

        if price_category is None:
            price_category = await price_category_for_customer(invoice_dict["customer_id"], session)
        lines = await partServices.price_lines(items, price_category, session)

        new_invoice = SalesInvoice(**invoice_dict)
        new_invoice.items = [InvoiceItem(**line) for line in lines]
        apply_totals(new_invoice)
        session.add(new_invoice)

        if new_invoice.status == InvoiceStatus.SENT:
            await open_receivable_for_invoice(new_invoice, session)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create invoice: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create invoice"
            )

        return await self.get_invoice_by_id(new_invoice.id, session)

    async def get_all_invoices(
        self,
        session: AsyncSession,
        params: ListParameters,
        status_filter: Optional[InvoiceStatus] = None,
        customer_id: Optional[uuid.UUID] = None,
    ):
        statement = select(SalesInvoice).options(selectinload(SalesInvoice.items))

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                SalesInvoice.invoice_no.ilike(term),
                SalesInvoice.customer_name.ilike(term),
            ))
        if status_filter:
            statement = statement.where(SalesInvoice.status == status_filter)
        if customer_id:
            statement = statement.where(SalesInvoice.customer_id == customer_id)

        statement = statement.order_by(SalesInvoice.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_invoice_by_id(self, invoice_id: uuid.UUID, session: AsyncSession):
        statement = (
            select(SalesInvoice)
            .where(SalesInvoice.id == invoice_id)
            .options(selectinload(SalesInvoice.items))
            .execution_options(populate_existing=True)
        )
        invoice = (await session.exec(statement)).first()

        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invoice not found"
            )
        return invoice

    async def update_invoice(self, invoice_id: uuid.UUID, update_data: InvoiceUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True, exclude={"items"})
        if not update_dict and update_data.items is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        invoice = await self.get_invoice_by_id(invoice_id, session)

        if invoice.status in LOCKED_INVOICE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot edit an invoice that is {invoice.status.value}"
            )

        for key, value in update_dict.items():
            setattr(invoice, key, value)

        if invoice.due_date < invoice.invoice_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Due date cannot be before the invoice date"
            )

        if update_data.items is not None:
            price_category = await price_category_for_customer(invoice.customer_id, session)
            lines = await partServices.price_lines(update_data.items, price_category, session)
            invoice.items = [InvoiceItem(**line) for line in lines]

        apply_totals(invoice)
        await sync_receivable_for_invoice(invoice, session)

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_invoice_by_id(invoice_id, session)

    async def delete_invoice(self, invoice_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        invoice = await self.get_invoice_by_id(invoice_id, session)

        if invoice.status != InvoiceStatus.DRAFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only draft invoices can be deleted"
            )

        try:
            await session.delete(invoice)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
