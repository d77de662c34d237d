import logging
from typing import Optional
from datetime import date
from decimal import Decimal
from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.invoices.models import SalesInvoice
from src.parts.services import PartServices
from src.returns.models import SalesReturn, ReturnItem, ReturnStatus
from src.returns.schemas import ReturnInput, ReturnUpdate
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import to_money

logger = logging.getLogger(__name__)
authServices = AuthServices()
partServices = PartServices()

RETURN_PREFIX = "SR"

RETURN_TRANSITIONS = {
    ReturnStatus.DRAFT: {ReturnStatus.APPROVED, ReturnStatus.REJECTED},
    ReturnStatus.APPROVED: {ReturnStatus.PROCESSED},
    ReturnStatus.PROCESSED: set(),
    ReturnStatus.REJECTED: set(),
}


def check_refund(refund_amount: Decimal, total_amount: Decimal) -> Decimal:
    refund_amount = to_money(refund_amount)
    if refund_amount > total_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refund amount cannot exceed the return total"
        )
    return refund_amount


class ReturnServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, SalesReturn.return_no, RETURN_PREFIX)

    async def create_return(self, return_input: ReturnInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        return_dict = return_input.model_dump(exclude={"items"})

        if return_input.invoice_id:
            invoice = (await session.exec(select(SalesInvoice).where(SalesInvoice.id == return_input.invoice_id))).first()
            if not invoice:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Invoice not found"
                )
            return_dict["invoice_no"] = invoice.invoice_no
            for field in ("customer_id", "customer_name", "customer_phone"):
                if return_dict[field] is None:
                    return_dict[field] = getattr(invoice, field)

        if not return_dict["customer_name"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer name is required"
            )
        if return_dict["return_date"] is None:
            return_dict["return_date"] = date.today()

        return_dict["return_no"] = await assign_document_number(
            session, SalesReturn.return_no, RETURN_PREFIX, return_input.return_no, "Return"
        )

        lines = await partServices.price_lines(return_input.items, None, session)
        total_amount = to_money(sum((line["line_total"] for line in lines), Decimal("0")))

        refund_amount = return_dict.pop("refund_amount")
        return_dict["refund_amount"] = total_amount if refund_amount is None else check_refund(refund_amount, total_amount)

        new_return = SalesReturn(**return_dict, total_amount=total_amount)
        new_return.items = [ReturnItem(**line) for line in lines]
        session.add(new_return)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create sales return: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create sales return"
            )

        return await self.get_return_by_id(new_return.id, session)

    async def get_all_returns(self, session: AsyncSession, params: ListParameters, status_filter: Optional[ReturnStatus] = None):
        statement = select(SalesReturn).options(selectinload(SalesReturn.items))

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                SalesReturn.return_no.ilike(term),
                SalesReturn.customer_name.ilike(term),
                SalesReturn.invoice_no.ilike(term),
            ))
        if status_filter:
            statement = statement.where(SalesReturn.status == status_filter)

        statement = statement.order_by(SalesReturn.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_return_by_id(self, return_id: uuid.UUID, session: AsyncSession):
        statement = (
            select(SalesReturn)
            .where(SalesReturn.id == return_id)
            .options(selectinload(SalesReturn.items))
            .execution_options(populate_existing=True)
        )
        sales_return = (await session.exec(statement)).first()

        if not sales_return:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Sales return not found"
            )
        return sales_return

    async def update_return(self, return_id: uuid.UUID, update_data: ReturnUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True, exclude={"items", "refund_amount"})
        if not update_dict and update_data.items is None and update_data.refund_amount is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        sales_return = await self.get_return_by_id(return_id, session)

        if sales_return.status != ReturnStatus.DRAFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only draft returns can be edited"
            )

        for key, value in update_dict.items():
            setattr(sales_return, key, value)

        if update_data.items is not None:
            lines = await partServices.price_lines(update_data.items, None, session)
            sales_return.items = [ReturnItem(**line) for line in lines]
            sales_return.total_amount = to_money(sum((line["line_total"] for line in lines), Decimal("0")))
            if update_data.refund_amount is None:
                sales_return.refund_amount = sales_return.total_amount

        if update_data.refund_amount is not None:
            sales_return.refund_amount = check_refund(update_data.refund_amount, to_money(sales_return.total_amount))

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_return_by_id(return_id, session)

    async def update_status(self, return_id: uuid.UUID, new_status: ReturnStatus, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        sales_return = await self.get_return_by_id(return_id, session)

        if new_status not in RETURN_TRANSITIONS[sales_return.status]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change return status from {sales_return.status.value} to {new_status.value}"
            )

        sales_return.status = new_status

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        logger.info(f"Sales return {sales_return.return_no} is now {new_status.value}")
        return await self.get_return_by_id(return_id, session)

    async def delete_return(self, return_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        sales_return = await self.get_return_by_id(return_id, session)

        if sales_return.status != ReturnStatus.DRAFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only draft returns can be deleted"
            )

        try:
            await session.delete(sales_return)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
