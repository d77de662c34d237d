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
from src.parts.services import PartServices
from src.pricing.services import price_category_for_customer
from src.quotations.models import SalesQuotation, QuotationItem, QuotationStatus
from src.quotations.schemas import QuotationInput, QuotationUpdate
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import compute_totals

logger = logging.getLogger(__name__)
authServices = AuthServices()
partServices = PartServices()

QUOTATION_PREFIX = "SQ"


def check_validity(quotation_date: date, valid_until: date):
    if valid_until < quotation_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Valid until date cannot be before the quotation date"
        )


class QuotationServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, SalesQuotation.quotation_no, QUOTATION_PREFIX)

    async def create_quotation(self, quotation: QuotationInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        quotation_dict = quotation.model_dump(exclude={"items"})
        if quotation_dict["quotation_date"] is None:
            quotation_dict["quotation_date"] = date.today()
        check_validity(quotation_dict["quotation_date"], quotation.valid_until)

        quotation_dict["quotation_no"] = await assign_document_number(
            session, SalesQuotation.quotation_no, QUOTATION_PREFIX, quotation.quotation_no, "Quotation"
        )

        price_category = await price_category_for_customer(quotation.customer_id, session)
        lines = await partServices.price_lines(quotation.items, price_category, session)
        totals = compute_totals([line["line_total"] for line in lines], quotation.discount, quotation.tax)

        new_quotation = SalesQuotation(
            **quotation_dict,
            sub_total=totals.sub_total,
            total_amount=totals.total_amount,
        )
        new_quotation.items = [QuotationItem(**line) for line in lines]
        session.add(new_quotation)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create quotation: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create quotation"
            )

        return await self.get_quotation_by_id(new_quotation.id, session)

    async def get_all_quotations(self, session: AsyncSession, params: ListParameters, status_filter: Optional[QuotationStatus] = None):
        statement = select(SalesQuotation).options(selectinload(SalesQuotation.items))

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                SalesQuotation.quotation_no.ilike(term),
                SalesQuotation.customer_name.ilike(term),
            ))
        if status_filter:
            statement = statement.where(SalesQuotation.status == status_filter)

        statement = statement.order_by(SalesQuotation.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_quotation_by_id(self, quotation_id: uuid.UUID, session: AsyncSession):
        statement = (
            select(SalesQuotation)
            .where(SalesQuotation.id == quotation_id)
            .options(selectinload(SalesQuotation.items))
            .execution_options(populate_existing=True)
        )
        quotation = (await session.exec(statement)).first()

        if not quotation:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Quotation not found"
            )
        return quotation

    async def update_quotation(self, quotation_id: uuid.UUID, update_data: QuotationUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True, exclude={"items"})
        if not update_dict and update_data.items is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        quotation = await self.get_quotation_by_id(quotation_id, session)

        check_validity(
            update_dict.get("quotation_date") or quotation.quotation_date,
            update_dict.get("valid_until") or quotation.valid_until,
        )

        for key, value in update_dict.items():
            setattr(quotation, key, value)

        if update_data.items is not None:
            price_category = await price_category_for_customer(quotation.customer_id, session)
            lines = await partServices.price_lines(update_data.items, price_category, session)
            quotation.items = [QuotationItem(**line) for line in lines]

        totals = compute_totals([item.line_total for item in quotation.items], quotation.discount, quotation.tax)
        quotation.sub_total = totals.sub_total
        quotation.total_amount = totals.total_amount

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_quotation_by_id(quotation_id, session)

    async def delete_quotation(self, quotation_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        quotation = await self.get_quotation_by_id(quotation_id, session)

        try:
            await session.delete(quotation)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
