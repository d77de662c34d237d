import logging
from typing import Optional
from datetime import date
from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.inquiries.models import SalesInquiry, InquiryStatus
from src.inquiries.schemas import InquiryInput, InquiryUpdate
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate

logger = logging.getLogger(__name__)
authServices = AuthServices()

INQUIRY_PREFIX = "INQ"


class InquiryServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, SalesInquiry.inquiry_no, INQUIRY_PREFIX)

    async def create_inquiry(self, inquiry: InquiryInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        inquiry_dict = inquiry.model_dump()
        inquiry_dict["inquiry_no"] = await assign_document_number(
            session, SalesInquiry.inquiry_no, INQUIRY_PREFIX, inquiry.inquiry_no, "Inquiry"
        )
        if inquiry_dict["inquiry_date"] is None:
            inquiry_dict["inquiry_date"] = date.today()

        new_inquiry = SalesInquiry(**inquiry_dict)
        session.add(new_inquiry)

        try:
            await session.commit()
            await session.refresh(new_inquiry)
            return new_inquiry
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create inquiry: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create inquiry"
            )

    async def get_all_inquiries(self, session: AsyncSession, params: ListParameters, status_filter: Optional[InquiryStatus] = None):
        statement = select(SalesInquiry)

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                SalesInquiry.inquiry_no.ilike(term),
                SalesInquiry.customer_name.ilike(term),
                SalesInquiry.subject.ilike(term),
            ))
        if status_filter:
            statement = statement.where(SalesInquiry.status == status_filter)

        statement = statement.order_by(SalesInquiry.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_inquiry_by_id(self, inquiry_id: uuid.UUID, session: AsyncSession):
        inquiry = (await session.exec(select(SalesInquiry).where(SalesInquiry.id == inquiry_id))).first()

        if not inquiry:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Inquiry not found"
            )
        return inquiry

    async def update_inquiry(self, inquiry_id: uuid.UUID, update_data: InquiryUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        inquiry = await self.get_inquiry_by_id(inquiry_id, session)

        for key, value in update_dict.items():
            setattr(inquiry, key, value)

        try:
            await session.commit()
            await session.refresh(inquiry)
            return inquiry
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def delete_inquiry(self, inquiry_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        inquiry = await self.get_inquiry_by_id(inquiry_id, session)

        try:
            await session.delete(inquiry)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
