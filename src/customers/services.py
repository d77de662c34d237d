import logging
from src.customers.schemas import CustomerCreate, CustomerUpdate
from sqlmodel.ext.asyncio.session import AsyncSession
from src.customers.models import Customer, CustomerType
from src.receivables.models import Receivable, ReceivableStatus
from sqlmodel import select, or_
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
from typing import Optional
import uuid
from src.auth.services import AuthServices
from src.utils.pagination import ListParameters, paginate

logger = logging.getLogger(__name__)
authServices = AuthServices()


class CustomerServices():


    async def create_customer(self, customer: CustomerCreate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        new_customer = Customer(**customer.model_dump(), user_id=uuid.UUID(user_id))

        session.add(new_customer)

        try:
            await session.commit()
            await session.refresh(new_customer)
            return new_customer
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create customer {customer.name}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create customer"
            )

    async def get_all_customers(self, session: AsyncSession, params: ListParameters, customer_type: Optional[CustomerType] = None):
        statement = select(Customer)

        if customer_type:
            statement = statement.where(Customer.customer_type == customer_type)

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                Customer.name.ilike(term),
                Customer.email.ilike(term),
                Customer.phone.ilike(term),
            ))

        statement = statement.order_by(Customer.name)

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_customer_by_id(self, customer_id: uuid.UUID, session: AsyncSession):
        statement = select(Customer).where(Customer.id == customer_id)

        try:
            result = await session.exec(statement)
            customer = result.first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Customer not found"
            )
        return customer

    async def update_customer(self, customer_id: uuid.UUID, update_data: CustomerUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        customer = await self.get_customer_by_id(customer_id, session)

        for key, value in update_dict.items():
            setattr(customer, key, value)

        try:
            await session.commit()
            await session.refresh(customer)
            return customer
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def delete_customer(self, customer_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        customer = await self.get_customer_by_id(customer_id, session)

        open_balance = (await session.exec(
            select(Receivable.id).where(
                Receivable.customer_id == customer_id,
                Receivable.status != ReceivableStatus.PAID,
            ).limit(1)
        )).first()
        if open_balance:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer has unpaid receivables"
            )

        try:
            await session.delete(customer)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
