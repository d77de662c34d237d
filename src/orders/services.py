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
from src.customers.models import Customer
from src.parts.services import PartServices
from src.pricing.services import price_category_for_customer
from src.orders.models import SalesOrder, OrderItem, OrderStatus, PaymentStatus
from src.orders.schemas import OrderInput, OrderUpdate
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import compute_totals, to_money

logger = logging.getLogger(__name__)
authServices = AuthServices()
partServices = PartServices()

ORDER_PREFIX = "SO"

ORDER_FLOW = [
    OrderStatus.DRAFT,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.READY,
    OrderStatus.DISPATCHED,
    OrderStatus.DELIVERED,
]
FINAL_ORDER_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current in FINAL_ORDER_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return ORDER_FLOW.index(target) == ORDER_FLOW.index(current) + 1


def payment_status_for(advance_amount: Decimal, total_amount: Decimal) -> PaymentStatus:
    if advance_amount <= 0:
        return PaymentStatus.PENDING
    if advance_amount < total_amount:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PAID


def apply_totals(order: SalesOrder):
    totals = compute_totals(
        [item.line_total for item in order.items],
        order.discount,
        order.tax,
        settled=order.advance_amount,
    )
    order.sub_total = totals.sub_total
    order.total_amount = totals.total_amount
    order.balance_amount = totals.balance_amount
    order.payment_status = payment_status_for(to_money(order.advance_amount), totals.total_amount)


class OrderServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, SalesOrder.order_no, ORDER_PREFIX)

    async def create_order(self, order: OrderInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        order_dict = order.model_dump(exclude={"items"})
        if order_dict["order_date"] is None:
            order_dict["order_date"] = date.today()

        if order.customer_id:
            customer = (await session.exec(select(Customer).where(Customer.id == order.customer_id))).first()
            if not customer:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="customer not found"
                )
            order_dict["customer_type"] = order_dict["customer_type"] or customer.customer_type

        if order_dict["price_category"] is None:
            order_dict["price_category"] = await price_category_for_customer(order.customer_id, session)

        order_dict["order_no"] = await assign_document_number(
            session, SalesOrder.order_no, ORDER_PREFIX, order.order_no, "Order"
        )

        lines = await partServices.price_lines(order.items, order_dict["price_category"], session)

        new_order = SalesOrder(**order_dict)
        new_order.items = [OrderItem(**line) for line in lines]
        apply_totals(new_order)
        session.add(new_order)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create order: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="failed to create order"
            )

        return await self.get_order_by_id(new_order.id, session)

    async def get_all_orders(self, session: AsyncSession, params: ListParameters, status_filter: Optional[OrderStatus] = None):
        statement = select(SalesOrder).options(selectinload(SalesOrder.items))

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                SalesOrder.order_no.ilike(term),
                SalesOrder.customer_name.ilike(term),
            ))
        if status_filter:
            statement = statement.where(SalesOrder.status == status_filter)

        statement = statement.order_by(SalesOrder.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_order_by_id(self, order_id: uuid.UUID, session: AsyncSession):
        statement = (
            select(SalesOrder)
            .where(SalesOrder.id == order_id)
            .options(selectinload(SalesOrder.items))
            .execution_options(populate_existing=True)
        )

        try:
            order = (await session.exec(statement)).first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found"
            )
        return order

    async def update_order(self, order_id: uuid.UUID, update_data: OrderUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True, exclude={"items"})
        if not update_dict and update_data.items is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        order = await self.get_order_by_id(order_id, session)

        if order.status in FINAL_ORDER_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot edit an order that is {order.status.value}"
            )

        for key, value in update_dict.items():
            setattr(order, key, value)

        if update_data.items is not None:
            lines = await partServices.price_lines(update_data.items, order.price_category, session)
            order.items = [OrderItem(**line) for line in lines]

        apply_totals(order)

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_order_by_id(order_id, session)

    async def update_status(self, order_id: uuid.UUID, new_status: OrderStatus, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        order = await self.get_order_by_id(order_id, session)

        if not can_transition(order.status, new_status):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change order status from {order.status.value} to {new_status.value}"
            )

        previous = order.status
        order.status = new_status

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        logger.info(f"Order {order.order_no} moved from {previous.value} to {new_status.value}")
        return await self.get_order_by_id(order_id, session)

    async def delete_order(self, order_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        order = await self.get_order_by_id(order_id, session)

        if order.status != OrderStatus.DRAFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only draft orders can be deleted"
            )

        try:
            await session.delete(order)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
