from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.orders.schemas import (
    OrderInput, OrderUpdate, OrderStatusInput, OrderResponse, OrderListResponse, SalesOrder,
)
from src.orders.models import OrderStatus
from src.orders.services import OrderServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


order_router = APIRouter()
order_services = OrderServices()


@order_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await order_services.next_number(session)

    return {
        "success": True,
        "message": "next order number generated",
        "data": {"next_number": next_number}
    }


@order_router.get("/", response_model=OrderListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_orders(
    request: Request,
    response: Response,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    orders, total_count = await order_services.get_all_orders(session, params, status_filter)

    return {
        "success": True,
        "message": "orders fetched successfully",
        "data": to_page(orders, total_count, params, SalesOrder)
    }


@order_router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_order(
    request: Request,
    response: Response,
    order: OrderInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_order = await order_services.create_order(order, session, user_id)

    return {
        "success": True,
        "message": "order created successfully",
        "data": SalesOrder.model_validate(new_order)
    }


@order_router.get("/{id}", response_model=OrderResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_order(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    order = await order_services.get_order_by_id(id, session)

    return {
        "success": True,
        "message": "order fetched successfully",
        "data": SalesOrder.model_validate(order)
    }


@order_router.put("/{id}", response_model=OrderResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_order(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: OrderUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    order = await order_services.update_order(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "order updated successfully",
        "data": SalesOrder.model_validate(order)
    }


@order_router.patch("/{id}/status", response_model=OrderResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_order_status(
    request: Request,
    response: Response,
    id: uuid.UUID,
    status_input: OrderStatusInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    order = await order_services.update_status(id, status_input.status, session, user_id)

    return {
        "success": True,
        "message": f"order status updated to {order.status.value}",
        "data": SalesOrder.model_validate(order)
    }


@order_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_order(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await order_services.delete_order(id, session, user_id)

    return {
        "success": True,
        "message": "order deleted successfully",
        "data": {}
    }
