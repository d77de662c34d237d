from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.returns.schemas import (
    ReturnInput, ReturnUpdate, ReturnStatusInput, ReturnResponse, ReturnListResponse, SalesReturn,
)
from src.returns.models import ReturnStatus
from src.returns.services import ReturnServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


return_router = APIRouter()
return_services = ReturnServices()


@return_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await return_services.next_number(session)

    return {
        "success": True,
        "message": "next return number generated",
        "data": {"next_number": next_number}
    }


@return_router.get("/", response_model=ReturnListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_returns(
    request: Request,
    response: Response,
    status_filter: Optional[ReturnStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    returns, total_count = await return_services.get_all_returns(session, params, status_filter)

    return {
        "success": True,
        "message": "sales returns fetched successfully",
        "data": to_page(returns, total_count, params, SalesReturn)
    }


@return_router.post("/", response_model=ReturnResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_return(
    request: Request,
    response: Response,
    return_input: ReturnInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    sales_return = await return_services.create_return(return_input, session, user_id)

    return {
        "success": True,
        "message": "sales return created successfully",
        "data": SalesReturn.model_validate(sales_return)
    }


@return_router.get("/{id}", response_model=ReturnResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_return(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    sales_return = await return_services.get_return_by_id(id, session)

    return {
        "success": True,
        "message": "sales return fetched successfully",
        "data": SalesReturn.model_validate(sales_return)
    }


@return_router.put("/{id}", response_model=ReturnResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_return(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: ReturnUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    sales_return = await return_services.update_return(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "sales return updated successfully",
        "data": SalesReturn.model_validate(sales_return)
    }


@return_router.patch("/{id}/status", response_model=ReturnResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_return_status(
    request: Request,
    response: Response,
    id: uuid.UUID,
    status_input: ReturnStatusInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    sales_return = await return_services.update_status(id, status_input.status, session, user_id)

    return {
        "success": True,
        "message": f"sales return {sales_return.status.value}",
        "data": SalesReturn.model_validate(sales_return)
    }


@return_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_return(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await return_services.delete_return(id, session, user_id)

    return {
        "success": True,
        "message": "sales return deleted successfully",
        "data": {}
    }
