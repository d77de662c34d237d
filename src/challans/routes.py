from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.challans.schemas import (
    ChallanInput, ChallanUpdate, DispatchInput, DeliverInput, ChallanStatusInput,
    ChallanResponse, ChallanListResponse, ChallanStatsResponse, DeliveryChallan,
)
from src.challans.models import ChallanStatus
from src.challans.services import ChallanServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


challan_router = APIRouter()
challan_services = ChallanServices()


@challan_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await challan_services.next_number(session)

    return {
        "success": True,
        "message": "next challan number generated",
        "data": {"next_number": next_number}
    }


@challan_router.get("/stats", response_model=ChallanStatsResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_stats(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    stats = await challan_services.get_stats(session)

    return {
        "success": True,
        "message": "challan stats fetched successfully",
        "data": stats
    }


@challan_router.get("/", response_model=ChallanListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_challans(
    request: Request,
    response: Response,
    status_filter: Optional[ChallanStatus] = Query(None, alias="status"),
    order_id: Optional[uuid.UUID] = Query(None),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    challans, total_count = await challan_services.get_all_challans(session, params, status_filter, order_id)

    return {
        "success": True,
        "message": "delivery challans fetched successfully",
        "data": to_page(challans, total_count, params, DeliveryChallan)
    }


@challan_router.post("/", response_model=ChallanResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_challan(
    request: Request,
    response: Response,
    challan: ChallanInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_challan = await challan_services.create_challan(challan, session, user_id)

    return {
        "success": True,
        "message": "delivery challan created successfully",
        "data": DeliveryChallan.model_validate(new_challan)
    }


@challan_router.get("/{id}", response_model=ChallanResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_challan(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    challan = await challan_services.get_challan_by_id(id, session)

    return {
        "success": True,
        "message": "delivery challan fetched successfully",
        "data": DeliveryChallan.model_validate(challan)
    }


@challan_router.put("/{id}", response_model=ChallanResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_challan(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: ChallanUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    challan = await challan_services.update_challan(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "delivery challan updated successfully",
        "data": DeliveryChallan.model_validate(challan)
    }


@challan_router.post("/{id}/dispatch", response_model=ChallanResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def dispatch_challan(
    request: Request,
    response: Response,
    id: uuid.UUID,
    dispatch: DispatchInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    challan = await challan_services.dispatch_challan(id, dispatch, session, user_id)

    return {
        "success": True,
        "message": "delivery challan dispatched successfully",
        "data": DeliveryChallan.model_validate(challan)
    }


@challan_router.post("/{id}/deliver", response_model=ChallanResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def deliver_challan(
    request: Request,
    response: Response,
    id: uuid.UUID,
    delivery: DeliverInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    challan = await challan_services.deliver_challan(id, delivery, session, user_id)

    return {
        "success": True,
        "message": f"delivery challan marked {challan.status.value}",
        "data": DeliveryChallan.model_validate(challan)
    }


@challan_router.patch("/{id}/status", response_model=ChallanResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_challan_status(
    request: Request,
    response: Response,
    id: uuid.UUID,
    status_input: ChallanStatusInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    challan = await challan_services.update_status(id, status_input.status, session, user_id)

    return {
        "success": True,
        "message": f"delivery challan status updated to {challan.status.value}",
        "data": DeliveryChallan.model_validate(challan)
    }


@challan_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_challan(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await challan_services.delete_challan(id, session, user_id)

    return {
        "success": True,
        "message": "delivery challan deleted successfully",
        "data": {}
    }
