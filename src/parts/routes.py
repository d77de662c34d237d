from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.parts.schemas import PartCreateInput, UpdatePartInput, PartResponse, PartListResponse, Part
from src.parts.services import PartServices
from src.categories.models import RecordStatus
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


part_router = APIRouter()
part_services = PartServices()


@part_router.post("/", response_model=PartResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_part(
    request: Request,
    response: Response,
    part: PartCreateInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_part = await part_services.create_part(part, session, user_id)

    return {
        "success": True,
        "message": "part created successfully",
        "data": new_part
    }


@part_router.get("/", response_model=PartListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_parts(
    request: Request,
    response: Response,
    status_filter: Optional[RecordStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    parts, total_count = await part_services.get_all_parts(session, params, status_filter)

    return {
        "success": True,
        "message": "parts fetched successfully",
        "data": to_page(parts, total_count, params, Part)
    }


@part_router.get("/{id}", response_model=PartResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_part(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    part = await part_services.get_part_by_id(id, session)

    return {
        "success": True,
        "message": "part fetched successfully",
        "data": part
    }


@part_router.patch("/{id}", response_model=PartResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_part(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: UpdatePartInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    part = await part_services.update_part(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "part updated successfully",
        "data": part
    }


@part_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_part(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await part_services.delete_part(id, session, user_id)

    return {
        "success": True,
        "message": "part deleted successfully",
        "data": {}
    }
