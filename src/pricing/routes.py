from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.pricing.schemas import (
    PriceStructureInput, PriceStructureUpdate, BulkUpdateInput,
    PriceStructureResponse, PriceStructureListResponse, BulkUpdateResponse, PriceStructure,
)
from src.pricing.models import StructureStatus
from src.pricing.services import price_structure_services
from src.customers.models import CustomerType
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


price_structure_router = APIRouter()


@price_structure_router.get("/", response_model=PriceStructureListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_structures(
    request: Request,
    response: Response,
    customer_type: Optional[CustomerType] = Query(None),
    status_filter: Optional[StructureStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    structures, total_count = await price_structure_services.get_all_structures(session, params, customer_type, status_filter)

    return {
        "success": True,
        "message": "price structures fetched successfully",
        "data": to_page(structures, total_count, params, PriceStructure)
    }


@price_structure_router.post("/bulk-update", response_model=BulkUpdateResponse, status_code=status.HTTP_200_OK)
@limiter.limit("10/minute")
async def bulk_update(
    request: Request,
    response: Response,
    bulk_input: BulkUpdateInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    updated_count = await price_structure_services.bulk_update(bulk_input, session, user_id)

    return {
        "success": True,
        "message": f"{updated_count} price structures updated",
        "data": {"updated_count": updated_count}
    }


@price_structure_router.post("/", response_model=PriceStructureResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_structure(
    request: Request,
    response: Response,
    structure: PriceStructureInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_structure = await price_structure_services.create_structure(structure, session, user_id)

    return {
        "success": True,
        "message": "price structure created successfully",
        "data": new_structure
    }


@price_structure_router.get("/{id}", response_model=PriceStructureResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_structure(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    structure = await price_structure_services.get_structure_by_id(id, session)

    return {
        "success": True,
        "message": "price structure fetched successfully",
        "data": structure
    }


@price_structure_router.put("/{id}", response_model=PriceStructureResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_structure(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: PriceStructureUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    structure = await price_structure_services.update_structure(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "price structure updated successfully",
        "data": structure
    }


@price_structure_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_structure(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await price_structure_services.delete_structure(id, session, user_id)

    return {
        "success": True,
        "message": "price structure deleted successfully",
        "data": {}
    }
