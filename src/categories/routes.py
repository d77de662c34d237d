from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.categories.schemas import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryListResponse, Category,
)
from src.categories.models import CategoryType
from src.categories.services import CategoryServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from typing import Optional
import uuid


category_router = APIRouter()
category_services = CategoryServices()


@category_router.get("/", response_model=CategoryListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_categories(
    request: Request,
    response: Response,
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(A|I|all)$"),
    category_type: Optional[CategoryType] = Query(None, alias="type"),
    parent_id: Optional[uuid.UUID] = Query(None, alias="parentId"),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    categories = await category_services.get_all_categories(session, status_filter, category_type, parent_id)

    return {
        "success": True,
        "message": "categories fetched successfully",
        "data": categories
    }


@category_router.get("/{id}", response_model=CategoryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_category(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    category = await category_services.get_category_by_id(id, session)

    return {
        "success": True,
        "message": "category fetched successfully",
        "data": Category.model_validate(category)
    }


@category_router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_category(
    request: Request,
    response: Response,
    category: CategoryCreate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_category = await category_services.create_category(category, session, user_id)

    return {
        "success": True,
        "message": "category created successfully",
        "data": Category.model_validate(new_category)
    }


@category_router.put("/{id}", response_model=CategoryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_category(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: CategoryUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    category = await category_services.update_category(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "category updated successfully",
        "data": Category.model_validate(category)
    }


@category_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_category(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await category_services.delete_category(id, session, user_id)

    return {
        "success": True,
        "message": "category deleted successfully",
        "data": {}
    }
