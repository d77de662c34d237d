from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.quotations.schemas import QuotationInput, QuotationUpdate, QuotationResponse, QuotationListResponse, SalesQuotation
from src.quotations.models import QuotationStatus
from src.quotations.services import QuotationServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


quotation_router = APIRouter()
quotation_services = QuotationServices()


@quotation_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await quotation_services.next_number(session)

    return {
        "success": True,
        "message": "next quotation number generated",
        "data": {"next_number": next_number}
    }


@quotation_router.get("/", response_model=QuotationListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_quotations(
    request: Request,
    response: Response,
    status_filter: Optional[QuotationStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    quotations, total_count = await quotation_services.get_all_quotations(session, params, status_filter)

    return {
        "success": True,
        "message": "quotations fetched successfully",
        "data": to_page(quotations, total_count, params, SalesQuotation)
    }


@quotation_router.post("/", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_quotation(
    request: Request,
    response: Response,
    quotation: QuotationInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_quotation = await quotation_services.create_quotation(quotation, session, user_id)

    return {
        "success": True,
        "message": "quotation created successfully",
        "data": SalesQuotation.model_validate(new_quotation)
    }


@quotation_router.get("/{id}", response_model=QuotationResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_quotation(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    quotation = await quotation_services.get_quotation_by_id(id, session)

    return {
        "success": True,
        "message": "quotation fetched successfully",
        "data": SalesQuotation.model_validate(quotation)
    }


@quotation_router.put("/{id}", response_model=QuotationResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_quotation(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: QuotationUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    quotation = await quotation_services.update_quotation(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "quotation updated successfully",
        "data": SalesQuotation.model_validate(quotation)
    }


@quotation_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_quotation(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await quotation_services.delete_quotation(id, session, user_id)

    return {
        "success": True,
        "message": "quotation deleted successfully",
        "data": {}
    }
