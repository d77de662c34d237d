from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.inquiries.schemas import InquiryInput, InquiryUpdate, InquiryResponse, InquiryListResponse, SalesInquiry
from src.inquiries.models import InquiryStatus
from src.inquiries.services import InquiryServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


inquiry_router = APIRouter()
inquiry_services = InquiryServices()


@inquiry_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await inquiry_services.next_number(session)

    return {
        "success": True,
        "message": "next inquiry number generated",
        "data": {"next_number": next_number}
    }


@inquiry_router.get("/", response_model=InquiryListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_inquiries(
    request: Request,
    response: Response,
    status_filter: Optional[InquiryStatus] = Query(None, alias="status"),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    inquiries, total_count = await inquiry_services.get_all_inquiries(session, params, status_filter)

    return {
        "success": True,
        "message": "inquiries fetched successfully",
        "data": to_page(inquiries, total_count, params, SalesInquiry)
    }


@inquiry_router.post("/", response_model=InquiryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_inquiry(
    request: Request,
    response: Response,
    inquiry: InquiryInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_inquiry = await inquiry_services.create_inquiry(inquiry, session, user_id)

    return {
        "success": True,
        "message": "inquiry created successfully",
        "data": new_inquiry
    }


@inquiry_router.get("/{id}", response_model=InquiryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_inquiry(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    inquiry = await inquiry_services.get_inquiry_by_id(id, session)

    return {
        "success": True,
        "message": "inquiry fetched successfully",
        "data": inquiry
    }


@inquiry_router.put("/{id}", response_model=InquiryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_inquiry(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: InquiryUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    inquiry = await inquiry_services.update_inquiry(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "inquiry updated successfully",
        "data": inquiry
    }


@inquiry_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_inquiry(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await inquiry_services.delete_inquiry(id, session, user_id)

    return {
        "success": True,
        "message": "inquiry deleted successfully",
        "data": {}
    }
