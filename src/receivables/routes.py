from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.receivables.schemas import (
    ReceivableInput, SendReminderInput, RescheduleInput, PaymentInput, ReceivableUpdate,
    ReceivableResponse, ReceivableListResponse, ReminderResultResponse, ReminderTemplateResponse,
    ReceivableSummaryResponse, Receivable,
)
from src.receivables.models import ReceivableStatus
from src.receivables.services import ReceivableServices, REMINDER_TEMPLATES
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


receivable_router = APIRouter()
receivable_services = ReceivableServices()


@receivable_router.get("/summary", response_model=ReceivableSummaryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_summary(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    summary = await receivable_services.get_summary(session)

    return {
        "success": True,
        "message": "receivables summary fetched successfully",
        "data": summary
    }


@receivable_router.get("/reminder-templates", response_model=ReminderTemplateResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_reminder_templates(
    request: Request,
    response: Response,
    user_details: dict = Depends(get_current_user)
):
    return {
        "success": True,
        "message": "reminder templates fetched successfully",
        "data": REMINDER_TEMPLATES
    }


@receivable_router.post("/send-reminder", response_model=ReminderResultResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def send_reminder(
    request: Request,
    response: Response,
    reminder_input: SendReminderInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    receivables = await receivable_services.send_reminders(reminder_input, session, user_id)

    return {
        "success": True,
        "message": f"reminder sent to {len(receivables)} customer(s) via {reminder_input.channel.value}",
        "data": [Receivable.model_validate(r) for r in receivables]
    }


@receivable_router.get("/", response_model=ReceivableListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_receivables(
    request: Request,
    response: Response,
    status_filter: Optional[ReceivableStatus] = Query(None, alias="status"),
    customer_id: Optional[uuid.UUID] = Query(None),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    receivables, total_count = await receivable_services.get_all_receivables(session, params, status_filter, customer_id)

    return {
        "success": True,
        "message": "receivables fetched successfully",
        "data": to_page(receivables, total_count, params, Receivable)
    }


@receivable_router.post("/", response_model=ReceivableResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_receivable(
    request: Request,
    response: Response,
    receivable_input: ReceivableInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    receivable = await receivable_services.create_receivable(receivable_input, session, user_id)

    return {
        "success": True,
        "message": "receivable created successfully",
        "data": Receivable.model_validate(receivable)
    }


@receivable_router.get("/{id}", response_model=ReceivableResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_receivable(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    receivable = await receivable_services.get_receivable_by_id(id, session)

    return {
        "success": True,
        "message": "receivable fetched successfully",
        "data": Receivable.model_validate(receivable)
    }


@receivable_router.patch("/{id}", response_model=ReceivableResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_receivable(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: ReceivableUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    receivable = await receivable_services.update_receivable(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "receivable updated successfully",
        "data": Receivable.model_validate(receivable)
    }


@receivable_router.post("/{id}/reschedule", response_model=ReceivableResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def reschedule_receivable(
    request: Request,
    response: Response,
    id: uuid.UUID,
    reschedule_input: RescheduleInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    receivable = await receivable_services.reschedule(id, reschedule_input, session, user_id)

    return {
        "success": True,
        "message": f"due date rescheduled to {receivable.current_due_date.isoformat()}",
        "data": Receivable.model_validate(receivable)
    }


@receivable_router.post("/{id}/payment", response_model=ReceivableResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def record_payment(
    request: Request,
    response: Response,
    id: uuid.UUID,
    payment_input: PaymentInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    receivable = await receivable_services.record_payment(id, payment_input, session, user_id)

    return {
        "success": True,
        "message": "payment recorded successfully",
        "data": Receivable.model_validate(receivable)
    }
