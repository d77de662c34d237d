from fastapi import APIRouter, Depends, Query, Request, Response, status
from src.utils.auth import get_current_user
from src.invoices.schemas import InvoiceInput, InvoiceUpdate, InvoiceResponse, InvoiceListResponse, SalesInvoice
from src.invoices.models import InvoiceStatus
from src.invoices.services import InvoiceServices
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.limiter import limiter
from src.utils.numbering import NextNumberResponse
from src.utils.pagination import ListParameters, list_parameters, to_page
from typing import Optional
import uuid


invoice_router = APIRouter()
invoice_services = InvoiceServices()


@invoice_router.get("/next-number", response_model=NextNumberResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_next_number(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    next_number = await invoice_services.next_number(session)

    return {
        "success": True,
        "message": "next invoice number generated",
        "data": {"next_number": next_number}
    }


@invoice_router.get("/", response_model=InvoiceListResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_all_invoices(
    request: Request,
    response: Response,
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    customer_id: Optional[uuid.UUID] = Query(None),
    params: ListParameters = Depends(list_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    invoices, total_count = await invoice_services.get_all_invoices(session, params, status_filter, customer_id)

    return {
        "success": True,
        "message": "invoices fetched successfully",
        "data": to_page(invoices, total_count, params, SalesInvoice)
    }


@invoice_router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
async def create_invoice(
    request: Request,
    response: Response,
    invoice: InvoiceInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    new_invoice = await invoice_services.create_invoice(invoice, session, user_id)

    return {
        "success": True,
        "message": "invoice created successfully",
        "data": SalesInvoice.model_validate(new_invoice)
    }


@invoice_router.get("/{id}", response_model=InvoiceResponse, status_code=status.HTTP_200_OK)
@limiter.limit("100/minute")
async def get_invoice(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    invoice = await invoice_services.get_invoice_by_id(id, session)

    return {
        "success": True,
        "message": "invoice fetched successfully",
        "data": SalesInvoice.model_validate(invoice)
    }


@invoice_router.put("/{id}", response_model=InvoiceResponse, status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def update_invoice(
    request: Request,
    response: Response,
    id: uuid.UUID,
    update_data: InvoiceUpdate,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    invoice = await invoice_services.update_invoice(id, update_data, session, user_id)

    return {
        "success": True,
        "message": "invoice updated successfully",
        "data": SalesInvoice.model_validate(invoice)
    }


@invoice_router.delete("/{id}", status_code=status.HTTP_200_OK)
@limiter.limit("20/minute")
async def delete_invoice(
    request: Request,
    response: Response,
    id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    user_id = user_details.get("user_id")

    await invoice_services.delete_invoice(id, session, user_id)

    return {
        "success": True,
        "message": "invoice deleted successfully",
        "data": {}
    }
