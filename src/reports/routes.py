from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from src.utils.auth import get_current_user
from src.utils.limiter import limiter
from src.utils.pagination import SortEnum
from src.utils.sorting import toggle_sort
from src.customers.models import CustomerType
from src.reports.services import ReportServices
from src.reports.schemas import (
    AgingSortColumn, BrandSortColumn, DistributorAgingResponse, CustomerInvoicesResponse,
    BrandWiseResponse, SalesTrendResponse, ReportSummaryResponse,
)
from datetime import date
from typing import Optional
import uuid

report_router = APIRouter()
report_services = ReportServices()


@report_router.get("/distributor-aging", response_model=DistributorAgingResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
async def get_distributor_aging(
    request: Request,
    response: Response,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    customer_type: Optional[CustomerType] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: AgingSortColumn = Query(AgingSortColumn.TOTAL),
    order: SortEnum = Query(SortEnum.DESCENDING),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    """Outstanding balances per customer, split into aging buckets."""
    report = await report_services.get_distributor_aging(session, from_date, to_date, customer_type, search, sort_by, order)

    return {
        "success": True,
        "message": "distributor aging fetched successfully",
        "data": report
    }


@report_router.get("/customer-invoices/{customer_id}", response_model=CustomerInvoicesResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
async def get_customer_invoices(
    request: Request,
    response: Response,
    customer_id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    """Open invoices behind one customer's aging row."""
    invoices = await report_services.get_customer_invoices(customer_id, session)

    return {
        "success": True,
        "message": "customer invoices fetched successfully",
        "data": invoices
    }


@report_router.get("/brand-wise", response_model=BrandWiseResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
async def get_brand_wise(
    request: Request,
    response: Response,
    sort_by: BrandSortColumn = Query(BrandSortColumn.SALES),
    order: SortEnum = Query(SortEnum.DESCENDING),
    toggle: Optional[BrandSortColumn] = Query(None),
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    """Sales, cost and margin per part brand.

    ``toggle`` is the column header that was clicked; the sort that results
    from it is echoed back in the response.
    """
    column, order = toggle_sort(sort_by.value, order, toggle.value if toggle else None)
    report = await report_services.get_brand_wise(session, BrandSortColumn(column), order, from_date, to_date)

    return {
        "success": True,
        "message": "brand-wise report fetched successfully",
        "data": report
    }


@report_router.get("/sales-trend", response_model=SalesTrendResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
async def get_sales_trend(
    request: Request,
    response: Response,
    days: int = Query(30, ge=1, le=365),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    """Daily invoiced amount over the last ``days`` days."""
    trend = await report_services.get_sales_trend(session, days)

    return {
        "success": True,
        "message": "sales trend fetched successfully",
        "data": trend
    }


@report_router.get("/summary", response_model=ReportSummaryResponse, status_code=status.HTTP_200_OK)
@limiter.limit("60/minute")
async def get_summary(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(get_current_user)
):
    summary = await report_services.get_summary(session)

    return {
        "success": True,
        "message": "summary fetched successfully",
        "data": summary
    }
