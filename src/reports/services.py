from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from src.challans.models import DeliveryChallan, ChallanStatus
from src.customers.models import Customer, CustomerType
from src.invoices.models import SalesInvoice, InvoiceItem, InvoiceStatus
from src.parts.models import Part
from src.pricing.models import PriceStructure, StructureStatus
from src.receivables.models import Receivable, ReceivableStatus
from src.reports.schemas import (
    AgingSortColumn, BrandSortColumn, CreditStatus, DistributorAgingRow, AgingTotals, DistributorAgingReport,
    CustomerInvoiceRow, BrandRow, BrandWiseReport, SalesTrendItem, ReportSummary,
)
from src.utils.pagination import SortEnum
from src.utils.totals import to_money
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional
import uuid

BILLED_STATUSES = [InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.OVERDUE]
OPEN_CHALLAN_EXCLUDED = [ChallanStatus.DELIVERED, ChallanStatus.RETURNED, ChallanStatus.CANCELLED]

WARNING_UTILIZATION = Decimal("80")
OVER_LIMIT_UTILIZATION = Decimal("100")


def aging_bucket(days_overdue: int) -> str:
    if days_overdue <= 30:
        return "current"
    if days_overdue <= 60:
        return "days_31_60"
    if days_overdue <= 90:
        return "days_61_90"
    if days_overdue <= 120:
        return "days_91_120"
    return "over_120"


def credit_status_for(utilization: Optional[Decimal]) -> CreditStatus:
    if utilization is None:
        return CreditStatus.OK
    if utilization >= OVER_LIMIT_UTILIZATION:
        return CreditStatus.OVER_LIMIT
    if utilization >= WARNING_UTILIZATION:
        return CreditStatus.WARNING
    return CreditStatus.OK


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return Decimal("0.00")
    return to_money(Decimal(part) / Decimal(whole) * 100)


class ReportServices:

    async def get_distributor_aging(
        self,
        session: AsyncSession,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
        customer_type: Optional[CustomerType] = None,
        search: Optional[str] = None,
        sort_by: AgingSortColumn = AgingSortColumn.TOTAL,
        order: SortEnum = SortEnum.DESCENDING,
    ) -> DistributorAgingReport:
        if from_date and to_date and to_date < from_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="'to' date cannot be before 'from' date"
            )

        statement = (
            select(Receivable)
            .where(Receivable.status != ReceivableStatus.PAID, Receivable.balance_amount > 0)
            .options(selectinload(Receivable.payments))
        )
        if from_date:
            statement = statement.where(Receivable.invoice_date >= from_date)
        if to_date:
            statement = statement.where(Receivable.invoice_date <= to_date)
        if search:
            statement = statement.where(Receivable.customer_name.ilike(f"%{search}%"))

        receivables = (await session.exec(statement)).all()

        customer_ids = {r.customer_id for r in receivables if r.customer_id}
        customers = {}
        structures = {}
        if customer_ids:
            customers = {
                c.id: c for c in (await session.exec(select(Customer).where(Customer.id.in_(customer_ids)))).all()
            }
            structure_rows = (await session.exec(
                select(PriceStructure)
                .where(PriceStructure.customer_id.in_(customer_ids), PriceStructure.status == StructureStatus.ACTIVE)
                .order_by(PriceStructure.effective_from.asc())
            )).all()
            # Ascending order, so the latest structure per customer wins.
            structures = {s.customer_id: s for s in structure_rows}

        rows = {}
        for receivable in receivables:
            customer = customers.get(receivable.customer_id)
            row_type = customer.customer_type if customer else None
            if customer_type and row_type != customer_type:
                continue

            key = receivable.customer_id or receivable.customer_name
            row = rows.get(key)
            if row is None:
                structure = structures.get(receivable.customer_id)
                row = DistributorAgingRow(
                    customer_id=receivable.customer_id,
                    customer_name=customer.name if customer else receivable.customer_name,
                    customer_type=row_type,
                    credit_limit=to_money(structure.credit_limit) if structure else Decimal("0.00"),
                    credit_days=structure.credit_days if structure else None,
                )
                rows[key] = row

            balance = to_money(receivable.balance_amount)
            bucket = aging_bucket(receivable.days_overdue)
            setattr(row, bucket, getattr(row, bucket) + balance)
            row.total_outstanding += balance
            row.invoice_count += 1

            if row.oldest_invoice_date is None or receivable.invoice_date < row.oldest_invoice_date:
                row.oldest_invoice_date = receivable.invoice_date

            for payment in receivable.payments:
                if row.last_payment_date is None or payment.payment_date > row.last_payment_date:
                    row.last_payment_date = payment.payment_date
                    row.last_payment_amount = to_money(payment.amount)

        totals = AgingTotals()
        for row in rows.values():
            if row.credit_limit > 0:
                row.credit_utilization = percentage(row.total_outstanding, row.credit_limit)
            row.credit_status = credit_status_for(row.credit_utilization)

            for field in ("current", "days_31_60", "days_61_90", "days_91_120", "over_120", "total_outstanding"):
                setattr(totals, field, getattr(totals, field) + getattr(row, field))
            totals.customer_count += 1

        def sort_key(row: DistributorAgingRow):
            value = getattr(row, sort_by.value)
            if sort_by == AgingSortColumn.CUSTOMER:
                return value.lower()
            return value if value is not None else Decimal("-1")

        ordered = sorted(rows.values(), key=sort_key, reverse=order == SortEnum.DESCENDING)

        return DistributorAgingReport(rows=ordered, totals=totals, sort_by=sort_by, order=order)

    async def get_customer_invoices(self, customer_id: uuid.UUID, session: AsyncSession) -> List[CustomerInvoiceRow]:
        customer = (await session.exec(select(Customer).where(Customer.id == customer_id))).first()

        if not customer:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="customer not found"
            )

        statement = (
            select(SalesInvoice)
            .where(
                SalesInvoice.customer_id == customer_id,
                SalesInvoice.status.in_([InvoiceStatus.SENT, InvoiceStatus.OVERDUE]),
                SalesInvoice.balance_amount > 0,
            )
            .order_by(SalesInvoice.due_date.asc())
        )
        invoices = (await session.exec(statement)).all()

        today = date.today()
        return [
            CustomerInvoiceRow(
                invoice_id=invoice.id,
                invoice_no=invoice.invoice_no,
                invoice_date=invoice.invoice_date,
                due_date=invoice.due_date,
                total_amount=invoice.total_amount,
                paid_amount=invoice.paid_amount,
                balance_amount=invoice.balance_amount,
                days_overdue=max(0, (today - invoice.due_date).days),
                status=invoice.status.value,
            )
            for invoice in invoices
        ]

    async def get_brand_wise(
        self,
        session: AsyncSession,
        sort_by: BrandSortColumn = BrandSortColumn.SALES,
        order: SortEnum = SortEnum.DESCENDING,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> BrandWiseReport:
        brand = func.coalesce(Part.brand, "Unbranded").label("brand")
        statement = (
            select(
                brand,
                func.sum(InvoiceItem.quantity).label("qty"),
                func.sum(InvoiceItem.line_total).label("sales"),
                func.sum(InvoiceItem.quantity * Part.cost_price).label("cost"),
            )
            .join(SalesInvoice, InvoiceItem.invoice_id == SalesInvoice.id)
            .join(Part, InvoiceItem.part_id == Part.id)
            .where(SalesInvoice.status.in_(BILLED_STATUSES))
            .group_by(brand)
        )
        if from_date:
            statement = statement.where(SalesInvoice.invoice_date >= from_date)
        if to_date:
            statement = statement.where(SalesInvoice.invoice_date <= to_date)

        result = await session.exec(statement)

        rows = []
        for r in result.all():
            sales = to_money(r.sales)
            cost = to_money(r.cost)
            profit = sales - cost
            rows.append(BrandRow(
                brand=r.brand,
                quantity=int(r.qty or 0),
                sales=sales,
                cost=cost,
                profit=profit,
                margin=percentage(profit, sales),
            ))

        if sort_by == BrandSortColumn.NAME:
            rows.sort(key=lambda row: row.brand.lower(), reverse=order == SortEnum.DESCENDING)
        else:
            rows.sort(key=lambda row: getattr(row, sort_by.value), reverse=order == SortEnum.DESCENDING)

        return BrandWiseReport(rows=rows, sort_by=sort_by, order=order)

    async def get_sales_trend(self, session: AsyncSession, days: int = 30) -> List[SalesTrendItem]:
        start_date = date.today() - timedelta(days=days - 1)

        stmt = (
            select(SalesInvoice.invoice_date, func.sum(SalesInvoice.total_amount).label("total"))
            .where(SalesInvoice.invoice_date >= start_date, SalesInvoice.status.in_(BILLED_STATUSES))
            .group_by(SalesInvoice.invoice_date)
            .order_by(SalesInvoice.invoice_date)
        )

        result = await session.exec(stmt)
        data_map = {row[0]: to_money(row[1]) for row in result.all()}

        # Fill gaps with zero sales
        trend = []
        for i in range(days):
            current = start_date + timedelta(days=i)
            trend.append(SalesTrendItem(date=current, sales_amount=data_map.get(current, Decimal("0.00"))))

        return trend

    async def get_summary(self, session: AsyncSession) -> ReportSummary:
        billed = SalesInvoice.status.in_(BILLED_STATUSES)

        invoiced = (await session.exec(select(func.sum(SalesInvoice.total_amount)).where(billed))).first()
        collected = (await session.exec(select(func.sum(SalesInvoice.paid_amount)).where(billed))).first()
        outstanding = (await session.exec(select(func.sum(SalesInvoice.balance_amount)).where(billed))).first()
        customers = (await session.exec(select(func.count(Customer.id)))).first()
        open_challans = (await session.exec(
            select(func.count(DeliveryChallan.id)).where(DeliveryChallan.status.not_in(OPEN_CHALLAN_EXCLUDED))
        )).first()

        return ReportSummary(
            total_invoiced=to_money(invoiced),
            total_collected=to_money(collected),
            total_outstanding=to_money(outstanding),
            total_customers=customers or 0,
            open_challans=open_challans or 0,
        )
