from pydantic import BaseModel
from decimal import Decimal
from datetime import date
from enum import Enum
from typing import List, Optional
import uuid
from src.customers.models import CustomerType
from src.utils.pagination import SortEnum

class CreditStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    OVER_LIMIT = "over_limit"

class AgingSortColumn(str, Enum):
    CUSTOMER = "customer_name"
    TOTAL = "total_outstanding"
    CURRENT = "current"
    DAYS_31_60 = "days_31_60"
    DAYS_61_90 = "days_61_90"
    DAYS_91_120 = "days_91_120"
    OVER_120 = "over_120"
    UTILIZATION = "credit_utilization"

class BrandSortColumn(str, Enum):
    NAME = "name"
    SALES = "sales"
    PROFIT = "profit"
    MARGIN = "margin"

class AgingBuckets(BaseModel):
    current: Decimal = Decimal("0.00")
    days_31_60: Decimal = Decimal("0.00")
    days_61_90: Decimal = Decimal("0.00")
    days_91_120: Decimal = Decimal("0.00")
    over_120: Decimal = Decimal("0.00")

class DistributorAgingRow(AgingBuckets):
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_type: Optional[CustomerType] = None
    total_outstanding: Decimal = Decimal("0.00")
    invoice_count: int = 0
    credit_limit: Decimal = Decimal("0.00")
    credit_days: Optional[int] = None
    credit_utilization: Optional[Decimal] = None
    credit_status: CreditStatus = CreditStatus.OK
    oldest_invoice_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    last_payment_amount: Optional[Decimal] = None

class AgingTotals(AgingBuckets):
    total_outstanding: Decimal = Decimal("0.00")
    customer_count: int = 0

class DistributorAgingReport(BaseModel):
    rows: List[DistributorAgingRow]
    totals: AgingTotals
    sort_by: AgingSortColumn
    order: SortEnum

class CustomerInvoiceRow(BaseModel):
    invoice_id: uuid.UUID
    invoice_no: str
    invoice_date: date
    due_date: date
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    days_overdue: int
    status: str

class BrandRow(BaseModel):
    brand: str
    quantity: int
    sales: Decimal
    cost: Decimal
    profit: Decimal
    margin: Decimal

class BrandWiseReport(BaseModel):
    rows: List[BrandRow]
    sort_by: BrandSortColumn
    order: SortEnum

class SalesTrendItem(BaseModel):
    date: date
    sales_amount: Decimal

class ReportSummary(BaseModel):
    total_invoiced: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    total_customers: int
    open_challans: int

class DistributorAgingResponse(BaseModel):
    success: bool
    message: str
    data: DistributorAgingReport

class CustomerInvoicesResponse(BaseModel):
    success: bool
    message: str
    data: List[CustomerInvoiceRow]

class BrandWiseResponse(BaseModel):
    success: bool
    message: str
    data: BrandWiseReport

class SalesTrendResponse(BaseModel):
    success: bool
    message: str
    data: List[SalesTrendItem]

class ReportSummaryResponse(BaseModel):
    success: bool
    message: str
    data: ReportSummary
