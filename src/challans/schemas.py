from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.challans.models import ChallanStatus
from src.utils.pagination import PaginatedResponse


class ChallanItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    part_id: Optional[uuid.UUID] = None
    part_no: Optional[str] = None
    description: Optional[str] = None
    ordered_qty: int
    dispatched_qty: int
    delivered_qty: int
    pending_qty: int
    uom: str
    remarks: Optional[str] = None

class DeliveryChallan(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    challan_no: str
    order_id: Optional[uuid.UUID] = None
    order_no: Optional[str] = None
    invoice_id: Optional[uuid.UUID] = None
    invoice_no: Optional[str] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_date: date
    dispatch_date: Optional[date] = None
    actual_delivery_date: Optional[date] = None
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    transporter: Optional[str] = None
    status: ChallanStatus
    dispatched_by: Optional[str] = None
    delivery_confirmed_by: Optional[str] = None
    receiver_name: Optional[str] = None
    total_packages: int
    total_weight: Decimal
    notes: Optional[str] = None
    dispatch_notes: Optional[str] = None
    delivery_notes: Optional[str] = None
    created_at: datetime
    items: List[ChallanItem] = []

class ChallanItemInput(BaseModel):
    part_id: Optional[uuid.UUID] = None
    part_no: Optional[str] = None
    description: Optional[str] = None
    ordered_qty: int = Field(gt=0)
    delivered_qty: int = Field(default=0, ge=0)
    uom: str = "pcs"
    remarks: Optional[str] = None

class ChallanInput(BaseModel):
    challan_no: Optional[str] = None
    order_id: Optional[uuid.UUID] = None
    invoice_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_date: Optional[date] = None
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    transporter: Optional[str] = None
    total_packages: int = Field(default=0, ge=0)
    total_weight: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None
    # Copied from the linked order when left empty.
    items: List[ChallanItemInput] = []

class ChallanUpdate(BaseModel):
    customer_name: Optional[str] = Field(default=None, min_length=1)
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    delivery_date: Optional[date] = None
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    transporter: Optional[str] = None
    total_packages: Optional[int] = Field(default=None, ge=0)
    total_weight: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[ChallanItemInput]] = None

class DispatchItemInput(BaseModel):
    item_id: uuid.UUID
    dispatched_qty: int = Field(ge=0)

class DispatchInput(BaseModel):
    vehicle_no: Optional[str] = None
    vehicle_type: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    transporter: Optional[str] = None
    dispatch_date: Optional[date] = None
    dispatched_by: Optional[str] = None
    dispatch_notes: Optional[str] = None
    # Items left out are dispatched in full.
    items: List[DispatchItemInput] = []

class DeliverItemInput(BaseModel):
    item_id: uuid.UUID
    delivered_qty: int = Field(ge=0)
    remarks: Optional[str] = None

class DeliverInput(BaseModel):
    receiver_name: str = Field(min_length=1)
    delivery_confirmed_by: Optional[str] = None
    actual_delivery_date: Optional[date] = None
    delivery_notes: Optional[str] = None
    # Items left out are taken as delivered in the dispatched quantity.
    items: List[DeliverItemInput] = []

class ChallanStatusInput(BaseModel):
    status: ChallanStatus

class ChallanStats(BaseModel):
    total: int
    draft: int
    ready: int
    dispatched: int
    delivered: int
    partial: int

class ChallanResponse(BaseModel):
    success: bool
    message: str
    data: DeliveryChallan

class ChallanListResponse(BaseModel):
    success: bool
    message: str
    data: PaginatedResponse[DeliveryChallan]

class ChallanStatsResponse(BaseModel):
    success: bool
    message: str
    data: ChallanStats
