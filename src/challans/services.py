"""Delivery challans: the dispatch and delivery workflow for sales orders.

Status moves through ``draft -> ready -> dispatched -> in_transit ->
delivered``, with ``partial``, ``returned`` and ``cancelled`` as side
branches. ``dispatched`` is only reachable through :meth:`dispatch_challan`,
from ``ready`` or, for the undispatched remainder, from ``partial``,
and ``delivered``/``partial`` only through :meth:`deliver_challan`; every
other move goes through :meth:`update_status` and is checked against
``PLAIN_TRANSITIONS``.

Every write recomputes ``pending_qty = ordered_qty - delivered_qty`` on
each item.
"""

import logging
from typing import List, Optional
from datetime import date
from sqlmodel import select, func, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import selectinload
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.challans.models import DeliveryChallan, ChallanItem, ChallanStatus
from src.challans.schemas import (
    ChallanInput, ChallanUpdate, ChallanItemInput, DispatchInput, DeliverInput, ChallanStats,
)
from src.invoices.models import SalesInvoice
from src.orders.models import SalesOrder
from src.utils.numbering import assign_document_number, next_document_number
from src.utils.pagination import ListParameters, paginate

logger = logging.getLogger(__name__)
authServices = AuthServices()

CHALLAN_PREFIX = "DC"

PLAIN_TRANSITIONS = {
    ChallanStatus.DRAFT: {ChallanStatus.READY, ChallanStatus.CANCELLED},
    ChallanStatus.READY: {ChallanStatus.DRAFT, ChallanStatus.CANCELLED},
    ChallanStatus.DISPATCHED: {ChallanStatus.IN_TRANSIT, ChallanStatus.RETURNED, ChallanStatus.CANCELLED},
    ChallanStatus.IN_TRANSIT: {ChallanStatus.RETURNED},
    ChallanStatus.PARTIAL: {ChallanStatus.RETURNED},
    ChallanStatus.DELIVERED: set(),
    ChallanStatus.RETURNED: set(),
    ChallanStatus.CANCELLED: set(),
}
EDITABLE_STATUSES = {ChallanStatus.DRAFT, ChallanStatus.READY}
DELIVERABLE_STATUSES = {ChallanStatus.DISPATCHED, ChallanStatus.IN_TRANSIT, ChallanStatus.PARTIAL}
# A partial delivery can be topped up by dispatching the remainder.
DISPATCHABLE_STATUSES = {ChallanStatus.READY, ChallanStatus.PARTIAL}


def recompute_pending(items: List[ChallanItem]):
    for item in items:
        item.pending_qty = item.ordered_qty - item.delivered_qty


def build_items(items_input: List[ChallanItemInput]) -> List[ChallanItem]:
    if not items_input:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Challan must have at least one item"
        )

    items = []
    for item_input in items_input:
        if item_input.delivered_qty > item_input.ordered_qty:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Delivered quantity cannot exceed ordered quantity for {item_input.part_no or 'item'}"
            )
        items.append(ChallanItem(**item_input.model_dump()))

    recompute_pending(items)
    return items


def items_by_id(challan: DeliveryChallan, item_ids: List[uuid.UUID]) -> dict:
    lookup = {item.id: item for item in challan.items}
    unknown = [str(item_id) for item_id in item_ids if item_id not in lookup]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Items not on this challan: {', '.join(unknown)}"
        )
    return lookup


class ChallanServices:

    async def next_number(self, session: AsyncSession) -> str:
        return await next_document_number(session, DeliveryChallan.challan_no, CHALLAN_PREFIX)

    async def create_challan(self, challan: ChallanInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        challan_dict = challan.model_dump(exclude={"items"})
        items_input = challan.items

        if challan.order_id:
            order = (await session.exec(
                select(SalesOrder).where(SalesOrder.id == challan.order_id).options(selectinload(SalesOrder.items))
            )).first()
            if not order:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Order not found"
                )
            challan_dict["order_no"] = order.order_no
            for field in ("customer_id", "customer_name", "customer_phone", "customer_email"):
                if challan_dict[field] is None:
                    challan_dict[field] = getattr(order, field)
            if not items_input:
                items_input = [
                    ChallanItemInput(
                        part_id=line.part_id,
                        part_no=line.part_no,
                        description=line.description,
                        ordered_qty=line.quantity,
                        uom=line.uom,
                    )
                    for line in order.items
                ]

        if challan.invoice_id:
            invoice = (await session.exec(select(SalesInvoice).where(SalesInvoice.id == challan.invoice_id))).first()
            if not invoice:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Invoice not found"
                )
            challan_dict["invoice_no"] = invoice.invoice_no
            if challan_dict["customer_name"] is None:
                challan_dict["customer_id"] = challan_dict["customer_id"] or invoice.customer_id
                challan_dict["customer_name"] = invoice.customer_name

        items = build_items(items_input)

        if not challan_dict["customer_name"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer name is required"
            )
        if challan_dict["delivery_date"] is None:
            challan_dict["delivery_date"] = date.today()

        challan_dict["challan_no"] = await assign_document_number(
            session, DeliveryChallan.challan_no, CHALLAN_PREFIX, challan.challan_no, "Challan"
        )

        new_challan = DeliveryChallan(**challan_dict)
        new_challan.items = items
        session.add(new_challan)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create delivery challan: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create delivery challan"
            )

        return await self.get_challan_by_id(new_challan.id, session)

    async def get_all_challans(
        self,
        session: AsyncSession,
        params: ListParameters,
        status_filter: Optional[ChallanStatus] = None,
        order_id: Optional[uuid.UUID] = None,
    ):
        statement = select(DeliveryChallan).options(selectinload(DeliveryChallan.items))

        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                DeliveryChallan.challan_no.ilike(term),
                DeliveryChallan.customer_name.ilike(term),
                DeliveryChallan.order_no.ilike(term),
                DeliveryChallan.vehicle_no.ilike(term),
            ))
        if status_filter:
            statement = statement.where(DeliveryChallan.status == status_filter)
        if order_id:
            statement = statement.where(DeliveryChallan.order_id == order_id)

        statement = statement.order_by(DeliveryChallan.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_challan_by_id(self, challan_id: uuid.UUID, session: AsyncSession):
        statement = (
            select(DeliveryChallan)
            .where(DeliveryChallan.id == challan_id)
            .options(selectinload(DeliveryChallan.items))
            .execution_options(populate_existing=True)
        )

        try:
            challan = (await session.exec(statement)).first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        if not challan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Delivery challan not found"
            )
        return challan

    async def save(self, challan: DeliveryChallan, session: AsyncSession):
        recompute_pending(challan.items)

        try:
            await session.commit()
        except DatabaseError as e:
            await session.rollback()
            logger.error(f"Failed to save delivery challan {challan.challan_no}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_challan_by_id(challan.id, session)

    async def update_challan(self, challan_id: uuid.UUID, update_data: ChallanUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True, exclude={"items"})
        if not update_dict and update_data.items is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        challan = await self.get_challan_by_id(challan_id, session)

        if challan.status not in EDITABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot edit a challan that is {challan.status.value}"
            )

        for key, value in update_dict.items():
            setattr(challan, key, value)

        if update_data.items is not None:
            challan.items = build_items(update_data.items)

        return await self.save(challan, session)

    async def dispatch_challan(self, challan_id: uuid.UUID, dispatch: DispatchInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        challan = await self.get_challan_by_id(challan_id, session)

        if challan.status not in DISPATCHABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only ready or partially delivered challans can be dispatched (current status: {challan.status.value})"
            )

        redispatch = challan.status == ChallanStatus.PARTIAL
        items_by_id(challan, [entry.item_id for entry in dispatch.items])
        quantities = {entry.item_id: entry.dispatched_qty for entry in dispatch.items}
        previous = {item.id: item.dispatched_qty for item in challan.items}

        for item in challan.items:
            dispatched_qty = quantities.get(item.id, item.ordered_qty)
            if dispatched_qty > item.ordered_qty:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Dispatched quantity cannot exceed ordered quantity for {item.part_no or 'item'}"
                )
            if redispatch and dispatched_qty < previous[item.id]:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Dispatched quantity cannot be reduced for {item.part_no or 'item'}"
                )
            item.dispatched_qty = dispatched_qty

        if redispatch:
            if not any(item.dispatched_qty > previous[item.id] for item in challan.items):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Nothing left to dispatch on this challan"
                )
        elif not any(item.dispatched_qty for item in challan.items):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="At least one item must be dispatched"
            )

        dispatch_dict = dispatch.model_dump(exclude={"items"}, exclude_none=True)
        for key, value in dispatch_dict.items():
            setattr(challan, key, value)
        if challan.dispatch_date is None:
            challan.dispatch_date = date.today()

        challan.status = ChallanStatus.DISPATCHED
        logger.info(f"Challan {challan.challan_no} dispatched by {challan.dispatched_by or user_id}")

        return await self.save(challan, session)

    async def deliver_challan(self, challan_id: uuid.UUID, delivery: DeliverInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        challan = await self.get_challan_by_id(challan_id, session)

        if challan.status not in DELIVERABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot deliver a challan that is {challan.status.value}"
            )

        items_by_id(challan, [entry.item_id for entry in delivery.items])
        entries = {entry.item_id: entry for entry in delivery.items}

        for item in challan.items:
            entry = entries.get(item.id)
            delivered_qty = entry.delivered_qty if entry else item.dispatched_qty
            if delivered_qty > item.dispatched_qty:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Delivered quantity cannot exceed dispatched quantity for {item.part_no or 'item'}"
                )
            item.delivered_qty = delivered_qty
            if entry and entry.remarks is not None:
                item.remarks = entry.remarks

        challan.receiver_name = delivery.receiver_name
        challan.delivery_confirmed_by = delivery.delivery_confirmed_by
        challan.actual_delivery_date = delivery.actual_delivery_date or date.today()
        if delivery.delivery_notes is not None:
            challan.delivery_notes = delivery.delivery_notes

        recompute_pending(challan.items)
        fully_delivered = all(item.pending_qty == 0 for item in challan.items)
        challan.status = ChallanStatus.DELIVERED if fully_delivered else ChallanStatus.PARTIAL
        logger.info(f"Challan {challan.challan_no} {challan.status.value}, received by {challan.receiver_name}")

        return await self.save(challan, session)

    async def update_status(self, challan_id: uuid.UUID, new_status: ChallanStatus, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        challan = await self.get_challan_by_id(challan_id, session)

        if new_status not in PLAIN_TRANSITIONS[challan.status]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change challan status from {challan.status.value} to {new_status.value}"
            )

        previous = challan.status
        challan.status = new_status
        logger.info(f"Challan {challan.challan_no} moved from {previous.value} to {new_status.value}")

        return await self.save(challan, session)

    async def delete_challan(self, challan_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        challan = await self.get_challan_by_id(challan_id, session)

        if challan.status != ChallanStatus.DRAFT:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only draft challans can be deleted"
            )

        try:
            await session.delete(challan)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_stats(self, session: AsyncSession) -> ChallanStats:
        statement = select(DeliveryChallan.status, func.count(DeliveryChallan.id)).group_by(DeliveryChallan.status)
        counts = {row[0]: row[1] for row in (await session.exec(statement)).all()}

        return ChallanStats(
            total=sum(counts.values()),
            draft=counts.get(ChallanStatus.DRAFT, 0),
            ready=counts.get(ChallanStatus.READY, 0),
            dispatched=counts.get(ChallanStatus.DISPATCHED, 0) + counts.get(ChallanStatus.IN_TRANSIT, 0),
            delivered=counts.get(ChallanStatus.DELIVERED, 0),
            partial=counts.get(ChallanStatus.PARTIAL, 0),
        )
