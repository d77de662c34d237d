import logging
from typing import Optional
from decimal import Decimal
from datetime import date
from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.customers.models import Customer, CustomerType
from src.parts.models import PriceCategory
from src.pricing.models import PriceStructure, StructureStatus
from src.pricing.schemas import PriceStructureInput, PriceStructureUpdate, BulkUpdateInput
from src.utils.pagination import ListParameters, paginate

logger = logging.getLogger(__name__)
authServices = AuthServices()

# (price category, discount %, credit days) per customer type
CUSTOMER_TYPE_DEFAULTS = {
    CustomerType.RETAIL: (PriceCategory.RETAIL, Decimal("0"), 30),
    CustomerType.WHOLESALE: (PriceCategory.WHOLESALE, Decimal("10"), 45),
    CustomerType.MARKET: (PriceCategory.MARKET, Decimal("15"), 60),
    CustomerType.DISTRIBUTOR: (PriceCategory.MARKET, Decimal("20"), 90),
}


def apply_type_defaults(data: dict) -> dict:
    price_category, discount, credit_days = CUSTOMER_TYPE_DEFAULTS[data["customer_type"]]
    if data.get("price_category") is None:
        data["price_category"] = price_category
    if data.get("discount_percentage") is None:
        data["discount_percentage"] = discount
    if data.get("credit_days") is None:
        data["credit_days"] = credit_days
    return data


def check_effective_dates(effective_from: Optional[date], effective_to: Optional[date]):
    if effective_from and effective_to and effective_to < effective_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Effective to date cannot be before effective from date"
        )


class PriceStructureServices:

    async def create_structure(self, structure: PriceStructureInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        structure_dict = apply_type_defaults(structure.model_dump())
        if structure_dict["effective_from"] is None:
            structure_dict["effective_from"] = date.today()
        check_effective_dates(structure_dict["effective_from"], structure_dict["effective_to"])

        if structure.customer_id:
            customer = (await session.exec(select(Customer).where(Customer.id == structure.customer_id))).first()
            if not customer:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Customer not found"
                )
            if not structure_dict["customer_name"]:
                structure_dict["customer_name"] = customer.name

        if not structure_dict["customer_name"]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Customer name is required"
            )

        new_structure = PriceStructure(**structure_dict)
        session.add(new_structure)

        try:
            await session.commit()
            await session.refresh(new_structure)
            return new_structure
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create price structure: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create price structure"
            )

    async def get_all_structures(
        self,
        session: AsyncSession,
        params: ListParameters,
        customer_type: Optional[CustomerType] = None,
        status_filter: Optional[StructureStatus] = None,
    ):
        statement = select(PriceStructure)

        if params.search:
            statement = statement.where(or_(
                PriceStructure.customer_name.ilike(f"%{params.search}%"),
                PriceStructure.notes.ilike(f"%{params.search}%"),
            ))
        if customer_type:
            statement = statement.where(PriceStructure.customer_type == customer_type)
        if status_filter:
            statement = statement.where(PriceStructure.status == status_filter)

        statement = statement.order_by(PriceStructure.created_at.desc())

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_structure_by_id(self, structure_id: uuid.UUID, session: AsyncSession):
        structure = (await session.exec(select(PriceStructure).where(PriceStructure.id == structure_id))).first()

        if not structure:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Price structure not found"
            )
        return structure

    async def get_structure_for_customer(self, customer_id: uuid.UUID, session: AsyncSession) -> Optional[PriceStructure]:
        """Latest active structure linked to ``customer_id``, if any."""
        statement = (
            select(PriceStructure)
            .where(PriceStructure.customer_id == customer_id, PriceStructure.status == StructureStatus.ACTIVE)
            .order_by(PriceStructure.effective_from.desc())
            .limit(1)
        )
        return (await session.exec(statement)).first()

    async def update_structure(self, structure_id: uuid.UUID, update_data: PriceStructureUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        structure = await self.get_structure_by_id(structure_id, session)

        check_effective_dates(
            update_dict.get("effective_from", structure.effective_from),
            update_dict.get("effective_to", structure.effective_to),
        )

        for key, value in update_dict.items():
            setattr(structure, key, value)

        try:
            await session.commit()
            await session.refresh(structure)
            return structure
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def bulk_update(self, bulk_input: BulkUpdateInput, session: AsyncSession, user_id: str) -> int:
        await authServices.check_user_exists(user_id, session)

        changes = bulk_input.model_dump(exclude={"customer_type"}, exclude_none=True)
        if not changes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        structures = (await session.exec(
            select(PriceStructure).where(PriceStructure.customer_type == bulk_input.customer_type)
        )).all()

        for structure in structures:
            for key, value in changes.items():
                setattr(structure, key, value)

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        logger.info(f"Bulk updated {len(structures)} {bulk_input.customer_type.value} price structures")
        return len(structures)

    async def delete_structure(self, structure_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        structure = await self.get_structure_by_id(structure_id, session)

        try:
            await session.delete(structure)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )


price_structure_services = PriceStructureServices()


async def price_category_for_customer(customer_id: Optional[uuid.UUID], session: AsyncSession) -> PriceCategory:
    if customer_id:
        structure = await price_structure_services.get_structure_for_customer(customer_id, session)
        if structure:
            return structure.price_category
        customer = (await session.exec(select(Customer).where(Customer.id == customer_id))).first()
        if customer:
            return CUSTOMER_TYPE_DEFAULTS[customer.customer_type][0]
    return PriceCategory.RETAIL
