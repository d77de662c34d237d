import logging
from typing import List, Optional
from src.parts.schemas import PartCreateInput, UpdatePartInput, LineItemInput
from sqlmodel.ext.asyncio.session import AsyncSession
from src.parts.models import Part, PriceCategory, price_for_category
from src.categories.models import Category, RecordStatus
from sqlmodel import select, or_
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError
import uuid
from src.auth.services import AuthServices
from src.utils.pagination import ListParameters, paginate
from src.utils.totals import to_money, line_total

logger = logging.getLogger(__name__)
authServices = AuthServices()


class PartServices:

    async def check_category(self, category_id: Optional[uuid.UUID], session: AsyncSession):
        if category_id is None:
            return
        category = (await session.exec(select(Category).where(Category.id == category_id))).first()
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )

    async def create_part(self, part: PartCreateInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        existing = (await session.exec(select(Part).where(Part.part_no == part.part_no))).first()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Part number already exists"
            )

        await self.check_category(part.category_id, session)

        new_part = Part(**part.model_dump())
        session.add(new_part)

        try:
            await session.commit()
            await session.refresh(new_part)
            return new_part
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create part {part.part_no}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create part"
            )

    async def get_all_parts(self, session: AsyncSession, params: ListParameters, status_filter: Optional[RecordStatus] = None):
        statement = select(Part)

        # Searched on every keystroke by the item pickers, so keep it a plain LIKE.
        if params.search:
            term = f"%{params.search}%"
            statement = statement.where(or_(
                Part.part_no.ilike(term),
                Part.description.ilike(term),
                Part.brand.ilike(term),
            ))
        if status_filter:
            statement = statement.where(Part.status == status_filter)

        statement = statement.order_by(Part.part_no)

        try:
            return await paginate(session, statement, params)
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def get_part_by_id(self, part_id: uuid.UUID, session: AsyncSession):
        statement = select(Part).where(Part.id == part_id)

        try:
            result = await session.exec(statement)
            part = result.first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        if not part:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Part not found"
            )
        return part

    async def update_part(self, part_id: uuid.UUID, update_data: UpdatePartInput, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        update_dict = update_data.model_dump(exclude_unset=True)
        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update"
            )

        part = await self.get_part_by_id(part_id, session)

        if "category_id" in update_dict:
            await self.check_category(update_dict["category_id"], session)

        for key, value in update_dict.items():
            setattr(part, key, value)

        try:
            await session.commit()
            await session.refresh(part)
            return part
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def delete_part(self, part_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        part = await self.get_part_by_id(part_id, session)

        try:
            await session.delete(part)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

    async def price_lines(self, items: List[LineItemInput], price_category: Optional[PriceCategory], session: AsyncSession) -> List[dict]:
        """Resolve document lines against the parts table and price them.

        Lines that reference a part inherit its number, description and unit
        of measure, and its price for ``price_category`` when no unit price
        was given. Every line gets ``line_total = quantity * unit_price``.
        """
        if not items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="At least one item is required"
            )

        part_ids = {item.part_id for item in items if item.part_id}
        parts_map = {}
        if part_ids:
            result = await session.exec(select(Part).where(Part.id.in_(part_ids)))
            parts_map = {p.id: p for p in result.all()}

        lines = []
        for item in items:
            line = item.model_dump()
            if item.part_id:
                part = parts_map.get(item.part_id)
                if not part:
                    raise HTTPException(
                        status_code=status.HTTP_404_NOT_FOUND,
                        detail=f"Part {item.part_id} not found"
                    )
                line["part_no"] = line["part_no"] or part.part_no
                line["description"] = line["description"] or part.description
                line["uom"] = line["uom"] or part.uom
                if line["unit_price"] is None:
                    line["unit_price"] = price_for_category(part, price_category)
            elif line["unit_price"] is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Unit price is required for items without a part"
                )

            line["uom"] = line["uom"] or "pcs"
            line["unit_price"] = to_money(line["unit_price"])
            line["line_total"] = line_total(line["quantity"], line["unit_price"])
            lines.append(line)

        return lines
