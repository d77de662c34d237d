import logging
from typing import List, Optional
from src.categories.schemas import CategoryCreate, CategoryUpdate, Category as CategorySchema
from sqlmodel.ext.asyncio.session import AsyncSession
from src.categories.models import Category, CategoryType, RecordStatus
from src.parts.models import Part
from sqlmodel import select
from fastapi import HTTPException, status
from sqlalchemy.exc import DatabaseError, SQLAlchemyError
from sqlalchemy.orm import selectinload
import uuid
from src.auth.services import AuthServices

logger = logging.getLogger(__name__)
authServices = AuthServices()


class CategoryServices:

    def build_filters(self, status_filter: Optional[str], category_type: Optional[CategoryType], parent_id: Optional[uuid.UUID]):
        filters = []
        if status_filter and status_filter != "all":
            filters.append(Category.status == RecordStatus(status_filter))
        if category_type:
            filters.append(Category.type == category_type)
        if parent_id:
            filters.append(Category.parent_id == parent_id)
        elif category_type == CategoryType.MAIN:
            filters.append(Category.parent_id.is_(None))
        return filters

    async def get_all_categories(
        self,
        session: AsyncSession,
        status_filter: Optional[str] = None,
        category_type: Optional[CategoryType] = None,
        parent_id: Optional[uuid.UUID] = None,
    ) -> List[CategorySchema]:
        """List categories, with parent and subcategories when the join works.

        A failing relational query degrades to a flat one; only when both
        fail is the error surfaced.
        """
        filters = self.build_filters(status_filter, category_type, parent_id)

        relational = (
            select(Category)
            .where(*filters)
            .options(selectinload(Category.parent), selectinload(Category.subcategories))
            .order_by(Category.name)
        )

        try:
            result = await session.exec(relational)
            return [CategorySchema.model_validate(c) for c in result.all()]
        except SQLAlchemyError as relation_error:
            logger.warning(f"Category relations query failed, trying without relations: {relation_error}")
            await session.rollback()

        flat = select(Category).where(*filters).order_by(Category.name)

        try:
            result = await session.exec(flat)
            # Relationships are not loaded here, so validate from plain column data.
            return [CategorySchema.model_validate(c.model_dump()) for c in result.all()]
        except SQLAlchemyError as e:
            logger.error(f"All category queries failed: {e}")
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch categories: {e}"
            )

    async def get_category_by_id(self, category_id: uuid.UUID, session: AsyncSession) -> Category:
        statement = (
            select(Category)
            .where(Category.id == category_id)
            .options(selectinload(Category.parent), selectinload(Category.subcategories))
            .execution_options(populate_existing=True)
        )

        try:
            result = await session.exec(statement)
            category = result.first()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found"
            )
        return category

    async def check_duplicate_name(self, name: str, category_type: CategoryType, parent_id: Optional[uuid.UUID], session: AsyncSession, exclude_id: Optional[uuid.UUID] = None):
        statement = select(Category).where(
            Category.name == name,
            Category.type == category_type,
            Category.parent_id == parent_id if parent_id else Category.parent_id.is_(None),
        )
        if exclude_id:
            statement = statement.where(Category.id != exclude_id)

        if (await session.exec(statement)).first():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category with this name already exists"
            )

    async def create_category(self, category: CategoryCreate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        category_dict = category.model_dump()

        if category.type == CategoryType.SUB:
            if not category.parent_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Subcategory requires a parent category"
                )
            parent = (await session.exec(select(Category).where(Category.id == category.parent_id))).first()
            if not parent:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="Parent category not found"
                )
            if parent.type != CategoryType.MAIN:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Parent must be a main category"
                )
        else:
            category_dict["parent_id"] = None

        await self.check_duplicate_name(category.name, category.type, category_dict["parent_id"], session)

        new_category = Category(**category_dict)
        session.add(new_category)

        try:
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Category creation error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create category: {e}"
            )

        return await self.get_category_by_id(new_category.id, session)

    async def update_category(self, category_id: uuid.UUID, update_data: CategoryUpdate, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        category = await self.get_category_by_id(category_id, session)
        update_dict = update_data.model_dump(exclude_unset=True)

        if not update_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You must provide at least one field to update (name, description, status)"
            )

        if update_dict.get("name") and update_dict["name"] != category.name:
            await self.check_duplicate_name(update_dict["name"], category.type, category.parent_id, session, exclude_id=category.id)

        for key, value in update_dict.items():
            setattr(category, key, value)

        try:
            await session.commit()
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )

        return await self.get_category_by_id(category_id, session)

    async def delete_category(self, category_id: uuid.UUID, session: AsyncSession, user_id: str):
        await authServices.check_user_exists(user_id, session)

        category = await self.get_category_by_id(category_id, session)

        if category.subcategories:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete a category that has subcategories"
            )

        part_in_use = (await session.exec(select(Part.id).where(Part.category_id == category_id).limit(1))).first()
        if part_in_use:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot delete a category that is assigned to parts"
            )

        try:
            await session.delete(category)
            await session.commit()
            return True
        except DatabaseError:
            await session.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="internal server error"
            )
