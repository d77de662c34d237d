from sqlmodel import select, func
from pydantic import BaseModel, Field
from fastapi import Query
from enum import Enum
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import TypeVar, Generic, List, Optional, Tuple, Type, Sequence, Any
from sqlalchemy.sql.selectable import Select
from src.config import Config


T = TypeVar("T", bound=BaseModel)

class SortEnum(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"

class ListParameters(BaseModel):
    search: Optional[str] = None
    skip: int = Field(0, ge=0)
    limit: int = Field(Config.DEFAULT_PAGE_LIMIT, ge=1, le=500)

class PaginatedResponse(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    skip: int
    limit: int


async def paginate(session: AsyncSession, statement: Select, params: ListParameters) -> Tuple[Sequence[Any], int]:
    """Run ``statement`` for one page and count the full result set.

    The statement must already carry its filters and ordering.
    """
    count_query = select(func.count()).select_from(statement.order_by(None).subquery())
    total_count = (await session.exec(count_query)).one()

    query = statement.offset(params.skip).limit(params.limit)
    items = (await session.exec(query)).all()

    return items, total_count


def to_page(items: Sequence[Any], total_count: int, params: ListParameters, schema: Type[T]) -> PaginatedResponse:
    return PaginatedResponse[schema](
        items=[schema.model_validate(item) for item in items],
        total_count=total_count,
        skip=params.skip,
        limit=params.limit,
    )


def list_parameters(
    search: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(Config.DEFAULT_PAGE_LIMIT, ge=1, le=500),
) -> ListParameters:
    return ListParameters(search=search, skip=skip, limit=limit)
