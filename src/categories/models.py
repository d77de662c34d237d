from sqlmodel import SQLModel, Field, Relationship, Column
from typing import List, Optional
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class CategoryType(str, Enum):
    MAIN = "main"
    SUB = "sub"

class RecordStatus(str, Enum):
    ACTIVE = "A"
    INACTIVE = "I"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(index=True)
    type: CategoryType = Field(default=CategoryType.MAIN, index=True)
    parent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="categories.id", index=True)
    description: Optional[str] = None
    status: RecordStatus = Field(default=RecordStatus.ACTIVE)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )

    # Relationships
    parent: Optional["Category"] = Relationship(
        back_populates="subcategories",
        sa_relationship_kwargs={"remote_side": "Category.id"}
    )
    subcategories: List["Category"] = Relationship(back_populates="parent")
