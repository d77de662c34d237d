from pydantic import BaseModel, ConfigDict, Field
import uuid
from datetime import datetime
from typing import Optional, List
from src.categories.models import CategoryType, RecordStatus


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    name: str
    type: CategoryType
    status: RecordStatus


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    name: str
    type: CategoryType
    parent_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    status: RecordStatus
    created_at: datetime
    parent: Optional[CategorySummary] = None
    subcategories: List[CategorySummary] = []


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    type: CategoryType = CategoryType.MAIN
    parent_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    status: Optional[RecordStatus] = None


class CategoryResponse(BaseModel):
    success: bool
    message: str
    data: Category


class CategoryListResponse(BaseModel):
    success: bool
    message: str
    data: List[Category]
