"""Schemas for board columns"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ColumnCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    is_locked: bool = False


class ColumnUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    is_locked: Optional[bool] = None


class ColumnPosition(BaseModel):
    id: int
    order_index: int = Field(..., ge=0)


class ColumnReorder(BaseModel):
    columns: List[ColumnPosition]


class ColumnResponse(BaseModel):
    id: int
    project_id: int
    name: str
    order_index: int
    is_locked: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
