from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from src.schemas.task import TaskResponse


class ColumnCreate(BaseModel):
    """Schema for column creation"""
    board_id: Optional[int] = None
    title: Optional[str] = None
    color: Optional[str] = None


class ColumnUpdate(BaseModel):
    """Schema for column update"""
    title: Optional[str] = None
    color: Optional[str] = None


class ColumnRef(BaseModel):
    id: int


class ColumnReorder(BaseModel):
    """Schema for updating column order; columns are listed in their new order"""
    board_id: Optional[int] = None
    columns: Optional[List[ColumnRef]] = None


class ColumnResponse(BaseModel):
    """Schema for column response"""
    id: int
    board_id: int
    title: str
    color: Optional[str] = None
    position: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ColumnWithTasksResponse(ColumnResponse):
    """Schema for a column nested in the board detail view"""
    tasks: List[TaskResponse] = []


class ColumnEnvelope(BaseModel):
    message: str
    column: ColumnResponse


class ColumnListEnvelope(BaseModel):
    message: str
    columns: List[ColumnResponse]
