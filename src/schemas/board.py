from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from src.models.board import BoardMemberRole
from src.schemas.column import ColumnWithTasksResponse
from src.schemas.member import MemberResponse


class BoardCreate(BaseModel):
    """Schema for board creation"""
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[str] = None


class BoardUpdate(BaseModel):
    """Schema for board update; only provided fields change"""
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[str] = None
    is_starred: Optional[bool] = None


class BoardResponse(BaseModel):
    """Schema for board response"""
    id: int
    title: str
    description: Optional[str] = None
    color: Optional[str] = None
    priority: Optional[str] = None
    is_starred: bool = False
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BoardWithRoleResponse(BoardResponse):
    """Schema for a board in the caller's list, with the caller's role"""
    role: Optional[BoardMemberRole] = None


class BoardDetailResponse(BoardResponse):
    """Schema for complete board response with columns, their tasks and the members"""
    columns: List[ColumnWithTasksResponse] = []
    members: List[MemberResponse] = []


class BoardEnvelope(BaseModel):
    message: str
    board: BoardResponse


class BoardListEnvelope(BaseModel):
    message: str
    boards: List[BoardWithRoleResponse]


class BoardDetailEnvelope(BaseModel):
    message: str
    board: BoardDetailResponse
