from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from src.models.board import BoardMemberRole
from src.schemas.profile import ProfileResponse


class MemberAdd(BaseModel):
    """Schema for adding a member by the email of their profile"""
    email: Optional[str] = None
    role: Optional[str] = None


class MemberRoleUpdate(BaseModel):
    """Schema for changing a member's role"""
    role: Optional[str] = None


class MemberResponse(BaseModel):
    """Schema for member response with profile"""
    id: int
    board_id: int
    user_id: str
    role: BoardMemberRole
    joined_at: Optional[datetime] = None
    profile: Optional[ProfileResponse] = None

    class Config:
        from_attributes = True


class MemberEnvelope(BaseModel):
    message: str
    member: MemberResponse


class MemberListEnvelope(BaseModel):
    message: str
    members: List[MemberResponse]
