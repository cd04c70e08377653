from pydantic import BaseModel
from typing import Optional


class ProfileResponse(BaseModel):
    """Public part of a user profile, joined into member, assignee and comment views"""
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
