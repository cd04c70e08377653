from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class NotificationBoard(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class NotificationResponse(BaseModel):
    """Schema for notification response"""
    id: int
    user_id: str
    board_id: Optional[int] = None
    title: str
    message: Optional[str] = None
    type: str
    action_url: Optional[str] = None
    read: bool
    timestamp: datetime

    class Config:
        from_attributes = True


class NotificationWithBoardResponse(NotificationResponse):
    """Schema for a notification in the recipient's list, with its board title"""
    board: Optional[NotificationBoard] = None


class NotificationEnvelope(BaseModel):
    message: str
    notification: NotificationResponse


class NotificationListEnvelope(BaseModel):
    message: str
    notifications: List[NotificationWithBoardResponse]


class MarkAllReadResponse(BaseModel):
    message: str
    updated: int
