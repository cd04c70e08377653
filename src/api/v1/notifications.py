from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_async_session
from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.schemas.notification import NotificationEnvelope, NotificationListEnvelope, MarkAllReadResponse
from src.schemas.common import MessageResponse
from src.services.notification_service import NotificationService

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)


@router.get("", response_model=NotificationListEnvelope)
async def get_notifications(
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get the caller's notifications, newest first"""
    notifications = await NotificationService.list_for_user(db=db, user_id=actor.id)
    return {"message": "Notifications retrieved successfully", "notifications": notifications}


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    updated = await NotificationService.mark_all_read(db=db, user_id=actor.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.put("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_as_read(
    notification_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    notification = await NotificationService.mark_read(
        db=db, user_id=actor.id, notification_id=notification_id
    )
    return {"message": "Notification marked as read", "notification": notification}


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    await NotificationService.delete(db=db, user_id=actor.id, notification_id=notification_id)
    return {"message": "Notification deleted successfully"}
