from typing import Iterable, List, Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError
from src.models.notification import Notification
from src.logs import debug_logger, api_logger
from src.services.transaction import transaction


def board_url(board_id: int) -> str:
    return f"/boards/{board_id}"


def task_url(board_id: int, task_id: int) -> str:
    return f"/boards/{board_id}/tasks/{task_id}"


class NotificationService:
    """Builds, dispatches and manages user notifications"""

    @staticmethod
    def build(
        user_id: str,
        board_id: Optional[int],
        title: str,
        message: str,
        type: str = "info",
        action_url: Optional[str] = None
    ) -> Notification:
        return Notification(
            user_id=user_id,
            board_id=board_id,
            title=title,
            message=message,
            type=type,
            action_url=action_url,
            read=False,
        )

    @staticmethod
    def member_added(user_id: str, board_id: int, board_title: str, role: str) -> Notification:
        return NotificationService.build(
            user_id=user_id,
            board_id=board_id,
            title="Added to Board",
            message=f'You were added to "{board_title}" as {"an" if role == "admin" else "a"} {role}',
            action_url=board_url(board_id),
        )

    @staticmethod
    def task_assigned(user_id: str, board_id: int, task_id: int, task_title: str) -> Notification:
        return NotificationService.build(
            user_id=user_id,
            board_id=board_id,
            title="Task Assigned",
            message=f'You were assigned to "{task_title}"',
            action_url=task_url(board_id, task_id),
        )

    @staticmethod
    def task_completed(user_id: str, board_id: int, task_id: int, task_title: str) -> Notification:
        return NotificationService.build(
            user_id=user_id,
            board_id=board_id,
            title="Task Completed",
            message=f'"{task_title}" has been marked as completed',
            type="success",
            action_url=task_url(board_id, task_id),
        )

    @staticmethod
    def comment_added(user_id: str, board_id: int, task_id: int, task_title: str) -> Notification:
        return NotificationService.build(
            user_id=user_id,
            board_id=board_id,
            title="New Comment",
            message=f'A new comment was added to "{task_title}"',
            action_url=task_url(board_id, task_id),
        )

    @staticmethod
    async def dispatch(db: AsyncSession, notifications: Iterable[Notification]) -> int:
        """Persist notifications on a best-effort basis.

        Runs after the triggering mutation has been committed. A failure is
        rolled back and logged, never raised. The rollback expires every
        object in the session, so callers re-read what they return.

        Returns:
            Number of notifications stored
        """
        notifications = list(notifications)
        if not notifications:
            return 0

        try:
            db.add_all(notifications)
            await db.commit()
        except Exception as e:
            debug_logger.error(f"Failed to store {len(notifications)} notification(s): {e}")
            api_logger.error(f"Notification dispatch failed: {e.__class__.__name__}")
            try:
                await db.rollback()
            except Exception:
                debug_logger.log_exception("Rollback after failed notification dispatch")
            return 0

        debug_logger.debug(
            f"Stored {len(notifications)} notification(s) for users "
            f"{[notification.user_id for notification in notifications]}"
        )
        return len(notifications)

    @staticmethod
    async def list_for_user(db: AsyncSession, user_id: str) -> List[Notification]:
        """Notifications of the user, newest first, with their board loaded"""
        query = select(Notification).options(
            selectinload(Notification.board)
        ).where(
            Notification.user_id == user_id
        ).order_by(Notification.timestamp.desc(), Notification.id.desc())

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def mark_read(db: AsyncSession, user_id: str, notification_id: int) -> Notification:
        query = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        )
        result = await db.execute(query)
        notification = result.scalars().first()
        if not notification:
            raise NotFoundError("Notification not found or access denied")

        async with transaction(db, "Failed to mark notification as read"):
            notification.read = True

        return notification

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: str) -> int:
        async with transaction(db, "Failed to mark notifications as read"):
            stmt = update(Notification).where(
                Notification.user_id == user_id,
                Notification.read.is_(False)
            ).values(read=True).execution_options(synchronize_session=False)
            result = await db.execute(stmt)

        return result.rowcount

    @staticmethod
    async def delete(db: AsyncSession, user_id: str, notification_id: int) -> None:
        async with transaction(db, "Failed to delete notification"):
            stmt = delete(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
            result = await db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("Notification not found or access denied")
