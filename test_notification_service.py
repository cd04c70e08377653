import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError
from src.models.notification import Notification
from src.services.notification_service import NotificationService


class TestNotificationBuilders:
    """Title, message and link of each event notification"""

    def test_member_added(self):
        notification = NotificationService.member_added("u4", 1, "Sprint 1", "admin")

        assert notification.title == "Added to Board"
        assert notification.message == 'You were added to "Sprint 1" as an admin'
        assert notification.type == "info"
        assert notification.action_url == "/boards/1"
        assert notification.read is False

    def test_task_assigned(self):
        notification = NotificationService.task_assigned("u2", 1, 12, "Ship it")

        assert notification.user_id == "u2"
        assert notification.board_id == 1
        assert notification.message == 'You were assigned to "Ship it"'
        assert notification.action_url == "/boards/1/tasks/12"

    def test_task_completed_is_success(self):
        notification = NotificationService.task_completed("u3", 1, 12, "Ship it")

        assert notification.title == "Task Completed"
        assert notification.type == "success"

    def test_comment_added(self):
        notification = NotificationService.comment_added("u3", 1, 12, "Ship it")

        assert notification.title == "New Comment"
        assert notification.message == 'A new comment was added to "Ship it"'


class TestDispatch:
    """Dispatch stores notifications best-effort"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.notifications = [
            NotificationService.comment_added("u2", 1, 12, "Ship it"),
            NotificationService.comment_added("u3", 1, 12, "Ship it"),
        ]

    @pytest.mark.asyncio
    async def test_nothing_to_send(self):
        assert await NotificationService.dispatch(self.mock_db, []) == 0

        self.mock_db.add_all.assert_not_called()
        self.mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stores_every_notification(self):
        sent = await NotificationService.dispatch(self.mock_db, self.notifications)

        assert sent == 2
        self.mock_db.add_all.assert_called_once_with(self.notifications)
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        self.mock_db.commit.side_effect = SQLAlchemyError("notifications table is gone")

        sent = await NotificationService.dispatch(self.mock_db, self.notifications)

        assert sent == 0
        self.mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_rollback_is_swallowed(self):
        self.mock_db.commit.side_effect = SQLAlchemyError("connection lost")
        self.mock_db.rollback.side_effect = SQLAlchemyError("connection lost")

        assert await NotificationService.dispatch(self.mock_db, self.notifications) == 0


class TestInbox:
    """Per-user inbox operations"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)

    @pytest.mark.asyncio
    async def test_mark_read(self):
        notification = Notification(id=3, user_id="u2", title="Task Assigned", read=False)
        mock_scalars = MagicMock()
        mock_scalars.first.return_value = notification
        mock_result = MagicMock()
        mock_result.scalars.return_value = mock_scalars
        self.mock_db.execute.return_value = mock_result

        result = await NotificationService.mark_read(self.mock_db, "u2", 3)

        assert result.read is True
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mark_read_of_someone_else_is_not_found(self):
        mock_scalars = MagicMock()
        mock_scalars.first.return_value = None
        mock_result = MagicMock()
        mock_result.scalars.return_value = mock_scalars
        self.mock_db.execute.return_value = mock_result

        with pytest.raises(NotFoundError):
            await NotificationService.mark_read(self.mock_db, "u9", 3)

        self.mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mark_all_read_returns_updated_count(self):
        mock_result = MagicMock()
        mock_result.rowcount = 4
        self.mock_db.execute.return_value = mock_result

        assert await NotificationService.mark_all_read(self.mock_db, "u2") == 4
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_found(self):
        mock_result = MagicMock()
        mock_result.rowcount = 0
        self.mock_db.execute.return_value = mock_result

        with pytest.raises(NotFoundError) as exc_info:
            await NotificationService.delete(self.mock_db, "u2", 99)

        assert exc_info.value.message == "Notification not found or access denied"
        self.mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_for_user(self):
        notifications = [Notification(id=2, user_id="u2", title="b"), Notification(id=1, user_id="u2", title="a")]
        mock_scalars = MagicMock()
        mock_scalars.all.return_value = notifications
        mock_result = MagicMock()
        mock_result.scalars.return_value = mock_scalars
        self.mock_db.execute.return_value = mock_result

        assert await NotificationService.list_for_user(self.mock_db, "u2") == notifications
