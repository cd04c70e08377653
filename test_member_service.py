import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ValidationError, ForbiddenError, NotFoundError, ConflictError
from src.models.board import Board, BoardMember, BoardMemberRole
from src.models.profile import Profile
from src.services.access_control import AccessControl
from src.services.member_service import MemberService
from src.services.notification_service import NotificationService


def profile_result(profile):
    mock_scalars = MagicMock()
    mock_scalars.first.return_value = profile
    mock_result = MagicMock()
    mock_result.scalars.return_value = mock_scalars
    return mock_result


class TestAddMember:
    """Tests for MemberService.add"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.board = Board(id=1, title="Sprint 1", created_by="u1")
        self.profile = Profile(id="u4", email="dana@example.com", full_name="Dana")

    @pytest.mark.asyncio
    async def test_add_member_notifies_new_member(self):
        self.mock_db.execute.return_value = profile_result(self.profile)
        added = BoardMember(board_id=1, user_id="u4", role=BoardMemberRole.MEMBER)
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(side_effect=[BoardMemberRole.OWNER, None])), \
             patch.object(MemberService, "get_member", AsyncMock(return_value=added)), \
             patch.object(NotificationService, "dispatch", AsyncMock(return_value=1)) as mock_dispatch:

            result = await MemberService.add(self.mock_db, "u1", 1, "dana@example.com")

        assert result is added
        member = self.mock_db.add.call_args[0][0]
        assert member.user_id == "u4"
        assert member.role == BoardMemberRole.MEMBER

        notifications = mock_dispatch.await_args[0][1]
        assert len(notifications) == 1
        assert notifications[0].user_id == "u4"
        assert notifications[0].title == "Added to Board"
        assert notifications[0].message == 'You were added to "Sprint 1" as a member'
        assert notifications[0].action_url == "/boards/1"

    @pytest.mark.asyncio
    async def test_owner_role_cannot_be_granted(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)):

            with pytest.raises(ValidationError) as exc_info:
                await MemberService.add(self.mock_db, "u1", 1, "dana@example.com", "owner")

        assert exc_info.value.message == "Role must be admin or member"
        self.mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_role_is_rejected(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.ADMIN)):

            with pytest.raises(ValidationError):
                await MemberService.add(self.mock_db, "u2", 1, "dana@example.com", "superuser")

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found(self):
        self.mock_db.execute.return_value = profile_result(None)
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)):

            with pytest.raises(NotFoundError) as exc_info:
                await MemberService.add(self.mock_db, "u1", 1, "nobody@example.com")

        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_existing_member_is_conflict(self):
        self.mock_db.execute.return_value = profile_result(self.profile)
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(side_effect=[BoardMemberRole.ADMIN, BoardMemberRole.MEMBER])):

            with pytest.raises(ConflictError) as exc_info:
                await MemberService.add(self.mock_db, "u2", 1, "dana@example.com", "admin")

        assert exc_info.value.status_code == 409
        self.mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrent_add_is_conflict(self):
        self.mock_db.execute.return_value = profile_result(self.profile)
        self.mock_db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(side_effect=[BoardMemberRole.OWNER, None])), \
             patch.object(NotificationService, "dispatch", AsyncMock()) as mock_dispatch:

            with pytest.raises(ConflictError):
                await MemberService.add(self.mock_db, "u1", 1, "dana@example.com")

        mock_dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_member_cannot_add(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.MEMBER)):

            with pytest.raises(ForbiddenError) as exc_info:
                await MemberService.add(self.mock_db, "u3", 1, "dana@example.com")

        assert exc_info.value.message == "Only owners or admins can add members"

    @pytest.mark.asyncio
    async def test_email_is_required(self):
        with pytest.raises(ValidationError):
            await MemberService.add(self.mock_db, "u1", 1, "")


class TestChangeMembership:
    """Role updates and removals are owner-only and never touch the owner"""

    def setup_method(self):
        self.mock_db = AsyncMock(spec=AsyncSession)
        self.board = Board(id=1, title="Sprint 1", created_by="u1")

    @pytest.mark.asyncio
    async def test_owner_promotes_member(self):
        member = BoardMember(id=7, board_id=1, user_id="u3", role=BoardMemberRole.MEMBER)
        promoted = BoardMember(id=7, board_id=1, user_id="u3", role=BoardMemberRole.ADMIN)
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)), \
             patch.object(MemberService, "get_member", AsyncMock(side_effect=[member, promoted])):

            result = await MemberService.update_role(self.mock_db, "u1", 1, "u3", "admin")

        assert result.role == BoardMemberRole.ADMIN
        self.mock_db.execute.assert_awaited_once()
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_owner_role_cannot_change(self):
        owner = BoardMember(id=1, board_id=1, user_id="u1", role=BoardMemberRole.OWNER)
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)), \
             patch.object(MemberService, "get_member", AsyncMock(return_value=owner)):

            with pytest.raises(ValidationError) as exc_info:
                await MemberService.update_role(self.mock_db, "u1", 1, "u1", "member")

        assert exc_info.value.message == "The owner's role cannot be changed"
        self.mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_cannot_change_roles(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.ADMIN)):

            with pytest.raises(ForbiddenError) as exc_info:
                await MemberService.update_role(self.mock_db, "u2", 1, "u3", "admin")

        assert exc_info.value.message == "Only owners can update member roles"

    @pytest.mark.asyncio
    async def test_role_is_required(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)):

            with pytest.raises(ValidationError) as exc_info:
                await MemberService.update_role(self.mock_db, "u1", 1, "u3", None)

        assert exc_info.value.message == "Role is required"

    @pytest.mark.asyncio
    async def test_removing_absent_member_is_not_found(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(side_effect=[BoardMemberRole.OWNER, None])):

            with pytest.raises(NotFoundError) as exc_info:
                await MemberService.remove(self.mock_db, "u1", 1, "u9")

        assert exc_info.value.message == "Member not found"

    @pytest.mark.asyncio
    async def test_owner_cannot_be_removed(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(return_value=BoardMemberRole.OWNER)):

            with pytest.raises(ValidationError):
                await MemberService.remove(self.mock_db, "u1", 1, "u1")

        self.mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owner_removes_member(self):
        with patch.object(AccessControl, "get_board", AsyncMock(return_value=self.board)), \
             patch.object(AccessControl, "resolve_role", AsyncMock(side_effect=[BoardMemberRole.OWNER, BoardMemberRole.MEMBER])):

            await MemberService.remove(self.mock_db, "u1", 1, "u3")

        self.mock_db.execute.assert_awaited_once()
        self.mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_non_member_cannot_list(self):
        with patch.object(AccessControl, "resolve_role", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError):
                await MemberService.list(self.mock_db, "u9", 1)
