from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from datetime import datetime

from src.core.exceptions import ValidationError, NotFoundError, ConflictError, InternalError
from src.models.board import BoardMember, BoardMemberRole
from src.models.profile import Profile
from src.logs import debug_logger, log_function
from src.services.access_control import AccessControl, MANAGERS, OWNER_ONLY
from src.services.notification_service import NotificationService
from src.services.transaction import transaction

# Roles that can be handed out; ownership is fixed at board creation
ASSIGNABLE_ROLES = (BoardMemberRole.ADMIN, BoardMemberRole.MEMBER)


def _parse_role(role: Optional[str], default: Optional[BoardMemberRole] = None) -> BoardMemberRole:
    if role is None:
        if default is None:
            raise ValidationError("Role is required")
        return default

    try:
        parsed = BoardMemberRole(role)
    except ValueError:
        raise ValidationError("Role must be admin or member")

    if parsed not in ASSIGNABLE_ROLES:
        raise ValidationError("Role must be admin or member")
    return parsed


class MemberService:
    """Board membership management"""

    @staticmethod
    async def get_member(db: AsyncSession, board_id: int, user_id: str) -> Optional[BoardMember]:
        query = select(BoardMember).options(
            selectinload(BoardMember.profile)
        ).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id == user_id
        ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def add(
        db: AsyncSession,
        actor_id: str,
        board_id: int,
        email: Optional[str],
        role: Optional[str] = None
    ) -> BoardMember:
        """Add the user registered under email to the board (owner/admin only)"""
        if not email:
            raise ValidationError("Email is required")

        board = await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can add members"
        )
        member_role = _parse_role(role, default=BoardMemberRole.MEMBER)

        result = await db.execute(select(Profile).where(Profile.email == email))
        profile = result.scalars().first()
        if not profile:
            raise NotFoundError("User not found")

        if await AccessControl.resolve_role(db, board_id, profile.id) is not None:
            raise ConflictError("User is already a member")

        try:
            async with transaction(db, "Failed to add member"):
                db.add(BoardMember(board_id=board_id, user_id=profile.id, role=member_role))
        except InternalError as e:
            if isinstance(e.__cause__, IntegrityError):
                raise ConflictError("User is already a member") from e
            raise

        user_id = profile.id
        debug_logger.info(f"User {user_id} added to board {board_id} as {member_role.value}")

        await NotificationService.dispatch(db, [
            NotificationService.member_added(user_id, board_id, board.title, member_role.value)
        ])

        return await MemberService.get_member(db, board_id, user_id)

    @staticmethod
    async def list(db: AsyncSession, actor_id: str, board_id: int) -> List[BoardMember]:
        """Members of the board with their profiles"""
        await AccessControl.require_member_for_read(db, board_id, actor_id)

        query = select(BoardMember).options(
            selectinload(BoardMember.profile)
        ).where(
            BoardMember.board_id == board_id
        ).order_by(BoardMember.joined_at, BoardMember.id)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def update_role(
        db: AsyncSession,
        actor_id: str,
        board_id: int,
        user_id: str,
        role: Optional[str]
    ) -> BoardMember:
        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, OWNER_ONLY, "Only owners can update member roles"
        )
        new_role = _parse_role(role)

        member = await MemberService.get_member(db, board_id, user_id)
        if not member:
            raise NotFoundError("Member not found")
        if member.role == BoardMemberRole.OWNER:
            raise ValidationError("The owner's role cannot be changed")

        async with transaction(db, "Failed to update member role"):
            await db.execute(
                update(BoardMember).where(BoardMember.id == member.id).values(
                    role=new_role,
                    updated_at=datetime.utcnow()
                )
            )

        return await MemberService.get_member(db, board_id, user_id)

    @staticmethod
    @log_function()
    async def remove(db: AsyncSession, actor_id: str, board_id: int, user_id: str) -> None:
        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, OWNER_ONLY, "Only owners can remove members"
        )

        role = await AccessControl.resolve_role(db, board_id, user_id)
        if role is None:
            raise NotFoundError("Member not found")
        if role == BoardMemberRole.OWNER:
            raise ValidationError("The board owner cannot be removed")

        async with transaction(db, "Failed to remove member"):
            await db.execute(
                delete(BoardMember).where(
                    BoardMember.board_id == board_id,
                    BoardMember.user_id == user_id
                )
            )

        debug_logger.info(f"User {user_id} removed from board {board_id}")
