from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, not_
from sqlalchemy.orm import selectinload
from datetime import datetime

from src.core import get_settings
from src.core.exceptions import ValidationError, NotFoundError
from src.models.board import Board, BoardMember, BoardMemberRole
from src.models.column import BoardColumn
from src.models.task import Task
from src.logs import debug_logger, log_function
from src.services.access_control import AccessControl, ANY_MEMBER, MANAGERS, OWNER_ONLY
from src.services.transaction import transaction

settings = get_settings()

# Fields a board update may patch
BOARD_FIELDS = ("title", "description", "color", "priority", "is_starred")
# Patchable fields whose columns are NOT NULL
BOARD_REQUIRED_FIELDS = ("title", "color", "priority", "is_starred")


class BoardService:
    """Board lifecycle and membership-scoped board queries"""

    @staticmethod
    async def get_by_id(db: AsyncSession, board_id: int) -> Optional[Board]:
        query = select(Board).where(Board.id == board_id).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        actor_id: str,
        title: Optional[str],
        description: Optional[str] = None,
        color: Optional[str] = None,
        priority: Optional[str] = None
    ) -> Board:
        """Create a board; the creator becomes its owner in the same transaction"""
        if not title or not title.strip():
            raise ValidationError("Title is required")

        board = Board(
            title=title,
            description=description,
            color=color or settings.DEFAULT_BOARD_COLOR,
            priority=priority or settings.DEFAULT_PRIORITY,
            is_starred=False,
            created_by=actor_id,
        )

        async with transaction(db, "Failed to create board"):
            db.add(board)
            await db.flush()
            db.add(BoardMember(board_id=board.id, user_id=actor_id, role=BoardMemberRole.OWNER))

        debug_logger.info(f"Board {board.id} created by {actor_id}")
        return board

    @staticmethod
    async def list_for_user(db: AsyncSession, actor_id: str) -> List[Board]:
        """Boards the actor is a member of, each carrying the actor's role"""
        query = select(Board, BoardMember.role).join(
            BoardMember, BoardMember.board_id == Board.id
        ).where(
            BoardMember.user_id == actor_id
        ).order_by(Board.created_at.desc(), Board.id.desc())

        result = await db.execute(query)

        boards = []
        for board, role in result.all():
            setattr(board, "role", role)
            boards.append(board)
        return boards

    @staticmethod
    async def get_detail(db: AsyncSession, actor_id: str, board_id: int) -> Board:
        """Board with columns, tasks, assignees, tags and member profiles"""
        await AccessControl.require_member_for_read(db, board_id, actor_id)

        query = select(Board).where(Board.id == board_id).options(
            selectinload(Board.columns).selectinload(BoardColumn.tasks).selectinload(Task.assignees),
            selectinload(Board.columns).selectinload(BoardColumn.tasks).selectinload(Task.tags),
            selectinload(Board.members).selectinload(BoardMember.profile),
        ).execution_options(populate_existing=True)

        result = await db.execute(query)
        board = result.scalars().first()
        if not board:
            raise NotFoundError("Board not found or access denied")
        return board

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        actor_id: str,
        board_id: int,
        **fields
    ) -> Board:
        """Patch the provided fields of a board (owner/admin only).

        A field passed as None is cleared; only description may be cleared.
        """
        board = await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can update boards"
        )

        update_data = {key: value for key, value in fields.items() if key in BOARD_FIELDS}
        for key in BOARD_REQUIRED_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValidationError(f"{key} cannot be null")
        if "title" in update_data and not update_data["title"].strip():
            raise ValidationError("Title cannot be empty")

        if not update_data:
            return board

        update_data["updated_at"] = datetime.utcnow()

        async with transaction(db, "Failed to update board"):
            await db.execute(update(Board).where(Board.id == board_id).values(**update_data))

        return await BoardService.get_by_id(db, board_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, actor_id: str, board_id: int) -> None:
        """Delete a board with its columns, tasks and members (owner only)"""
        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, OWNER_ONLY, "Only owners can delete boards"
        )

        async with transaction(db, "Failed to delete board"):
            await db.execute(delete(Board).where(Board.id == board_id))

        debug_logger.info(f"Board {board_id} deleted by {actor_id}")

    @staticmethod
    async def toggle_star(db: AsyncSession, actor_id: str, board_id: int) -> Board:
        """Flip is_starred; any member may do it"""
        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        async with transaction(db, "Failed to update board star status"):
            stmt = update(Board).where(Board.id == board_id).values(
                is_starred=not_(Board.is_starred),
                updated_at=datetime.utcnow()
            ).execution_options(synchronize_session=False)
            await db.execute(stmt)

        return await BoardService.get_by_id(db, board_id)
