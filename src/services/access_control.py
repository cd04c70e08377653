from typing import Optional, Tuple, Collection

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ForbiddenError, NotFoundError
from src.models.board import Board, BoardMember, BoardMemberRole
from src.models.column import BoardColumn
from src.models.task import Task

ANY_MEMBER = frozenset({BoardMemberRole.OWNER, BoardMemberRole.ADMIN, BoardMemberRole.MEMBER})
MANAGERS = frozenset({BoardMemberRole.OWNER, BoardMemberRole.ADMIN})
OWNER_ONLY = frozenset({BoardMemberRole.OWNER})


class AccessControl:
    """Single place where board membership and roles are checked.

    Write paths report a missing entity as NotFoundError and a missing or
    insufficient role as ForbiddenError. Read paths go through
    require_member_for_read, which reports both as NotFoundError so that a
    non-member cannot tell whether the board exists.
    """

    @staticmethod
    def is_allowed(role: Optional[BoardMemberRole], required_roles: Collection[BoardMemberRole]) -> bool:
        return role is not None and role in required_roles

    @staticmethod
    async def resolve_role(
        db: AsyncSession,
        board_id: int,
        user_id: str
    ) -> Optional[BoardMemberRole]:
        """Role of the user on the board, or None without a membership row"""
        query = select(BoardMember.role).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id == user_id
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def authorize(
        db: AsyncSession,
        board_id: int,
        user_id: str,
        required_roles: Collection[BoardMemberRole],
        message: Optional[str] = None
    ) -> BoardMemberRole:
        """Return the actor's role, raising ForbiddenError when it is not enough"""
        role = await AccessControl.resolve_role(db, board_id, user_id)

        if role is None:
            raise ForbiddenError(message or "You don't have access to this board")

        if role not in required_roles:
            raise ForbiddenError(message or f"Operation not allowed with your role: {role.value}")

        return role

    @staticmethod
    async def require_member_for_read(
        db: AsyncSession,
        board_id: int,
        user_id: str,
        message: str = "Board not found or access denied"
    ) -> BoardMemberRole:
        role = await AccessControl.resolve_role(db, board_id, user_id)
        if role is None:
            raise NotFoundError(message)
        return role

    @staticmethod
    async def get_board(db: AsyncSession, board_id: int) -> Board:
        result = await db.execute(select(Board).where(Board.id == board_id))
        board = result.scalars().first()
        if not board:
            raise NotFoundError("Board not found")
        return board

    @staticmethod
    async def get_column(
        db: AsyncSession,
        column_id: int,
        message: str = "Column not found"
    ) -> BoardColumn:
        result = await db.execute(select(BoardColumn).where(BoardColumn.id == column_id))
        column = result.scalars().first()
        if not column:
            raise NotFoundError(message)
        return column

    @staticmethod
    async def get_task(
        db: AsyncSession,
        task_id: int,
        message: str = "Task not found"
    ) -> Tuple[Task, int]:
        """Task together with the id of the board it belongs to through its column"""
        query = select(Task, BoardColumn.board_id).join(
            BoardColumn, Task.column_id == BoardColumn.id
        ).where(Task.id == task_id)
        result = await db.execute(query)
        row = result.first()
        if not row:
            raise NotFoundError(message)
        task, board_id = row
        return task, board_id

    @staticmethod
    async def board_for_task(db: AsyncSession, task_id: int) -> int:
        _, board_id = await AccessControl.get_task(db, task_id)
        return board_id
