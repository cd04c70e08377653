from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from datetime import datetime

from src.core import get_settings
from src.core.exceptions import ValidationError
from src.models.column import BoardColumn
from src.logs import debug_logger, log_function
from src.services.access_control import AccessControl, MANAGERS
from src.services.position_sequencer import PositionSequencer, plan_reorder
from src.services.transaction import transaction

settings = get_settings()


class ColumnService:
    """Column operations; every structural change keeps positions dense"""

    @staticmethod
    async def get_by_id(db: AsyncSession, column_id: int) -> Optional[BoardColumn]:
        query = select(BoardColumn).where(
            BoardColumn.id == column_id
        ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board_id(db: AsyncSession, board_id: int) -> List[BoardColumn]:
        query = select(BoardColumn).where(
            BoardColumn.board_id == board_id
        ).order_by(BoardColumn.position, BoardColumn.id).execution_options(populate_existing=True)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        actor_id: str,
        board_id: Optional[int],
        title: Optional[str],
        color: Optional[str] = None
    ) -> BoardColumn:
        """Append a new column at the end of the board"""
        if not board_id or not title or not title.strip():
            raise ValidationError("Board ID and title are required")

        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can create columns"
        )

        async with transaction(db, "Failed to create column"):
            await PositionSequencer.lock_board(db, board_id)
            position = await PositionSequencer.next_column_position(db, board_id)

            column = BoardColumn(
                board_id=board_id,
                title=title,
                color=color or settings.DEFAULT_COLUMN_COLOR,
                position=position,
            )
            db.add(column)
            await db.flush()

        debug_logger.info(f"Column {column.id} created on board {board_id} at position {position}")
        return column

    @staticmethod
    async def list_by_board(db: AsyncSession, actor_id: str, board_id: int) -> List[BoardColumn]:
        """Columns of a board ordered by position"""
        await AccessControl.require_member_for_read(db, board_id, actor_id)
        return await ColumnService.get_by_board_id(db, board_id)

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        actor_id: str,
        column_id: int,
        title: Optional[str] = None,
        color: Optional[str] = None
    ) -> BoardColumn:
        column = await AccessControl.get_column(db, column_id)
        await AccessControl.authorize(
            db, column.board_id, actor_id, MANAGERS, "Only owners or admins can update columns"
        )

        update_data = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            update_data["title"] = title
        if color is not None:
            update_data["color"] = color

        if not update_data:
            return column

        update_data["updated_at"] = datetime.utcnow()

        async with transaction(db, "Failed to update column"):
            await db.execute(
                update(BoardColumn).where(BoardColumn.id == column_id).values(**update_data)
            )

        return await ColumnService.get_by_id(db, column_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, actor_id: str, column_id: int) -> None:
        """Delete a column with its tasks, then close the gap it leaves"""
        column = await AccessControl.get_column(db, column_id)
        board_id = column.board_id
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can delete columns"
        )

        async with transaction(db, "Failed to delete column"):
            await PositionSequencer.lock_board(db, board_id)
            await db.execute(delete(BoardColumn).where(BoardColumn.id == column_id))
            await PositionSequencer.resequence_columns(db, board_id)

        debug_logger.info(f"Column {column_id} deleted from board {board_id}")

    @staticmethod
    @log_function()
    async def reorder(
        db: AsyncSession,
        actor_id: str,
        board_id: Optional[int],
        column_ids: Optional[List[int]]
    ) -> List[BoardColumn]:
        """Assign positions by index of an explicit column id list

        Args:
            db: Database session
            actor_id: Profile id of the caller
            board_id: ID of the board
            column_ids: Every column ID of the board, in the desired order

        Returns:
            Columns of the board in their new order
        """
        if not board_id or not column_ids:
            raise ValidationError("Board ID and columns array are required")

        await AccessControl.get_board(db, board_id)
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can reorder columns"
        )

        async with transaction(db, "Failed to reorder columns"):
            await PositionSequencer.lock_board(db, board_id)
            current_ids = await PositionSequencer.column_ids(db, board_id)
            ordered_ids = plan_reorder(current_ids, column_ids)
            await PositionSequencer.write_positions(db, BoardColumn, ordered_ids)

        return await ColumnService.get_by_board_id(db, board_id)
