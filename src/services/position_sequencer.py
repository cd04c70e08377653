from datetime import datetime
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ValidationError
from src.models.board import Board
from src.models.column import BoardColumn
from src.models.task import Task


def dense_positions(ordered_ids: Sequence[Hashable]) -> Dict[Hashable, int]:
    """Map each id to its index in the sequence"""
    return {item_id: position for position, item_id in enumerate(ordered_ids)}


def plan_remove(ordered_ids: Sequence[Hashable], item_id: Hashable) -> List[Hashable]:
    return [current for current in ordered_ids if current != item_id]


def plan_insert(ordered_ids: Sequence[Hashable], item_id: Hashable, index: int) -> List[Hashable]:
    """Insert item_id at index, clamped to the end of the sequence"""
    if index is None or index < 0:
        raise ValidationError("Position must be a non-negative integer")

    siblings = plan_remove(ordered_ids, item_id)
    index = min(index, len(siblings))
    return siblings[:index] + [item_id] + siblings[index:]


def plan_move(
    source_ids: Sequence[Hashable],
    target_ids: Sequence[Hashable],
    item_id: Hashable,
    index: int,
    same_parent: bool = False
) -> Tuple[List[Hashable], List[Hashable]]:
    """New sibling order of the source and target parents after a move.

    Within one parent both returned lists are the same reordered sequence.
    """
    if same_parent:
        reordered = plan_insert(source_ids, item_id, index)
        return reordered, reordered

    return plan_remove(source_ids, item_id), plan_insert(target_ids, item_id, index)


def plan_reorder(current_ids: Sequence[Hashable], requested_ids: Sequence[Hashable]) -> List[Hashable]:
    """Validate an explicit ordering; it must list every current sibling exactly once"""
    requested = list(requested_ids)

    if len(set(requested)) != len(requested):
        raise ValidationError("Order contains duplicate ids")

    if set(requested) != set(current_ids):
        raise ValidationError("Order must list every item of the parent exactly once")

    return requested


class PositionSequencer:
    """Keeps sibling positions equal to 0..N-1 after every structural change.

    Callers take the parent's row lock (lock_board / lock_column) at the start
    of the transaction that reads and rewrites the siblings, so concurrent
    changes on the same parent are applied one after another.
    """

    @staticmethod
    async def lock_board(db: AsyncSession, board_id: int) -> None:
        await db.execute(select(Board.id).where(Board.id == board_id).with_for_update())

    @staticmethod
    async def lock_columns(db: AsyncSession, column_ids: Iterable[int]) -> None:
        # Fixed lock order keeps two crossing moves from deadlocking
        ids = sorted(set(column_ids))
        await db.execute(
            select(BoardColumn.id).where(BoardColumn.id.in_(ids)).order_by(BoardColumn.id).with_for_update()
        )

    @staticmethod
    async def lock_column(db: AsyncSession, column_id: int) -> None:
        await PositionSequencer.lock_columns(db, [column_id])

    @staticmethod
    async def column_ids(db: AsyncSession, board_id: int) -> List[int]:
        query = select(BoardColumn.id).where(
            BoardColumn.board_id == board_id
        ).order_by(BoardColumn.position, BoardColumn.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def task_ids(db: AsyncSession, column_id: int) -> List[int]:
        query = select(Task.id).where(
            Task.column_id == column_id
        ).order_by(Task.position, Task.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def next_column_position(db: AsyncSession, board_id: int) -> int:
        """Append position for a new column: the current column count"""
        result = await db.execute(
            select(func.count(BoardColumn.id)).where(BoardColumn.board_id == board_id)
        )
        return result.scalar() or 0

    @staticmethod
    async def next_task_position(db: AsyncSession, column_id: int) -> int:
        result = await db.execute(
            select(func.count(Task.id)).where(Task.column_id == column_id)
        )
        return result.scalar() or 0

    @staticmethod
    async def write_positions(db: AsyncSession, model, ordered_ids: Sequence[int]) -> None:
        """Bulk UPDATE by primary key assigning each id its index"""
        if not ordered_ids:
            return

        current_time = datetime.utcnow()
        await db.execute(
            update(model),
            [
                {"id": item_id, "position": position, "updated_at": current_time}
                for item_id, position in dense_positions(ordered_ids).items()
            ],
        )

    @staticmethod
    async def resequence_columns(db: AsyncSession, board_id: int) -> List[int]:
        """Rewrite every column position of the board in ascending order"""
        ordered_ids = await PositionSequencer.column_ids(db, board_id)
        await PositionSequencer.write_positions(db, BoardColumn, ordered_ids)
        return ordered_ids

    @staticmethod
    async def resequence_tasks(db: AsyncSession, column_id: int) -> List[int]:
        ordered_ids = await PositionSequencer.task_ids(db, column_id)
        await PositionSequencer.write_positions(db, Task, ordered_ids)
        return ordered_ids
