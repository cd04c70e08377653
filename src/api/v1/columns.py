from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_async_session
from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.schemas.column import (
    ColumnCreate,
    ColumnUpdate,
    ColumnReorder,
    ColumnEnvelope,
    ColumnListEnvelope
)
from src.schemas.common import MessageResponse
from src.services.column_service import ColumnService

router = APIRouter(
    prefix="/columns",
    tags=["columns"],
)


@router.post("/reorder", response_model=ColumnListEnvelope)
async def reorder_columns(
    column_order: ColumnReorder,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Reorder the columns of a board (Owner/Admin only)"""
    column_ids = None
    if column_order.columns is not None:
        column_ids = [column.id for column in column_order.columns]

    columns = await ColumnService.reorder(
        db=db,
        actor_id=actor.id,
        board_id=column_order.board_id,
        column_ids=column_ids
    )
    return {"message": "Columns reordered successfully", "columns": columns}


@router.post("", response_model=ColumnEnvelope, status_code=status.HTTP_201_CREATED)
async def create_column(
    column_create: ColumnCreate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Append a column to a board (Owner/Admin only)"""
    column = await ColumnService.create(
        db=db,
        actor_id=actor.id,
        board_id=column_create.board_id,
        title=column_create.title,
        color=column_create.color
    )
    return {"message": "Column created successfully", "column": column}


@router.get("/{board_id}", response_model=ColumnListEnvelope)
async def get_columns(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get the columns of a board ordered by position"""
    columns = await ColumnService.list_by_board(db=db, actor_id=actor.id, board_id=board_id)
    return {"message": "Columns retrieved successfully", "columns": columns}


@router.put("/{column_id}", response_model=ColumnEnvelope)
async def update_column(
    column_id: int,
    column_update: ColumnUpdate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Update a column (Owner/Admin only)"""
    column = await ColumnService.update(
        db=db,
        actor_id=actor.id,
        column_id=column_id,
        title=column_update.title,
        color=column_update.color
    )
    return {"message": "Column updated successfully", "column": column}


@router.delete("/{column_id}", response_model=MessageResponse)
async def delete_column(
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Delete a column and its tasks (Owner/Admin only)"""
    await ColumnService.delete(db=db, actor_id=actor.id, column_id=column_id)
    return {"message": "Column deleted successfully"}
