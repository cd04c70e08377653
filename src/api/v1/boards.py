from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_async_session
from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.schemas.board import (
    BoardCreate,
    BoardUpdate,
    BoardEnvelope,
    BoardListEnvelope,
    BoardDetailEnvelope
)
from src.schemas.common import MessageResponse
from src.services.board_service import BoardService

router = APIRouter(
    prefix="/boards",
    tags=["boards"],
)


@router.post("", response_model=BoardEnvelope, status_code=status.HTTP_201_CREATED)
async def create_board(
    board_create: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Create a new board; the caller becomes its owner"""
    board = await BoardService.create(
        db=db,
        actor_id=actor.id,
        title=board_create.title,
        description=board_create.description,
        color=board_create.color,
        priority=board_create.priority,
    )
    return {"message": "Board created successfully", "board": board}


@router.get("", response_model=BoardListEnvelope)
async def get_boards(
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get all boards the caller is a member of"""
    boards = await BoardService.list_for_user(db=db, actor_id=actor.id)
    return {"message": "Boards retrieved successfully", "boards": boards}


@router.get("/{board_id}", response_model=BoardDetailEnvelope)
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get a board with its columns, tasks and members"""
    board = await BoardService.get_detail(db=db, actor_id=actor.id, board_id=board_id)
    return {"message": "Board retrieved successfully", "board": board}


@router.put("/{board_id}", response_model=BoardEnvelope)
async def update_board(
    board_id: int,
    board_update: BoardUpdate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Update a board (only owner and admin can update)"""
    board = await BoardService.update(
        db=db,
        actor_id=actor.id,
        board_id=board_id,
        **board_update.model_dump(exclude_unset=True)
    )
    return {"message": "Board updated successfully", "board": board}


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Delete a board (only owner can delete)"""
    await BoardService.delete(db=db, actor_id=actor.id, board_id=board_id)
    return {"message": "Board deleted successfully"}


@router.post("/{board_id}/star", response_model=BoardEnvelope)
async def star_board(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Toggle the starred flag of a board"""
    board = await BoardService.toggle_star(db=db, actor_id=actor.id, board_id=board_id)
    return {"message": "Board star status updated successfully", "board": board}
