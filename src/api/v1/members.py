from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_async_session
from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.schemas.member import MemberAdd, MemberRoleUpdate, MemberEnvelope, MemberListEnvelope
from src.schemas.common import MessageResponse
from src.services.member_service import MemberService

router = APIRouter(
    prefix="/members",
    tags=["members"],
)


@router.post("/{board_id}", response_model=MemberEnvelope, status_code=status.HTTP_201_CREATED)
async def add_member(
    board_id: int,
    member_add: MemberAdd,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Add a user to a board by email (Owner/Admin only)"""
    member = await MemberService.add(
        db=db,
        actor_id=actor.id,
        board_id=board_id,
        email=member_add.email,
        role=member_add.role
    )
    return {"message": "Member added successfully", "member": member}


@router.get("/{board_id}", response_model=MemberListEnvelope)
async def get_members(
    board_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get the members of a board with their profiles"""
    members = await MemberService.list(db=db, actor_id=actor.id, board_id=board_id)
    return {"message": "Members retrieved successfully", "members": members}


@router.put("/{board_id}/{user_id}", response_model=MemberEnvelope)
async def update_member_role(
    board_id: int,
    user_id: str,
    role_update: MemberRoleUpdate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Change the role of a member (Owner only)"""
    member = await MemberService.update_role(
        db=db,
        actor_id=actor.id,
        board_id=board_id,
        user_id=user_id,
        role=role_update.role
    )
    return {"message": "Member role updated successfully", "member": member}


@router.delete("/{board_id}/{user_id}", response_model=MessageResponse)
async def remove_member(
    board_id: int,
    user_id: str,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Remove a member from a board (Owner only)"""
    await MemberService.remove(db=db, actor_id=actor.id, board_id=board_id, user_id=user_id)
    return {"message": "Member removed successfully"}
