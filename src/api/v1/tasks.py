from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.database import get_async_session
from src.api.dependencies.auth import get_current_actor
from src.schemas.auth import Actor
from src.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskMove,
    TaskReorder,
    AssigneeAdd,
    TagAdd,
    CommentCreate,
    AttachmentCreate,
    TaskEnvelope,
    TaskListEnvelope,
    TaskWithBoardListEnvelope,
    TaskDetailEnvelope,
    AssigneeEnvelope,
    TagEnvelope,
    CommentEnvelope,
    AttachmentEnvelope
)
from src.schemas.common import MessageResponse
from src.services.task_service import TaskService

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)


# Static paths are registered before "/{column_id}" so they are not captured by it

@router.get("/getAllTasks", response_model=TaskWithBoardListEnvelope)
async def get_all_tasks(
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get every task the caller created or is assigned to, across boards"""
    tasks = await TaskService.list_for_actor(db=db, actor_id=actor.id)
    return {"message": "Tasks retrieved successfully", "tasks": tasks}


@router.get("/details/{task_id}", response_model=TaskDetailEnvelope)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get a task with assignee profiles, tags, comments and attachments"""
    task = await TaskService.get_detail(db=db, actor_id=actor.id, task_id=task_id)
    return {"message": "Task retrieved successfully", "task": task}


@router.post("/move", response_model=TaskEnvelope)
async def move_task(
    task_move: TaskMove,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Move a task to a position of a column of the same board"""
    task = await TaskService.move(
        db=db,
        actor_id=actor.id,
        task_id=task_move.task_id,
        target_column_id=task_move.target_column_id,
        new_position=task_move.new_position
    )
    return {"message": "Task moved successfully", "task": task}


@router.post("/reorder", response_model=TaskListEnvelope)
async def reorder_tasks(
    task_order: TaskReorder,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Reorder the tasks of one column"""
    task_ids = None
    if task_order.tasks is not None:
        task_ids = [task.id for task in task_order.tasks]

    tasks = await TaskService.reorder(
        db=db,
        actor_id=actor.id,
        column_id=task_order.column_id,
        task_ids=task_ids
    )
    return {"message": "Tasks reordered successfully", "tasks": tasks}


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_create: TaskCreate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Create a task at the end of a column"""
    task = await TaskService.create(
        db=db,
        actor_id=actor.id,
        column_id=task_create.column_id,
        title=task_create.title,
        description=task_create.description,
        priority=task_create.priority,
        due_date=task_create.due_date,
        assignees=task_create.assignees,
        tags=task_create.tags
    )
    return {"message": "Task created successfully", "task": task}


@router.get("/{column_id}", response_model=TaskListEnvelope)
async def get_tasks_by_column(
    column_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Get the tasks of a column ordered by position"""
    tasks = await TaskService.list_by_column(db=db, actor_id=actor.id, column_id=column_id)
    return {"message": "Tasks retrieved successfully", "tasks": tasks}


@router.put("/{task_id}", response_model=TaskEnvelope)
async def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Update a task (Owner/Admin or an assignee of the task)"""
    task = await TaskService.update(
        db=db,
        actor_id=actor.id,
        task_id=task_id,
        **task_update.model_dump(exclude_unset=True)
    )
    return {"message": "Task updated successfully", "task": task}


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Delete a task (Owner/Admin only)"""
    await TaskService.delete(db=db, actor_id=actor.id, task_id=task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/assignees", response_model=AssigneeEnvelope, status_code=status.HTTP_201_CREATED)
async def add_assignee(
    task_id: int,
    assignee_add: AssigneeAdd,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Assign a board member to a task; an existing assignment is returned unchanged"""
    assignee, created = await TaskService.add_assignee(
        db=db,
        actor_id=actor.id,
        task_id=task_id,
        user_id=assignee_add.user_id
    )
    if not created:
        response.status_code = status.HTTP_200_OK
        return {"message": "User is already assigned", "assignee": assignee}
    return {"message": "Assignee added successfully", "assignee": assignee}


@router.delete("/{task_id}/assignees/{user_id}", response_model=MessageResponse)
async def remove_assignee(
    task_id: int,
    user_id: str,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    await TaskService.remove_assignee(db=db, actor_id=actor.id, task_id=task_id, user_id=user_id)
    return {"message": "Assignee removed successfully"}


@router.post("/{task_id}/tags", response_model=TagEnvelope, status_code=status.HTTP_201_CREATED)
async def add_tag(
    task_id: int,
    tag_add: TagAdd,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    tag = await TaskService.add_tag(db=db, actor_id=actor.id, task_id=task_id, tag=tag_add.tag)
    return {"message": "Tag added successfully", "tag": tag}


@router.delete("/{task_id}/tags/{tag}", response_model=MessageResponse)
async def remove_tag(
    task_id: int,
    tag: str,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    await TaskService.remove_tag(db=db, actor_id=actor.id, task_id=task_id, tag=tag)
    return {"message": "Tag removed successfully"}


@router.post("/{task_id}/comments", response_model=CommentEnvelope, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    comment_create: CommentCreate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Comment on a task; assignees and the creator are notified"""
    comment = await TaskService.add_comment(
        db=db,
        actor_id=actor.id,
        task_id=task_id,
        content=comment_create.content
    )
    return {"message": "Comment added successfully", "comment": comment}


@router.delete("/{task_id}/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    task_id: int,
    comment_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Delete a comment (its author or a board Owner/Admin)"""
    await TaskService.delete_comment(db=db, actor_id=actor.id, task_id=task_id, comment_id=comment_id)
    return {"message": "Comment deleted successfully"}


@router.post("/{task_id}/attachments", response_model=AttachmentEnvelope, status_code=status.HTTP_201_CREATED)
async def add_attachment(
    task_id: int,
    attachment_create: AttachmentCreate,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Record an attachment stored in external storage"""
    attachment = await TaskService.add_attachment(
        db=db,
        actor_id=actor.id,
        task_id=task_id,
        file_name=attachment_create.file_name,
        file_url=attachment_create.file_url,
        file_size=attachment_create.file_size,
        file_type=attachment_create.file_type
    )
    return {"message": "Attachment added successfully", "attachment": attachment}


@router.delete("/{task_id}/attachments/{attachment_id}", response_model=MessageResponse)
async def delete_attachment(
    task_id: int,
    attachment_id: int,
    db: AsyncSession = Depends(get_async_session),
    actor: Actor = Depends(get_current_actor),
):
    """Delete an attachment (its uploader or a board Owner/Admin)"""
    await TaskService.delete_attachment(
        db=db,
        actor_id=actor.id,
        task_id=task_id,
        attachment_id=attachment_id
    )
    return {"message": "Attachment deleted successfully"}
