from typing import Iterable, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from datetime import datetime

from src.core import get_settings
from src.core.exceptions import ValidationError, NotFoundError, ForbiddenError, ConflictError, InternalError
from src.models.board import BoardMember
from src.models.column import BoardColumn
from src.models.task import (
    Task, TaskAssignee, TaskTag, TaskComment, TaskAttachment, TASK_STATUS_COMPLETED
)
from src.logs import debug_logger, log_function
from src.services.access_control import AccessControl, ANY_MEMBER, MANAGERS
from src.services.notification_service import NotificationService
from src.services.position_sequencer import PositionSequencer, plan_move, plan_reorder
from src.services.transaction import transaction

settings = get_settings()

# Scalar fields a task update may patch
TASK_FIELDS = ("title", "description", "priority", "status", "due_date")
# Patchable fields whose columns are NOT NULL
TASK_REQUIRED_FIELDS = ("title", "priority", "status")


def _unique(values: Iterable) -> list:
    """Drop repeated values, keeping the first occurrence"""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class TaskService:
    """Task operations: ordering within columns, assignees, tags, comments, attachments"""

    @staticmethod
    async def _load(db: AsyncSession, task_id: int, detail: bool = False) -> Optional[Task]:
        """Fresh copy of the task with the relations its response needs"""
        if detail:
            options = (
                selectinload(Task.assignees).selectinload(TaskAssignee.profile),
                selectinload(Task.tags),
                selectinload(Task.comments).selectinload(TaskComment.author),
                selectinload(Task.attachments),
            )
        else:
            options = (selectinload(Task.assignees), selectinload(Task.tags))

        query = select(Task).options(*options).where(
            Task.id == task_id
        ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _reload(db: AsyncSession, model, entity_id: int):
        """Re-read a row committed earlier; a failed dispatch may have expired it"""
        query = select(model).where(model.id == entity_id).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _tasks_of_column(db: AsyncSession, column_id: int) -> List[Task]:
        query = select(Task).options(
            selectinload(Task.assignees),
            selectinload(Task.tags)
        ).where(
            Task.column_id == column_id
        ).order_by(Task.position, Task.id).execution_options(populate_existing=True)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def _require_members(db: AsyncSession, board_id: int, user_ids: Iterable[str]) -> List[str]:
        """Deduplicated user ids, all of which must be members of the board"""
        user_ids = _unique(user_ids)
        if not user_ids:
            return []

        query = select(BoardMember.user_id).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id.in_(user_ids)
        )
        result = await db.execute(query)
        members = set(result.scalars().all())

        outsiders = [user_id for user_id in user_ids if user_id not in members]
        if outsiders:
            raise ValidationError(f"User is not a board member: {', '.join(outsiders)}")
        return user_ids

    @staticmethod
    async def _get_assignee(db: AsyncSession, task_id: int, user_id: str) -> Optional[TaskAssignee]:
        query = select(TaskAssignee).where(
            TaskAssignee.task_id == task_id,
            TaskAssignee.user_id == user_id
        )
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def _is_assignee(db: AsyncSession, task_id: int, user_id: str) -> bool:
        return await TaskService._get_assignee(db, task_id, user_id) is not None

    @staticmethod
    async def _assignee_ids(db: AsyncSession, task_id: int) -> List[str]:
        query = select(TaskAssignee.user_id).where(
            TaskAssignee.task_id == task_id
        ).order_by(TaskAssignee.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        actor_id: str,
        column_id: Optional[int],
        title: Optional[str],
        description: Optional[str] = None,
        priority: Optional[str] = None,
        due_date: Optional[datetime] = None,
        assignees: Optional[List[str]] = None,
        tags: Optional[List[str]] = None
    ) -> Task:
        """Append a task to a column, then attach its assignees and tags.

        The task row is committed first. If assignees or tags cannot be saved
        afterwards the task stays and InternalError is raised; retrying with
        add_assignee / add_tag is safe.
        """
        if not column_id or not title or not title.strip():
            raise ValidationError("Column ID and title are required")

        column = await AccessControl.get_column(db, column_id)
        board_id = column.board_id
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        assignee_ids = await TaskService._require_members(db, board_id, assignees or [])

        async with transaction(db, "Failed to create task"):
            await PositionSequencer.lock_column(db, column_id)
            position = await PositionSequencer.next_task_position(db, column_id)

            task = Task(
                column_id=column_id,
                title=title,
                description=description,
                priority=priority or settings.DEFAULT_PRIORITY,
                status=settings.DEFAULT_TASK_STATUS,
                due_date=due_date,
                created_by=actor_id,
                position=position,
            )
            db.add(task)
            await db.flush()

        task_id = task.id
        debug_logger.info(f"Task {task_id} created in column {column_id} at position {position}")

        if assignee_ids or tags:
            async with transaction(db, "Task was created but its assignees or tags could not be saved"):
                db.add_all([TaskAssignee(task_id=task_id, user_id=user_id) for user_id in assignee_ids])
                db.add_all([TaskTag(task_id=task_id, tag=tag) for tag in tags or []])

        await NotificationService.dispatch(db, [
            NotificationService.task_assigned(user_id, board_id, task_id, title)
            for user_id in assignee_ids
            if user_id != actor_id
        ])

        return await TaskService._load(db, task_id)

    @staticmethod
    async def list_for_actor(db: AsyncSession, actor_id: str) -> List[Task]:
        """Tasks the actor created or is assigned to, across every board"""
        assigned = select(TaskAssignee.task_id).where(TaskAssignee.user_id == actor_id)

        query = select(Task, BoardColumn.board_id).join(
            BoardColumn, Task.column_id == BoardColumn.id
        ).options(
            selectinload(Task.assignees),
            selectinload(Task.tags)
        ).where(
            or_(Task.created_by == actor_id, Task.id.in_(assigned))
        ).order_by(Task.position, Task.id)

        result = await db.execute(query)

        tasks = []
        for task, board_id in result.all():
            setattr(task, "board_id", board_id)
            tasks.append(task)
        return tasks

    @staticmethod
    async def list_by_column(db: AsyncSession, actor_id: str, column_id: int) -> List[Task]:
        column = await AccessControl.get_column(db, column_id, "Column not found or access denied")
        await AccessControl.require_member_for_read(
            db, column.board_id, actor_id, "Column not found or access denied"
        )
        return await TaskService._tasks_of_column(db, column_id)

    @staticmethod
    async def get_detail(db: AsyncSession, actor_id: str, task_id: int) -> Task:
        """Task with assignee profiles, tags, comments with authors and attachments"""
        _, board_id = await AccessControl.get_task(db, task_id, "Task not found or access denied")
        await AccessControl.require_member_for_read(
            db, board_id, actor_id, "Task not found or access denied"
        )

        task = await TaskService._load(db, task_id, detail=True)
        if not task:
            raise NotFoundError("Task not found or access denied")
        return task

    @staticmethod
    @log_function()
    async def update(
        db: AsyncSession,
        actor_id: str,
        task_id: int,
        assignees: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        **fields
    ) -> Task:
        """Patch scalar fields; assignees and tags, when given, replace the current sets.

        A scalar passed as None is cleared; title, priority and status cannot be.
        """
        task, board_id = await AccessControl.get_task(db, task_id)

        role = await AccessControl.resolve_role(db, board_id, actor_id)
        if not AccessControl.is_allowed(role, MANAGERS) and not await TaskService._is_assignee(db, task_id, actor_id):
            raise ForbiddenError("Only owners, admins, or assignees can update tasks")

        update_data = {key: value for key, value in fields.items() if key in TASK_FIELDS}
        for key in TASK_REQUIRED_FIELDS:
            if key in update_data and update_data[key] is None:
                raise ValidationError(f"{key} cannot be null")
        if "title" in update_data and not update_data["title"].strip():
            raise ValidationError("Title cannot be empty")

        assignee_ids = None
        if assignees is not None:
            assignee_ids = await TaskService._require_members(db, board_id, assignees)

        previous_status = task.status
        created_by = task.created_by
        title = update_data.get("title", task.title)

        async with transaction(db, "Failed to update task"):
            if update_data:
                update_data["updated_at"] = datetime.utcnow()
                await db.execute(update(Task).where(Task.id == task_id).values(**update_data))

            if assignee_ids is not None:
                await db.execute(delete(TaskAssignee).where(TaskAssignee.task_id == task_id))
                db.add_all([TaskAssignee(task_id=task_id, user_id=user_id) for user_id in assignee_ids])

            if tags is not None:
                await db.execute(delete(TaskTag).where(TaskTag.task_id == task_id))
                db.add_all([TaskTag(task_id=task_id, tag=tag) for tag in tags])

        completed_now = (
            update_data.get("status") == TASK_STATUS_COMPLETED
            and previous_status != TASK_STATUS_COMPLETED
        )
        if completed_now and created_by != actor_id:
            await NotificationService.dispatch(db, [
                NotificationService.task_completed(created_by, board_id, task_id, title)
            ])

        return await TaskService._load(db, task_id)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, actor_id: str, task_id: int) -> None:
        """Delete a task with its children and close the gap in its column"""
        task, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(
            db, board_id, actor_id, MANAGERS, "Only owners or admins can delete tasks"
        )
        column_id = task.column_id

        async with transaction(db, "Failed to delete task"):
            await PositionSequencer.lock_column(db, column_id)
            await db.execute(delete(Task).where(Task.id == task_id))
            await PositionSequencer.resequence_tasks(db, column_id)

        debug_logger.info(f"Task {task_id} deleted from column {column_id}")

    @staticmethod
    @log_function()
    async def move(
        db: AsyncSession,
        actor_id: str,
        task_id: Optional[int],
        target_column_id: Optional[int],
        new_position: Optional[int]
    ) -> Task:
        """Place a task at new_position of target_column_id.

        Both columns are locked for the duration of the move; the source and
        the target are re-sequenced in the same transaction. An index past the
        end appends.
        """
        if not task_id or not target_column_id or new_position is None:
            raise ValidationError("Task ID, target column ID and position are required")
        if new_position < 0:
            raise ValidationError("Position must be a non-negative integer")

        task, board_id = await AccessControl.get_task(db, task_id)
        target = await AccessControl.get_column(db, target_column_id, "Target column not found")
        if target.board_id != board_id:
            raise ValidationError("Target column belongs to another board")

        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        source_column_id = task.column_id
        same_column = source_column_id == target_column_id

        async with transaction(db, "Failed to move task"):
            await PositionSequencer.lock_columns(db, [source_column_id, target_column_id])

            source_ids = await PositionSequencer.task_ids(db, source_column_id)
            if task_id not in source_ids:
                raise ConflictError("Task was moved by someone else, please retry")

            target_ids = source_ids if same_column else await PositionSequencer.task_ids(db, target_column_id)
            new_source, new_target = plan_move(
                source_ids, target_ids, task_id, new_position, same_parent=same_column
            )

            if same_column:
                await PositionSequencer.write_positions(db, Task, new_target)
            else:
                await db.execute(
                    update(Task).where(Task.id == task_id).values(column_id=target_column_id)
                )
                await PositionSequencer.write_positions(db, Task, new_source)
                await PositionSequencer.write_positions(db, Task, new_target)

        debug_logger.info(
            f"Task {task_id} moved from column {source_column_id} to column {target_column_id}"
        )
        return await TaskService._load(db, task_id)

    @staticmethod
    @log_function()
    async def reorder(
        db: AsyncSession,
        actor_id: str,
        column_id: Optional[int],
        task_ids: Optional[List[int]]
    ) -> List[Task]:
        """Assign positions within one column by index of an explicit id list"""
        if not column_id or not task_ids:
            raise ValidationError("Column ID and tasks array are required")

        column = await AccessControl.get_column(db, column_id)
        await AccessControl.authorize(db, column.board_id, actor_id, ANY_MEMBER, "Access denied")

        async with transaction(db, "Failed to reorder tasks"):
            await PositionSequencer.lock_column(db, column_id)
            current_ids = await PositionSequencer.task_ids(db, column_id)
            ordered_ids = plan_reorder(current_ids, task_ids)
            await PositionSequencer.write_positions(db, Task, ordered_ids)

        return await TaskService._tasks_of_column(db, column_id)

    @staticmethod
    @log_function()
    async def add_assignee(
        db: AsyncSession,
        actor_id: str,
        task_id: int,
        user_id: Optional[str]
    ) -> Tuple[TaskAssignee, bool]:
        """Assign a board member to a task.

        Returns:
            The assignee row and whether it was created by this call. An
            existing assignment is returned as is, without a notification.
        """
        if not user_id:
            raise ValidationError("User ID is required")

        task, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")
        task_title = task.title

        if await AccessControl.resolve_role(db, board_id, user_id) is None:
            raise ValidationError("User is not a board member")

        existing = await TaskService._get_assignee(db, task_id, user_id)
        if existing:
            return existing, False

        assignee = TaskAssignee(task_id=task_id, user_id=user_id)
        try:
            async with transaction(db, "Failed to add assignee"):
                db.add(assignee)
        except InternalError as e:
            # A concurrent request inserted the same pair first
            if not isinstance(e.__cause__, IntegrityError):
                raise
            existing = await TaskService._get_assignee(db, task_id, user_id)
            if existing is None:
                raise
            return existing, False

        assignee_id = assignee.id
        if user_id != actor_id:
            await NotificationService.dispatch(db, [
                NotificationService.task_assigned(user_id, board_id, task_id, task_title)
            ])

        return await TaskService._reload(db, TaskAssignee, assignee_id), True

    @staticmethod
    async def remove_assignee(db: AsyncSession, actor_id: str, task_id: int, user_id: str) -> None:
        _, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        async with transaction(db, "Failed to remove assignee"):
            result = await db.execute(
                delete(TaskAssignee).where(
                    TaskAssignee.task_id == task_id,
                    TaskAssignee.user_id == user_id
                )
            )
            if result.rowcount == 0:
                raise NotFoundError("Assignee not found")

    @staticmethod
    async def add_tag(db: AsyncSession, actor_id: str, task_id: int, tag: Optional[str]) -> TaskTag:
        if not tag or not tag.strip():
            raise ValidationError("Tag is required")

        _, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        task_tag = TaskTag(task_id=task_id, tag=tag)
        async with transaction(db, "Failed to add tag"):
            db.add(task_tag)
        return task_tag

    @staticmethod
    async def remove_tag(db: AsyncSession, actor_id: str, task_id: int, tag: str) -> None:
        """Remove every occurrence of the label from the task"""
        _, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        async with transaction(db, "Failed to remove tag"):
            result = await db.execute(
                delete(TaskTag).where(TaskTag.task_id == task_id, TaskTag.tag == tag)
            )
            if result.rowcount == 0:
                raise NotFoundError("Tag not found")

    @staticmethod
    @log_function()
    async def add_comment(
        db: AsyncSession,
        actor_id: str,
        task_id: int,
        content: Optional[str]
    ) -> TaskComment:
        """Add a comment and notify the assignees and the creator, except the commenter"""
        if not content or not content.strip():
            raise ValidationError("Comment content is required")

        task, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")
        task_title = task.title
        created_by = task.created_by

        comment = TaskComment(task_id=task_id, user_id=actor_id, content=content)
        async with transaction(db, "Failed to add comment"):
            db.add(comment)
        comment_id = comment.id

        recipients = _unique(await TaskService._assignee_ids(db, task_id) + [created_by])
        await NotificationService.dispatch(db, [
            NotificationService.comment_added(user_id, board_id, task_id, task_title)
            for user_id in recipients
            if user_id != actor_id
        ])

        return await TaskService._reload(db, TaskComment, comment_id)

    @staticmethod
    async def delete_comment(db: AsyncSession, actor_id: str, task_id: int, comment_id: int) -> None:
        query = select(TaskComment).where(
            TaskComment.id == comment_id,
            TaskComment.task_id == task_id
        )
        result = await db.execute(query)
        comment = result.scalars().first()
        if not comment:
            raise NotFoundError("Comment not found")

        board_id = await AccessControl.board_for_task(db, task_id)
        role = await AccessControl.resolve_role(db, board_id, actor_id)
        if role is None or (comment.user_id != actor_id and not AccessControl.is_allowed(role, MANAGERS)):
            raise ForbiddenError("Only comment author or admins can delete comments")

        async with transaction(db, "Failed to delete comment"):
            await db.execute(delete(TaskComment).where(TaskComment.id == comment_id))

    @staticmethod
    async def add_attachment(
        db: AsyncSession,
        actor_id: str,
        task_id: int,
        file_name: Optional[str],
        file_url: Optional[str],
        file_size: Optional[int] = None,
        file_type: Optional[str] = None
    ) -> TaskAttachment:
        """Store a reference to a file kept in external storage"""
        if not file_name or not file_url:
            raise ValidationError("File name and URL are required")

        _, board_id = await AccessControl.get_task(db, task_id)
        await AccessControl.authorize(db, board_id, actor_id, ANY_MEMBER, "Access denied")

        attachment = TaskAttachment(
            task_id=task_id,
            file_name=file_name,
            file_url=file_url,
            file_size=file_size,
            file_type=file_type,
            uploaded_by=actor_id,
        )
        async with transaction(db, "Failed to add attachment"):
            db.add(attachment)
        return attachment

    @staticmethod
    async def delete_attachment(db: AsyncSession, actor_id: str, task_id: int, attachment_id: int) -> None:
        query = select(TaskAttachment).where(
            TaskAttachment.id == attachment_id,
            TaskAttachment.task_id == task_id
        )
        result = await db.execute(query)
        attachment = result.scalars().first()
        if not attachment:
            raise NotFoundError("Attachment not found")

        board_id = await AccessControl.board_for_task(db, task_id)
        role = await AccessControl.resolve_role(db, board_id, actor_id)
        if role is None or (attachment.uploaded_by != actor_id and not AccessControl.is_allowed(role, MANAGERS)):
            raise ForbiddenError("Only uploader or admins can delete attachments")

        async with transaction(db, "Failed to delete attachment"):
            await db.execute(delete(TaskAttachment).where(TaskAttachment.id == attachment_id))
