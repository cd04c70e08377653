from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, validator

from src.schemas.common import parse_naive_datetime
from src.schemas.profile import ProfileResponse


class TaskCreate(BaseModel):
    """Schema for task creation"""
    column_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None
    assignees: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    @validator('due_date', pre=True)
    def parse_due_date(cls, value):
        return parse_naive_datetime(value)


class TaskUpdate(BaseModel):
    """Schema for task update; assignees and tags replace the current sets when given"""
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None
    assignees: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    @validator('due_date', pre=True)
    def parse_due_date(cls, value):
        return parse_naive_datetime(value)


class TaskMove(BaseModel):
    """Schema for moving a task to a position of a column"""
    task_id: Optional[int] = None
    target_column_id: Optional[int] = None
    new_position: Optional[int] = None


class TaskRef(BaseModel):
    id: int


class TaskReorder(BaseModel):
    """Schema for updating task order within a column"""
    column_id: Optional[int] = None
    tasks: Optional[List[TaskRef]] = None


class AssigneeAdd(BaseModel):
    user_id: Optional[str] = None


class TagAdd(BaseModel):
    tag: Optional[str] = None


class CommentCreate(BaseModel):
    content: Optional[str] = None


class AttachmentCreate(BaseModel):
    """Schema for attachment metadata; the file itself lives in external storage"""
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None


class AssigneeResponse(BaseModel):
    id: int
    task_id: int
    user_id: str
    assigned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssigneeDetailResponse(AssigneeResponse):
    profile: Optional[ProfileResponse] = None


class TagResponse(BaseModel):
    id: int
    task_id: int
    tag: str

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    id: int
    task_id: int
    user_id: str
    content: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommentDetailResponse(CommentResponse):
    author: Optional[ProfileResponse] = None


class AttachmentResponse(BaseModel):
    id: int
    task_id: int
    file_name: str
    file_url: str
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    uploaded_by: str
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskResponse(BaseModel):
    """Schema for task response with assignee ids and tags"""
    id: int
    column_id: int
    title: str
    description: Optional[str] = None
    priority: Optional[str] = None
    status: str
    due_date: Optional[datetime] = None
    created_by: str
    position: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assignees: List[AssigneeResponse] = []
    tags: List[TagResponse] = []

    class Config:
        from_attributes = True


class TaskWithBoardResponse(TaskResponse):
    """Schema for a task in the caller's cross-board list"""
    board_id: Optional[int] = None


class TaskDetailResponse(TaskResponse):
    """Schema for the task detail view"""
    assignees: List[AssigneeDetailResponse] = []
    comments: List[CommentDetailResponse] = []
    attachments: List[AttachmentResponse] = []


class TaskEnvelope(BaseModel):
    message: str
    task: TaskResponse


class TaskListEnvelope(BaseModel):
    message: str
    tasks: List[TaskResponse]


class TaskWithBoardListEnvelope(BaseModel):
    message: str
    tasks: List[TaskWithBoardResponse]


class TaskDetailEnvelope(BaseModel):
    message: str
    task: TaskDetailResponse


class AssigneeEnvelope(BaseModel):
    message: str
    assignee: AssigneeResponse


class TagEnvelope(BaseModel):
    message: str
    tag: TagResponse


class CommentEnvelope(BaseModel):
    message: str
    comment: CommentResponse


class AttachmentEnvelope(BaseModel):
    message: str
    attachment: AttachmentResponse
