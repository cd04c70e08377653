from src.models.profile import Profile
from src.models.board import Board, BoardMember, BoardMemberRole
from src.models.column import BoardColumn
from src.models.task import Task, TaskAssignee, TaskTag, TaskComment, TaskAttachment
from src.models.notification import Notification
