from src.core.config import Settings, get_settings
from src.core.exceptions import (
    KanbanError,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    InternalError,
)
