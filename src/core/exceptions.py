from fastapi import Request, status
from fastapi.responses import JSONResponse

from src.logs.server_log import api_logger


class KanbanError(Exception):
    """Base error for every failure a service can report to its caller"""

    kind = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "statusCode": self.status_code}


class ValidationError(KanbanError):
    """A required field is missing or a value is not acceptable"""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(KanbanError):
    """Referenced entity is absent, or hidden from an actor without membership"""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(KanbanError):
    """Actor is known but its role does not allow the operation"""

    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(KanbanError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InternalError(KanbanError):
    """Persistence failure that is not otherwise classified"""


async def kanban_error_handler(request: Request, exc: KanbanError) -> JSONResponse:
    """Render a service error as {message, statusCode}"""
    if exc.status_code >= 500:
        api_logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        api_logger.info(f"{request.method} {request.url.path} rejected ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
