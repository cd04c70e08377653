import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies.auth import get_current_actor
from src.core.exceptions import ForbiddenError, NotFoundError, ValidationError, InternalError
from src.db.database import get_async_session
from src.main import app
from src.models.board import Board
from src.models.task import TaskAssignee
from src.schemas.auth import Actor
from src.services.board_service import BoardService
from src.services.notification_service import NotificationService
from src.services.task_service import TaskService


async def override_session():
    yield AsyncMock(spec=AsyncSession)


@pytest.fixture
def client():
    """Client without lifespan, so no migrations run"""
    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_current_actor] = lambda: Actor(id="u1", email="u1@example.com")
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    app.dependency_overrides[get_async_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestErrorResponses:
    """Service errors are rendered as {message, statusCode}"""

    @pytest.mark.parametrize("error, status_code", [
        (ValidationError("Title is required"), 400),
        (ForbiddenError("Only owners can delete boards"), 403),
        (NotFoundError("Board not found"), 404),
        (InternalError("Failed to delete board"), 500),
    ])
    def test_error_body(self, client, error, status_code):
        with patch.object(BoardService, "delete", AsyncMock(side_effect=error)):
            response = client.delete("/api/boards/10")

        assert response.status_code == status_code
        assert response.json() == {"message": error.message, "statusCode": status_code}

    def test_missing_token_is_unauthorized(self, anonymous_client):
        response = anonymous_client.get("/api/boards")

        assert response.status_code == 401
        assert response.json() == {"detail": "No token provided"}

    def test_forged_token_is_unauthorized(self, anonymous_client):
        response = anonymous_client.get(
            "/api/boards", headers={"Authorization": "Bearer forged-token"}
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid token"}


class TestEndpoints:
    def test_create_board(self, client):
        board = Board(
            id=10, title="Sprint 1", description=None, color="#3B82F6",
            priority="medium", is_starred=False, created_by="u1"
        )
        with patch.object(BoardService, "create", AsyncMock(return_value=board)) as mock_create:
            response = client.post("/api/boards", json={"title": "Sprint 1"})

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Board created successfully"
        assert body["board"]["id"] == 10
        assert body["board"]["created_by"] == "u1"
        assert mock_create.await_args.kwargs["actor_id"] == "u1"

    def test_new_assignee_is_created(self, client):
        assignee = TaskAssignee(id=5, task_id=12, user_id="u2")
        with patch.object(TaskService, "add_assignee", AsyncMock(return_value=(assignee, True))):
            response = client.post("/api/tasks/12/assignees", json={"user_id": "u2"})

        assert response.status_code == 201
        assert response.json()["message"] == "Assignee added successfully"

    def test_existing_assignee_is_ok(self, client):
        assignee = TaskAssignee(id=5, task_id=12, user_id="u2")
        with patch.object(TaskService, "add_assignee", AsyncMock(return_value=(assignee, False))):
            response = client.post("/api/tasks/12/assignees", json={"user_id": "u2"})

        assert response.status_code == 200
        assert response.json()["message"] == "User is already assigned"
        assert response.json()["assignee"]["user_id"] == "u2"

    def test_move_passes_body(self, client):
        with patch.object(TaskService, "move", AsyncMock(side_effect=ValidationError("Target column belongs to another board"))) as mock_move:
            response = client.post(
                "/api/tasks/move",
                json={"task_id": 12, "target_column_id": 9, "new_position": 0}
            )

        assert response.status_code == 400
        assert mock_move.await_args.kwargs == {
            "db": mock_move.await_args.kwargs["db"],
            "actor_id": "u1",
            "task_id": 12,
            "target_column_id": 9,
            "new_position": 0,
        }

    def test_update_task_passes_only_sent_fields(self, client):
        with patch.object(TaskService, "update", AsyncMock(side_effect=NotFoundError("Task not found"))) as mock_update:
            response = client.put("/api/tasks/12", json={"status": "completed"})

        assert response.status_code == 404
        kwargs = mock_update.await_args.kwargs
        assert kwargs["status"] == "completed"
        assert "title" not in kwargs
        assert "assignees" not in kwargs

    def test_mark_all_read(self, client):
        with patch.object(NotificationService, "mark_all_read", AsyncMock(return_value=3)):
            response = client.put("/api/notifications/read-all")

        assert response.status_code == 200
        assert response.json() == {"message": "All notifications marked as read", "updated": 3}
