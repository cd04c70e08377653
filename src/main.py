import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator
import os
from pathlib import Path

from fastapi import FastAPI
from alembic.config import Config
from alembic import command

from src.db import init_db
from src.core import get_settings
from src.core.exceptions import KanbanError, kanban_error_handler
from src.api.v1 import api_router
from src.core.middleware import RequestLoggingMiddleware
from src.logs.server_log import api_logger

# Get application settings
settings = get_settings()


def run_migrations() -> None:
    alembic_cfg = Config(os.path.join(Path(__file__).parent.parent, "alembic.ini"))
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        # The migration environment runs its own event loop, so it gets a thread
        await asyncio.to_thread(run_migrations)
        await init_db()
        api_logger.info("Database migrations applied and initialized successfully")
    except Exception as e:
        api_logger.error(f"Error applying migrations: {e}")
        raise

    yield


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API for Kanban boards, columns, tasks, members and notifications",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(KanbanError, kanban_error_handler)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    api_logger.info("Server starting on http://0.0.0.0:8000")

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
