from fastapi import APIRouter
from src.api.v1.boards import router as boards_router
from src.api.v1.columns import router as columns_router
from src.api.v1.tasks import router as tasks_router
from src.api.v1.members import router as members_router
from src.api.v1.notifications import router as notifications_router

# Create main API router
api_router = APIRouter(prefix="/api")

# Include routers
api_router.include_router(boards_router)
api_router.include_router(columns_router)
api_router.include_router(tasks_router)
api_router.include_router(members_router)
api_router.include_router(notifications_router)
