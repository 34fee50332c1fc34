from fastapi import APIRouter
from taskboard.api.v1.projects import router as projects_router
from taskboard.api.v1.boards import router as boards_router
from taskboard.api.v1.tasks import router as tasks_router
from taskboard.api.v1.workflow import router as workflow_router
from taskboard.api.v1.settings import router as settings_router
from taskboard.api.v1.websockets import router as websocket_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(projects_router)
api_router.include_router(boards_router)
api_router.include_router(tasks_router)
api_router.include_router(workflow_router)
api_router.include_router(settings_router)
api_router.include_router(websocket_router)
