import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from alembic.config import Config
from alembic import command

from taskboard.db import init_db
from taskboard.core import get_settings
from taskboard.api.v1 import api_router
from taskboard.core.middleware import RequestLoggingMiddleware
from taskboard.logs.server_log import api_logger

# Get application settings
settings = get_settings()


# Lifespan event handler
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    try:
        alembic_cfg = Config(os.path.join(Path(__file__).parent.parent, "alembic.ini"))

        # env.py runs its own event loop, so migrate from a worker thread
        await asyncio.to_thread(command.upgrade, alembic_cfg, "head")

        await init_db()
        api_logger.info("Database migrations applied and initialized successfully")
    except Exception as e:
        api_logger.error(f"Error applying migrations: {e}")
        raise

    yield


# Initialize FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Task board API: ordered columns, drag-and-drop moves and workflow rules",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# Include API router
app.include_router(api_router)


@app.get("/")
async def root(request: Request):
    """Health check endpoint"""
    api_logger.info(f"Received health check request: {request.method} {request.url}")
    return {"message": f"{settings.PROJECT_NAME} is running"}


if __name__ == "__main__":
    import uvicorn
    print("\033[1;36m" + "=" * 50 + "\033[0m")  # Cyan
    print("\033[1;36m" + "  Starting task board API server" + "\033[0m")  # Cyan
    print("\033[1;36m" + "=" * 50 + "\033[0m")  # Cyan

    api_logger.info("Server starting on http://0.0.0.0:8000")

    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
