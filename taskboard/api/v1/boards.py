from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.api.v1.projects import get_project_or_404
from taskboard.engine.board_model import BoardModel
from taskboard.services.board_service import BoardService
from taskboard.services.task_service import TaskService
from taskboard.services.websocket_service import notify_board_changed
from taskboard.schemas.board import (
    BoardCreate,
    BoardConfigUpdate,
    BoardList,
    BoardRead,
    BoardView,
    ColumnView,
)
from taskboard.schemas.task import TaskRead
from taskboard.logs import api_logger

router = APIRouter(tags=["boards"])


async def get_board_or_404(board_id: str, db: AsyncSession):
    """Board row or a 404"""
    board = await BoardService.get_by_id(db, board_id)
    if not board:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Board not found"
        )
    return board


@router.post("/projects/{project_id}/boards", response_model=BoardRead, status_code=status.HTTP_201_CREATED)
async def create_board(
    project_id: str,
    board_data: BoardCreate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Create a board; without a config it starts with To Do, In Progress and Done"""
    await get_project_or_404(project_id, db)
    return await BoardService.create(
        db=db,
        project_id=project_id,
        name=board_data.name,
        type=board_data.type,
        description=board_data.description,
        config=board_data.config,
        created_by=user_id
    )


@router.get("/projects/{project_id}/boards", response_model=BoardList)
async def read_project_boards(
    project_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Get all boards of a project"""
    await get_project_or_404(project_id, db)
    boards = await BoardService.get_by_project(db, project_id)
    return {"boards": boards}


@router.get("/boards/{board_id}", response_model=BoardView)
async def read_board(
    board_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Board with its columns in order, each holding its ordered tasks"""
    board = BoardRead.model_validate(await get_board_or_404(board_id, db))
    tasks = await TaskService.get_by_board(db, board_id)

    model = BoardModel(board.columns)
    model.load(TaskRead.model_validate(task) for task in tasks)

    return BoardView(
        **board.model_dump(),
        column_views=[
            ColumnView(**column.model_dump(), tasks=model.tasks_in(column.id))
            for column in board.columns
        ],
        unmapped_tasks=model.unmapped,
    )


@router.put("/boards/{board_id}/config", response_model=BoardRead)
async def update_board_config(
    board_id: str,
    config_update: BoardConfigUpdate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Replace the column layout of a board"""
    await get_board_or_404(board_id, db)
    board = await BoardService.update_config(db, board_id, config_update.config)
    api_logger.info(f"Board {board_id}: columns set to {[c.id for c in config_update.config.columns]} by user {user_id}")
    await notify_board_changed(board_id)
    return board


@router.delete("/boards/{board_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_board(
    board_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Delete a board with its tasks and workflow"""
    await get_board_or_404(board_id, db)
    await BoardService.delete(db, board_id)
    await notify_board_changed(board_id)
