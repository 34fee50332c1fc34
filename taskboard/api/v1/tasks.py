from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.core import get_settings
from taskboard.core.exceptions import (
    InvalidMoveError,
    TaskNotFoundError,
    TransitionRejectedError,
    UnknownColumnError,
)
from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.api.v1.boards import get_board_or_404
from taskboard.engine.session import BoardSession
from taskboard.services.task_service import TaskService
from taskboard.services.task_store import SqlTaskStore
from taskboard.services.websocket_service import notify_board_changed
from taskboard.schemas.board import BoardRead
from taskboard.schemas.task import (
    TaskCreate,
    TaskList,
    TaskMove,
    TaskMoveResponse,
    TaskRead,
    TaskUpdate,
)
from taskboard.logs import api_logger

router = APIRouter(
    prefix="/boards/{board_id}/tasks",
    tags=["tasks"],
)


async def get_task_or_404(board_id: str, task_id: str, db: AsyncSession):
    task = await TaskService.get_by_id(db, task_id, board_id=board_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return task


@router.get("", response_model=TaskList)
async def read_tasks(
    board_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Get all tasks of a board"""
    await get_board_or_404(board_id, db)
    tasks = await TaskService.get_by_board(db, board_id)
    return {"tasks": tasks}


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    board_id: str,
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Create a task at the bottom of its column"""
    board = await get_board_or_404(board_id, db)
    try:
        task = await TaskService.create(db, board, task_data, created_by=user_id)
    except UnknownColumnError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await notify_board_changed(board_id)
    return task


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    board_id: str,
    task_id: str,
    task_data: TaskUpdate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Edit task details; use the move endpoint to change column or order"""
    await get_task_or_404(board_id, task_id, db)
    task = await TaskService.update(db, task_id, task_data, updated_by=user_id)
    await notify_board_changed(board_id)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    board_id: str,
    task_id: str,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    await get_task_or_404(board_id, task_id, db)
    await TaskService.delete(db, task_id)
    await notify_board_changed(board_id)


@router.put("/{task_id}/move", response_model=TaskMoveResponse)
async def move_task(
    board_id: str,
    task_id: str,
    task_move: TaskMove,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Move a task to ``index`` of column ``column_id``.

    The index counts positions in the destination column without the moved
    task; anything past the end appends.
    """
    board = BoardRead.model_validate(await get_board_or_404(board_id, db))
    session = BoardSession(board, SqlTaskStore(db), settings=get_settings())
    await session.load()
    if session.load_error:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to load tasks"
        )

    try:
        outcome = await session.move(
            task_id,
            task_move.column_id,
            task_move.index,
            user_id=user_id,
            role=task_move.role,
            satisfied_conditions=task_move.satisfied_conditions,
        )
    except TaskNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (UnknownColumnError, InvalidMoveError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except TransitionRejectedError as e:
        api_logger.warning(f"Move of task {task_id} to '{task_move.column_id}' rejected: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(e), "reason": e.decision.reason.value if e.decision.reason else None},
        )

    if not outcome.persisted:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to update task"
        )

    api_logger.info(
        f"Task {task_id} moved from '{outcome.from_column_id}' to '{outcome.to_column_id}' "
        f"at {task_move.index} by user {user_id}"
    )
    return TaskMoveResponse(
        task=outcome.task,
        noop=outcome.noop,
        from_column_id=outcome.from_column_id,
        to_column_id=outcome.to_column_id,
        rebalanced=outcome.rebalanced,
    )
