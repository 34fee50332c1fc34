from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete

from taskboard.core import utcnow
from taskboard.core.exceptions import UnknownColumnError
from taskboard.engine.ranking import key_between
from taskboard.models.board import Board
from taskboard.models.task import Task
from taskboard.schemas.board import BoardConfig
from taskboard.schemas.task import TaskCreate, TaskUpdate
from taskboard.logs import debug_logger, log_function

# Columns a move or a direct edit may write
WRITABLE_FIELDS = {
    "status", "position", "rank", "title", "description", "type", "priority",
    "assignee_id", "assigned_to", "due_date", "labels", "story_points",
    "estimate_hours", "actual_hours", "updated_at", "updated_by",
}
REQUIRED_FIELDS = ("title", "type", "priority", "assigned_to", "labels", "actual_hours")


class TaskService:
    """CRUD operations service for Task model"""

    @staticmethod
    async def get_by_id(db: AsyncSession, task_id: str, board_id: Optional[str] = None) -> Optional[Task]:
        """Get a task by ID, optionally only if it belongs to ``board_id``"""
        query = select(Task).where(Task.id == task_id)
        if board_id is not None:
            query = query.where(Task.board_id == board_id)
        result = await db.execute(query)
        return result.scalars().first()

    @staticmethod
    async def get_by_board(db: AsyncSession, board_id: str) -> List[Task]:
        """All tasks of a board.

        Rows come back ordered, but callers building columns sort again and
        must not rely on it.
        """
        query = (
            select(Task)
            .where(Task.board_id == board_id)
            .order_by(Task.status, Task.rank, Task.position, Task.created_at, Task.id)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    @log_function()
    async def create(
        db: AsyncSession,
        board: Board,
        data: TaskCreate,
        created_by: Optional[str] = None
    ) -> Task:
        """Create a task at the bottom of its column (the first column by default)"""
        columns = BoardConfig.model_validate(board.config).columns
        status = data.status or columns[0].id
        if status not in {column.id for column in columns}:
            raise UnknownColumnError(status)

        result = await db.execute(
            select(Task.rank).where(Task.board_id == board.id, Task.status == status)
        )
        ranks = list(result.scalars().all())
        # Keys compare by code point; SQL MAX would follow the column collation
        last_rank = max((rank for rank in ranks if rank), default=None)
        rank = key_between(last_rank, None)

        fields = data.model_dump(exclude={"status"})
        task = Task(
            board_id=board.id,
            project_id=board.project_id,
            status=status,
            position=len(ranks),
            rank=rank,
            created_by=created_by,
            updated_by=created_by,
            **fields
        )
        db.add(task)
        await db.commit()
        await db.refresh(task)

        debug_logger.info(f"Created task {task.id} in column '{status}' of board {board.id}")
        return task

    @staticmethod
    @log_function()
    async def update_fields(db: AsyncSession, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Partial update; only the given fields are written"""
        update_data = {key: value for key, value in fields.items() if key in WRITABLE_FIELDS}
        ignored = set(fields) - set(update_data)
        if ignored:
            debug_logger.warning(f"Ignoring non-writable task fields {sorted(ignored)}")

        task = await TaskService.get_by_id(db, task_id)
        if not task:
            debug_logger.warning(f"Task {task_id} not found when updating")
            return None

        if update_data:
            update_data.setdefault("updated_at", utcnow())
            debug_logger.debug(f"Updating task {task_id}: {update_data}")
            await db.execute(update(Task).where(Task.id == task_id).values(**update_data))
            await db.commit()
            await db.refresh(task)
        return task

    @staticmethod
    async def update(
        db: AsyncSession,
        task_id: str,
        data: TaskUpdate,
        updated_by: Optional[str] = None
    ) -> Optional[Task]:
        """Edit task details; placement only changes through a move"""
        fields = data.model_dump(exclude_unset=True)
        # Explicit nulls only clear the optional columns
        for key in REQUIRED_FIELDS:
            if fields.get(key, ...) is None:
                fields.pop(key)
        if updated_by:
            fields["updated_by"] = updated_by
        return await TaskService.update_fields(db, task_id, fields)

    @staticmethod
    @log_function()
    async def delete(db: AsyncSession, task_id: str) -> bool:
        task = await TaskService.get_by_id(db, task_id)
        if not task:
            return False

        await db.execute(delete(Task).where(Task.id == task_id))
        await db.commit()
        return True
