from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.models.board import BoardType
from taskboard.schemas.board import BoardConfig, BoardRead
from taskboard.schemas.task import TaskCreate, TaskRead
from taskboard.schemas.workflow import WorkflowRuleRead
from taskboard.services.board_service import BoardService
from taskboard.services.task_service import TaskService
from taskboard.services.websocket_service import ConnectionManager, manager
from taskboard.services.workflow_service import WorkflowService
from taskboard.logs import debug_logger


class TaskNotPersistedError(Exception):
    """The store could not write a task"""


class SqlTaskStore:
    """Task store over one database session.

    Every successful write publishes ``board_changed`` for the board it
    touched.
    """

    def __init__(self, db: AsyncSession, hub: Optional[ConnectionManager] = None):
        self.db = db
        self.hub = hub or manager

    async def _changed(self, board_id: str):
        await self.hub.board_changed(board_id)

    async def list_tasks(self, board_id: str) -> List[TaskRead]:
        tasks = await TaskService.get_by_board(self.db, board_id)
        return [TaskRead.model_validate(task) for task in tasks]

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> TaskRead:
        task = await TaskService.update_fields(self.db, task_id, fields)
        if task is None:
            raise TaskNotPersistedError(f"Task {task_id} no longer exists")
        saved = TaskRead.model_validate(task)
        await self._changed(saved.board_id)
        return saved

    async def create_task(self, fields: Dict[str, Any]) -> TaskRead:
        board = await BoardService.get_by_id(self.db, fields["board_id"])
        if board is None:
            raise TaskNotPersistedError(f"Board {fields['board_id']} not found")
        data = TaskCreate.model_validate({k: v for k, v in fields.items() if k != "board_id"})
        task = await TaskService.create(self.db, board, data, created_by=fields.get("created_by"))
        saved = TaskRead.model_validate(task)
        await self._changed(saved.board_id)
        return saved

    async def create_board(self, fields: Dict[str, Any]) -> BoardRead:
        config = fields.get("config")
        board = await BoardService.create(
            self.db,
            project_id=fields["project_id"],
            name=fields["name"],
            type=BoardType(fields.get("type", BoardType.KANBAN.value)),
            description=fields.get("description"),
            config=BoardConfig.model_validate(config) if config else None,
            created_by=fields.get("created_by"),
        )
        debug_logger.debug(f"Store created board {board.id}")
        return BoardRead.model_validate(board)

    def subscribe_to_board_changes(self, board_id: str, on_change: Callable[[], Any]) -> Callable[[], None]:
        return self.hub.add_listener(board_id, on_change)

    async def list_workflow_rules(self, board_id: str) -> List[WorkflowRuleRead]:
        rules = await WorkflowService.get_rules(self.db, board_id)
        return [WorkflowRuleRead.model_validate(rule) for rule in rules]
