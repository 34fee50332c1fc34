"""Optimistic board session: local moves first, persistence second"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Union

from taskboard.core import Settings, get_settings, utcnow
from taskboard.core.exceptions import TransitionRejectedError
from taskboard.engine.board_model import BoardModel, PendingMove
from taskboard.engine.workflow import RuleCatalog, TransitionContext
from taskboard.logs import debug_logger
from taskboard.schemas.board import BoardRead
from taskboard.schemas.task import TaskRead
from taskboard.schemas.workflow import WorkflowRuleRead

ChangeCallback = Callable[[], Union[None, Awaitable[None]]]


class TaskStore(Protocol):
    """Persistence collaborator of a board session"""

    async def list_tasks(self, board_id: str) -> List[TaskRead]:
        ...

    async def update_task(self, task_id: str, fields: Dict[str, Any]) -> TaskRead:
        ...

    async def create_task(self, fields: Dict[str, Any]) -> TaskRead:
        ...

    async def create_board(self, fields: Dict[str, Any]) -> BoardRead:
        ...

    def subscribe_to_board_changes(self, board_id: str, on_change: ChangeCallback) -> Callable[[], None]:
        ...

    async def list_workflow_rules(self, board_id: str) -> List[WorkflowRuleRead]:
        ...


@dataclass
class Notification:
    level: str  # "success" or "error"
    title: str
    message: str


Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    if notification.level == "error":
        debug_logger.error(f"{notification.title}: {notification.message}")
    else:
        debug_logger.info(f"{notification.title}: {notification.message}")


@dataclass
class MoveOutcome:
    task: TaskRead
    from_column_id: str
    to_column_id: str
    noop: bool = False
    persisted: bool = True
    rolled_back: bool = False
    rebalanced: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None


class BoardSession:
    """One viewer's working copy of a board.

    Moves are applied to the local model before the store confirms them.
    A failed write raises exactly one error notification and, unless
    ROLLBACK_ON_MOVE_FAILURE is off, restores the previous placement.
    """

    def __init__(
        self,
        board: BoardRead,
        store: TaskStore,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.board = board
        self.store = store
        self.settings = settings or get_settings()
        self.notify = notifier or log_notification
        self.clock = clock
        self.model = BoardModel(board.columns)
        self.rules = RuleCatalog()
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None
        # Set when the last load could not read the store
        self.load_error: Optional[str] = None

    @property
    def board_id(self) -> str:
        return self.board.id

    async def load(self) -> BoardModel:
        try:
            tasks = await self.store.list_tasks(self.board_id)
            rules = await self.store.list_workflow_rules(self.board_id)
            self.load_error = None
        except Exception as e:
            debug_logger.log_exception(f"Loading board {self.board_id}")
            self.notify(Notification("error", "Error", "Failed to load tasks"))
            self.load_error = str(e)
            tasks, rules = [], []

        self.rules.replace_all(rules)
        self.model.load(tasks)
        debug_logger.debug(f"Board {self.board_id} loaded with {len(tasks)} tasks (version {self.model.version})")
        return self.model

    def check_transition(
        self,
        task: TaskRead,
        to_column_id: str,
        role: Optional[str] = None,
        satisfied_conditions: Iterable[str] = (),
    ) -> None:
        if not self.settings.ENFORCE_WORKFLOW_RULES:
            return
        context = TransitionContext(role=role, task=task, satisfied_conditions=set(satisfied_conditions))
        decision = self.rules.is_transition_allowed(task.status, to_column_id, context)
        if not decision:
            raise TransitionRejectedError(decision)

    async def move(
        self,
        task_id: str,
        column_id: str,
        index: int,
        user_id: Optional[str] = None,
        role: Optional[str] = None,
        satisfied_conditions: Iterable[str] = (),
    ) -> MoveOutcome:
        """Move a task and persist it.

        Validation and workflow errors raise before anything changes. Store
        failures never raise: they are reported through the notifier and the
        outcome has ``persisted=False``.
        """
        plan = self.model.plan_move(task_id, column_id, index, enforce_wip=self.settings.ENFORCE_WIP_LIMITS)
        task = self.model.get_task(task_id)
        if plan.noop:
            return MoveOutcome(task=task, from_column_id=plan.from_column_id, to_column_id=column_id, noop=True)

        self.check_transition(task, column_id, role=role, satisfied_conditions=satisfied_conditions)

        pending = self.model.apply(plan, now=self.clock(), user_id=user_id)
        applied = pending.applied
        fields = {
            "status": applied.status,
            "position": applied.position,
            "rank": applied.rank,
            "updated_at": applied.updated_at,
            "updated_by": applied.updated_by,
        }

        async with self._task_lock(task_id):
            try:
                saved = await self.store.update_task(task_id, fields)
            except Exception as e:
                return self._move_failed(pending, e)

            try:
                for neighbour_id, rank in plan.rebalanced.items():
                    await self.store.update_task(neighbour_id, {"rank": rank})
            except Exception as e:
                # The moved task itself is stored; the next move re-spreads the column
                debug_logger.log_exception(f"Re-ranking column {column_id}")
                self.notify(Notification("error", "Error", "Failed to update task order"))
                return MoveOutcome(
                    task=saved,
                    from_column_id=plan.from_column_id,
                    to_column_id=column_id,
                    rebalanced=plan.rebalanced,
                    error=str(e),
                )

        self.notify(Notification("success", "Task moved", f"Task moved to {self._column_name(column_id)}"))
        return MoveOutcome(
            task=saved,
            from_column_id=plan.from_column_id,
            to_column_id=column_id,
            rebalanced=plan.rebalanced,
        )

    @asynccontextmanager
    async def _task_lock(self, task_id: str):
        """Serialise writes for one task; the lock is dropped once nobody holds or awaits it"""
        lock = self._locks.setdefault(task_id, asyncio.Lock())
        self._lock_users[task_id] = self._lock_users.get(task_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[task_id] -= 1
            if not self._lock_users[task_id]:
                del self._lock_users[task_id]
                del self._locks[task_id]

    def _move_failed(self, pending: PendingMove, error: Exception) -> MoveOutcome:
        debug_logger.log_exception(f"Persisting move of task {pending.plan.task_id}")
        self.notify(Notification("error", "Error", "Failed to update task"))

        rolled_back = False
        if self.settings.ROLLBACK_ON_MOVE_FAILURE:
            rolled_back = self.model.revert(pending)
            if not rolled_back:
                debug_logger.warning(f"Move of task {pending.plan.task_id} not rolled back: state changed since")

        return MoveOutcome(
            task=pending.previous if rolled_back else pending.applied,
            from_column_id=pending.plan.from_column_id,
            to_column_id=pending.plan.to_column_id,
            persisted=False,
            rolled_back=rolled_back,
            error=str(error),
        )

    def _column_name(self, column_id: str) -> str:
        for column in self.model.columns:
            if column.id == column_id:
                return column.name
        return column_id

    async def _on_board_changed(self) -> None:
        await self.load()

    def watch(self) -> None:
        """Reload the whole board on every change notification"""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe_to_board_changes(self.board_id, self._on_board_changed)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
