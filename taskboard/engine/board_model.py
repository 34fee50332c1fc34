"""In-memory partition of a board's tasks into ordered columns"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from taskboard.core import utcnow
from taskboard.core.exceptions import (
    InvalidMoveError,
    TaskNotFoundError,
    UnknownColumnError,
    WipLimitExceededError,
)
from taskboard.engine.ranking import key_between, spread_keys
from taskboard.engine.workflow import RejectionReason, TransitionDecision
from taskboard.schemas.board import ColumnConfig
from taskboard.schemas.task import TaskRead


def task_sort_key(task: TaskRead):
    """Rank first; position, creation time and id break ties between equal ranks"""
    return (task.rank, task.position, task.created_at or datetime.min, task.id)


@dataclass
class MovePlan:
    task_id: str
    from_column_id: str
    from_index: int
    to_column_id: str
    to_index: int
    rank: str = ""
    # Other tasks of the destination column that need a fresh rank
    rebalanced: Dict[str, str] = field(default_factory=dict)
    noop: bool = False


@dataclass
class PendingMove:
    """A move applied locally and not yet confirmed by the store"""
    plan: MovePlan
    previous: TaskRead
    applied: TaskRead
    source_key: Optional[str]  # None when the task came from the unmapped bucket
    source_index: int
    previous_ranks: Dict[str, str]
    version: int


class BoardModel:
    def __init__(self, columns: Iterable[ColumnConfig]):
        self._columns: Dict[str, ColumnConfig] = {column.id: column for column in columns}
        self._lists: Dict[str, List[TaskRead]] = {column_id: [] for column_id in self._columns}
        self.unmapped: List[TaskRead] = []
        self.version = 0

    @property
    def column_ids(self) -> List[str]:
        return list(self._columns)

    @property
    def columns(self) -> List[ColumnConfig]:
        return list(self._columns.values())

    def load(self, tasks: Iterable[TaskRead]) -> None:
        """Replace the whole state with ``tasks``, sorted explicitly per column"""
        lists: Dict[str, List[TaskRead]] = {column_id: [] for column_id in self._columns}
        unmapped: List[TaskRead] = []
        for task in tasks:
            lists.get(task.status, unmapped).append(task)
        for column_tasks in lists.values():
            column_tasks.sort(key=task_sort_key)
        unmapped.sort(key=task_sort_key)

        self._lists = lists
        self.unmapped = unmapped
        self.version += 1

    def tasks_in(self, column_id: str) -> List[TaskRead]:
        if column_id not in self._lists:
            raise UnknownColumnError(column_id)
        return list(self._lists[column_id])

    def task_ids_in(self, column_id: str) -> List[str]:
        return [task.id for task in self.tasks_in(column_id)]

    def all_tasks(self) -> List[TaskRead]:
        tasks = [task for column_tasks in self._lists.values() for task in column_tasks]
        return tasks + list(self.unmapped)

    def get_task(self, task_id: str) -> TaskRead:
        _, column_tasks, index = self._find(task_id)
        return column_tasks[index]

    def _find(self, task_id: str) -> Tuple[Optional[str], List[TaskRead], int]:
        for column_id, column_tasks in self._lists.items():
            for index, task in enumerate(column_tasks):
                if task.id == task_id:
                    return column_id, column_tasks, index
        for index, task in enumerate(self.unmapped):
            if task.id == task_id:
                return None, self.unmapped, index
        raise TaskNotFoundError(task_id)

    def plan_move(self, task_id: str, column_id: str, index: int, enforce_wip: bool = True) -> MovePlan:
        """Validate a move and compute where the task lands, without changing anything"""
        if column_id not in self._columns:
            raise UnknownColumnError(column_id)
        if index < 0:
            raise InvalidMoveError(f"Destination index must not be negative, got {index}")

        source_key, source_tasks, from_index = self._find(task_id)
        task = source_tasks[from_index]

        # Indexes address the destination list as it looks without the moved task
        destination = [t for t in self._lists[column_id] if t.id != task_id]
        to_index = min(index, len(destination))

        if source_key == column_id and to_index == from_index:
            return MovePlan(
                task_id=task_id,
                from_column_id=task.status,
                from_index=from_index,
                to_column_id=column_id,
                to_index=to_index,
                rank=task.rank,
                noop=True,
            )

        wip_limit = self._columns[column_id].wip_limit
        if enforce_wip and source_key != column_id and wip_limit and len(destination) >= wip_limit:
            raise WipLimitExceededError(TransitionDecision(
                allowed=False,
                reason=RejectionReason.WIP_LIMIT_REACHED,
                detail=f"Column '{self._columns[column_id].name}' has reached its WIP limit of {wip_limit}",
            ))

        before = destination[to_index - 1].rank if to_index > 0 else None
        after = destination[to_index].rank if to_index < len(destination) else None
        rebalanced: Dict[str, str] = {}
        try:
            rank = key_between(before, after)
        except ValueError:
            # Neighbours share a key or carry none: re-spread the whole column
            ordered = destination[:to_index] + [task] + destination[to_index:]
            keys = spread_keys(len(ordered))
            rebalanced = {t.id: key for t, key in zip(ordered, keys) if t.id != task_id and t.rank != key}
            rank = keys[to_index]

        return MovePlan(
            task_id=task_id,
            from_column_id=task.status,
            from_index=from_index,
            to_column_id=column_id,
            to_index=to_index,
            rank=rank,
            rebalanced=rebalanced,
        )

    def apply(self, plan: MovePlan, now: Optional[datetime] = None, user_id: Optional[str] = None) -> Optional[PendingMove]:
        """Carry out a planned move locally; returns the record needed to undo it"""
        if plan.noop:
            return None

        source_key, source_tasks, source_index = self._find(plan.task_id)
        previous = source_tasks.pop(source_index)
        applied = previous.model_copy(update={
            "status": plan.to_column_id,
            "position": plan.to_index,
            "rank": plan.rank,
            "updated_at": now or utcnow(),
            "updated_by": user_id or previous.updated_by,
        })

        destination = self._lists[plan.to_column_id]
        destination.insert(min(plan.to_index, len(destination)), applied)

        previous_ranks: Dict[str, str] = {}
        for i, task in enumerate(destination):
            if task.id in plan.rebalanced:
                previous_ranks[task.id] = task.rank
                destination[i] = task.model_copy(update={"rank": plan.rebalanced[task.id]})

        return PendingMove(
            plan=plan,
            previous=previous,
            applied=applied,
            source_key=source_key,
            source_index=source_index,
            previous_ranks=previous_ranks,
            version=self.version,
        )

    def move(
        self,
        task_id: str,
        column_id: str,
        index: int,
        now: Optional[datetime] = None,
        user_id: Optional[str] = None,
        enforce_wip: bool = True,
    ) -> Optional[PendingMove]:
        plan = self.plan_move(task_id, column_id, index, enforce_wip=enforce_wip)
        return self.apply(plan, now=now, user_id=user_id)

    def revert(self, pending: PendingMove) -> bool:
        """Replay the inverse of ``pending``.

        Does nothing (returns False) once a reload replaced the state or a
        later local change touched the moved task.
        """
        if pending.version != self.version:
            return False
        try:
            _, current_tasks, index = self._find(pending.plan.task_id)
        except TaskNotFoundError:
            return False
        if current_tasks[index] is not pending.applied:
            return False

        current_tasks.pop(index)

        destination = self._lists[pending.plan.to_column_id]
        for i, task in enumerate(destination):
            if task.id in pending.previous_ranks and task.rank == pending.plan.rebalanced[task.id]:
                destination[i] = task.model_copy(update={"rank": pending.previous_ranks[task.id]})

        source = self.unmapped if pending.source_key is None else self._lists[pending.source_key]
        source.insert(min(pending.source_index, len(source)), pending.previous)
        return True
