"""Errors raised by the board engine.

Routers translate these into HTTP responses; the engine itself never knows
about HTTP.
"""
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from taskboard.engine.workflow import TransitionDecision


class TaskboardError(Exception):
    """Base class for board engine errors"""


class TaskNotFoundError(TaskboardError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is not on this board")


class UnknownColumnError(TaskboardError):
    def __init__(self, column_id: str):
        self.column_id = column_id
        super().__init__(f"Column {column_id} is not configured on this board")


class InvalidMoveError(TaskboardError):
    """Raised for a destination index that can never be valid"""


class TransitionRejectedError(TaskboardError):
    """A status change refused by the workflow rules or a column limit"""

    def __init__(self, decision: "TransitionDecision", message: Optional[str] = None):
        self.decision = decision
        super().__init__(message or decision.detail or f"Transition rejected: {decision.reason}")


class WipLimitExceededError(TransitionRejectedError):
    pass


class DuplicateIdError(TaskboardError):
    """A client-chosen id already belongs to another row"""

    def __init__(self, kind: str, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{kind} id {entity_id} is already in use")
