from taskboard.engine.board_model import BoardModel, MovePlan, PendingMove
from taskboard.engine.session import BoardSession, MoveOutcome, Notification, TaskStore
from taskboard.engine.workflow import RuleCatalog, TransitionContext, TransitionDecision, is_transition_allowed

__all__ = [
    "BoardModel",
    "MovePlan",
    "PendingMove",
    "BoardSession",
    "MoveOutcome",
    "Notification",
    "TaskStore",
    "RuleCatalog",
    "TransitionContext",
    "TransitionDecision",
    "is_transition_allowed",
]
