"""Workflow rule catalog and transition predicate.

Rules match column ids: a rule from "todo" to "in_progress" governs moves
between the columns with those ids, whatever their display names are.
"""
import enum
import uuid
from typing import Callable, Dict, Iterable, List, Optional, Set

from pydantic import BaseModel

from taskboard.schemas.task import TaskRead
from taskboard.schemas.workflow import WorkflowRuleRead, WorkflowRuleWrite

# Lowest to highest; unknown roles only satisfy an identical requirement
ROLE_LADDER = ["viewer", "member", "admin", "owner"]


class RejectionReason(str, enum.Enum):
    NO_MATCHING_RULE = "no_matching_rule"
    ROLE_REQUIRED = "role_required"
    CONDITION_UNMET = "condition_unmet"
    WIP_LIMIT_REACHED = "wip_limit_reached"


class TransitionContext(BaseModel):
    """Who is moving what"""
    role: Optional[str] = None
    task: Optional[TaskRead] = None
    satisfied_conditions: Set[str] = set()


class TransitionDecision(BaseModel):
    allowed: bool
    reason: Optional[RejectionReason] = None
    rule_id: Optional[str] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


def _normalize(condition: str) -> str:
    return " ".join(condition.lower().replace("_", " ").split())


def _is_assigned(task: TaskRead) -> bool:
    return bool(task.assignee_id or task.assigned_to)


# Conditions the engine can check on the task itself
CONDITION_CHECKS: Dict[str, Callable[[TaskRead], bool]] = {
    "task must be assigned": _is_assigned,
    "assigned": _is_assigned,
    "has estimate": lambda task: task.estimate_hours is not None,
    "has story points": lambda task: task.story_points is not None,
    "has due date": lambda task: task.due_date is not None,
}


def role_satisfies(role: Optional[str], required: Optional[str]) -> bool:
    if not required:
        return True
    if not role:
        return False
    if role == required:
        return True
    if role in ROLE_LADDER and required in ROLE_LADDER:
        return ROLE_LADDER.index(role) >= ROLE_LADDER.index(required)
    return False


def condition_met(condition: str, context: TransitionContext) -> bool:
    key = _normalize(condition)
    if key in {_normalize(c) for c in context.satisfied_conditions}:
        return True
    check = CONDITION_CHECKS.get(key)
    return check is not None and context.task is not None and check(context.task)


def _evaluate_rule(rule: WorkflowRuleRead, context: TransitionContext) -> TransitionDecision:
    if not role_satisfies(context.role, rule.required_role):
        return TransitionDecision(
            allowed=False,
            reason=RejectionReason.ROLE_REQUIRED,
            rule_id=rule.id,
            detail=f"Rule '{rule.name}' requires role '{rule.required_role}'",
        )
    for condition in rule.conditions:
        if not condition_met(condition, context):
            return TransitionDecision(
                allowed=False,
                reason=RejectionReason.CONDITION_UNMET,
                rule_id=rule.id,
                detail=f"Rule '{rule.name}' condition not met: {condition}",
            )
    return TransitionDecision(allowed=True, rule_id=rule.id)


def is_transition_allowed(
    rules: Iterable[WorkflowRuleRead],
    from_status: str,
    to_status: str,
    context: Optional[TransitionContext] = None,
) -> TransitionDecision:
    """Decide whether a task may change from ``from_status`` to ``to_status``.

    Reordering inside a column and boards without any rule are unrestricted.
    Otherwise at least one rule for the exact pair must have its role and all
    of its conditions satisfied; the first failing rule explains a rejection.
    """
    if from_status == to_status:
        return TransitionDecision(allowed=True)

    rules = list(rules)
    if not rules:
        return TransitionDecision(allowed=True)

    context = context or TransitionContext()
    candidates = [r for r in rules if r.from_status == from_status and r.to_status == to_status]
    if not candidates:
        return TransitionDecision(
            allowed=False,
            reason=RejectionReason.NO_MATCHING_RULE,
            detail=f"No workflow rule allows '{from_status}' -> '{to_status}'",
        )

    first_rejection = None
    for rule in candidates:
        decision = _evaluate_rule(rule, context)
        if decision.allowed:
            return decision
        first_rejection = first_rejection or decision
    return first_rejection


class RuleCatalog:
    """In-memory rule catalog.

    Holds only rules; nothing here can reach a task or a column.
    """

    def __init__(self, rules: Optional[Iterable[WorkflowRuleRead]] = None):
        self._rules: Dict[str, WorkflowRuleRead] = {}
        for rule in rules or []:
            self._rules[rule.id] = rule

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(list(self._rules.values()))

    def get(self, rule_id: str) -> Optional[WorkflowRuleRead]:
        return self._rules.get(rule_id)

    def list(self) -> List[WorkflowRuleRead]:
        return list(self._rules.values())

    def create_or_update(self, rule: WorkflowRuleWrite) -> WorkflowRuleRead:
        fields = rule.model_dump(exclude_unset=True, exclude_none=True, exclude={"id"})
        existing = self._rules.get(rule.id) if rule.id else None
        if existing is not None:
            stored = existing.model_copy(update=fields)
        else:
            stored = WorkflowRuleRead(id=rule.id or uuid.uuid4().hex, **fields)
        self._rules[stored.id] = stored
        return stored

    def delete(self, rule_id: str) -> bool:
        return self._rules.pop(rule_id, None) is not None

    def replace_all(self, rules: Iterable[WorkflowRuleRead]) -> None:
        self._rules = {rule.id: rule for rule in rules}

    def is_transition_allowed(
        self,
        from_status: str,
        to_status: str,
        context: Optional[TransitionContext] = None,
    ) -> TransitionDecision:
        return is_transition_allowed(self._rules.values(), from_status, to_status, context)
