from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, field_validator

TaskType = Literal["task", "bug", "story", "epic"]
TaskPriority = Literal["low", "medium", "high", "critical"]


def _naive_utc(value):
    if isinstance(value, str) and value.endswith('Z'):
        return datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


class TaskBase(BaseModel):
    """Fields a user can set on a task"""
    title: str
    description: Optional[str] = None
    type: TaskType = "task"
    priority: TaskPriority = "medium"
    assignee_id: Optional[str] = None
    assigned_to: List[str] = []
    due_date: Optional[datetime] = None
    labels: List[str] = []
    story_points: Optional[int] = None
    estimate_hours: Optional[float] = None
    actual_hours: float = 0

    @field_validator('due_date', mode='before')
    @classmethod
    def parse_due_date(cls, value):
        return _naive_utc(value)


class TaskCreate(TaskBase):
    """Schema for task creation.

    The task goes to the bottom of ``status`` (the first column by default);
    placing it elsewhere is a move.
    """
    status: Optional[str] = None


class TaskUpdate(BaseModel):
    """Schema for a direct field edit (not a move)"""
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[TaskType] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None
    assigned_to: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    labels: Optional[List[str]] = None
    story_points: Optional[int] = None
    estimate_hours: Optional[float] = None
    actual_hours: Optional[float] = None

    @field_validator('due_date', mode='before')
    @classmethod
    def parse_due_date(cls, value):
        return _naive_utc(value)


class TaskRead(TaskBase):
    """Schema for task representation"""
    id: str
    board_id: str
    project_id: str
    status: str
    position: int = 0
    rank: str = ""
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class TaskList(BaseModel):
    """Schema for list of tasks"""
    tasks: List[TaskRead]


class TaskMove(BaseModel):
    """Schema for a drag-and-drop move"""
    column_id: str
    index: int
    role: Optional[str] = None
    satisfied_conditions: List[str] = []


class TaskMoveResponse(BaseModel):
    """Outcome of a move"""
    task: TaskRead
    noop: bool = False
    from_column_id: str
    to_column_id: str
    rebalanced: dict[str, str] = {}
