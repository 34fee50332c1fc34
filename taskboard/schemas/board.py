from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from taskboard.models.board import BoardType
from taskboard.schemas.task import TaskRead


class ColumnConfig(BaseModel):
    """One workflow stage of a board; its id doubles as a task status"""
    id: str
    name: str
    color: Optional[str] = None
    wip_limit: Optional[int] = Field(default=None, alias="wipLimit", ge=1)

    class Config:
        populate_by_name = True


DEFAULT_COLUMNS = [
    ColumnConfig(id="todo", name="To Do"),
    ColumnConfig(id="in_progress", name="In Progress"),
    ColumnConfig(id="done", name="Done"),
]


class BoardConfig(BaseModel):
    """Column layout of a board"""
    columns: List[ColumnConfig] = Field(default_factory=lambda: [c.model_copy() for c in DEFAULT_COLUMNS])

    @field_validator("columns")
    @classmethod
    def check_columns(cls, columns: List[ColumnConfig]) -> List[ColumnConfig]:
        if not columns:
            raise ValueError("A board needs at least one column")
        seen = set()
        for column in columns:
            if column.id in seen:
                raise ValueError(f"Duplicate column id '{column.id}'")
            seen.add(column.id)
        return columns


class BoardCreate(BaseModel):
    """Schema for board creation"""
    name: str
    type: BoardType = BoardType.KANBAN
    description: Optional[str] = None
    config: Optional[BoardConfig] = None


class BoardConfigUpdate(BaseModel):
    """Schema for replacing the column layout"""
    config: BoardConfig


class BoardRead(BaseModel):
    """Schema for board representation"""
    id: str
    project_id: str
    name: str
    type: BoardType
    description: Optional[str] = None
    config: BoardConfig
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def columns(self) -> List[ColumnConfig]:
        return self.config.columns


class BoardList(BaseModel):
    """Schema for list of boards"""
    boards: List[BoardRead]


class ColumnView(ColumnConfig):
    """Column with its ordered tasks"""
    tasks: List[TaskRead] = []


class BoardView(BoardRead):
    """Board with columns in display order and tasks whose status has no column"""
    column_views: List[ColumnView] = []
    unmapped_tasks: List[TaskRead] = []
