# Import all models here for Alembic to discover them
from taskboard.db.base import Base
from taskboard.models.project import Project
from taskboard.models.board import Board, BoardType
from taskboard.models.task import Task
from taskboard.models.workflow import WorkflowRule, WorkflowStatus
from taskboard.models.user_settings import UserSettings
