import enum
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum, JSON
from sqlalchemy.orm import relationship

from taskboard.core import utcnow
from taskboard.db.base import Base


class BoardType(enum.Enum):
    KANBAN = "kanban"
    SCRUM = "scrum"
    TIMELINE = "timeline"
    ISSUE_TRACKER = "issue_tracker"


class Board(Base):
    """A workflow view of a project.

    Columns are not rows of their own: they live in ``config["columns"]`` as
    ``{"id", "name", "color", "wipLimit"}`` objects, and their array order is
    the left-to-right order of the board.
    """

    __tablename__ = "boards"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(BoardType, values_callable=lambda e: [m.value for m in e]), nullable=False, default=BoardType.KANBAN)
    description = Column(Text, nullable=True)
    config = Column(JSON, nullable=False, default=dict)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    project = relationship("Project", back_populates="boards")

    tasks = relationship("Task", back_populates="board", cascade="all, delete-orphan")
