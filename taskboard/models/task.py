import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Float, JSON, Index
from sqlalchemy.orm import relationship

from taskboard.core import utcnow
from taskboard.db.base import Base


class Task(Base):
    """Unit of work on a board"""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_board_status_rank", "board_id", "status", "rank"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, nullable=False)  # Column id from the board config
    position = Column(Integer, nullable=False, default=0)  # Index written by the last move
    rank = Column(String(collation="C"), nullable=False, default="")  # Fractional key, compared bytewise
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(16), nullable=False, default="task")
    priority = Column(String(16), nullable=False, default="medium")
    assignee_id = Column(String, nullable=True)
    assigned_to = Column(JSON, nullable=False, default=list)
    due_date = Column(DateTime, nullable=True)
    labels = Column(JSON, nullable=False, default=list)
    story_points = Column(Integer, nullable=True)
    estimate_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=False, default=0)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    updated_by = Column(String, nullable=True)

    board = relationship("Board", back_populates="tasks")
