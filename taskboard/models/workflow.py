import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, JSON

from taskboard.core import utcnow
from taskboard.db.base import Base


class WorkflowStatus(Base):
    """Named status documented for a board's workflow"""

    __tablename__ = "workflow_statuses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String(16), nullable=False, default="todo")  # todo | in_progress | done | blocked
    color = Column(String(7), nullable=False, default="#64748b")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class WorkflowRule(Base):
    """Transition rule between two column ids.

    No foreign key ties from_status/to_status to the board config; they are
    plain strings matched against column ids.
    """

    __tablename__ = "workflow_rules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    board_id = Column(String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    from_status = Column(String, nullable=False)
    to_status = Column(String, nullable=False)
    conditions = Column(JSON, nullable=False, default=list)
    validators = Column(JSON, nullable=False, default=list)
    post_actions = Column(JSON, nullable=False, default=list)
    required_role = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
