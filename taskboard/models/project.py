import uuid
from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship

from taskboard.core import utcnow
from taskboard.db.base import Base


class Project(Base):
    """Project owning one or more boards"""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    key = Column(String(16), nullable=False)  # Short prefix, e.g. "OPS"
    description = Column(Text, nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    boards = relationship("Board", back_populates="project", cascade="all, delete-orphan")
