from sqlalchemy import Column, String, DateTime, JSON

from taskboard.core import utcnow
from taskboard.db.base import Base


class UserSettings(Base):
    """Flat key/value settings object, one row per user"""

    __tablename__ = "user_settings"

    user_id = Column(String, primary_key=True)
    settings = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
