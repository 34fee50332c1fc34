from taskboard.db.base import Base
from taskboard.db.database import async_session_factory, get_async_session, init_db

__all__ = ["Base", "async_session_factory", "get_async_session", "init_db"]
