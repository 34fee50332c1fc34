from datetime import datetime, timezone

from taskboard.core.config import Settings, get_settings


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP WITHOUT TIME ZONE columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["Settings", "get_settings", "utcnow"]
