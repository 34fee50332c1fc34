from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from taskboard.core import utcnow
from taskboard.models.user_settings import UserSettings
from taskboard.logs import debug_logger


class SettingsService:
    """Per-user flat settings object"""

    @staticmethod
    async def get(db: AsyncSession, user_id: str) -> Dict[str, Any]:
        result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        row = result.scalars().first()
        return dict(row.settings or {}) if row else {}

    @staticmethod
    async def update(db: AsyncSession, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` over the stored settings and return the result"""
        result = await db.execute(select(UserSettings).where(UserSettings.user_id == user_id))
        row = result.scalars().first()
        if row is None:
            row = UserSettings(user_id=user_id, settings={})
            db.add(row)

        # Reassign so the JSON column is marked dirty
        row.settings = {**(row.settings or {}), **updates}
        row.updated_at = utcnow()
        await db.commit()

        debug_logger.debug(f"Settings of user {user_id} updated: {sorted(updates)}")
        return dict(row.settings)
