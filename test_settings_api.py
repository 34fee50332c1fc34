import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.api.v1.settings import read_appearance, update_settings
from taskboard.models.user_settings import UserSettings
from taskboard.schemas.settings import SettingsUpdate
from taskboard.services.settings_service import SettingsService


@pytest.fixture
def mock_db():
    return AsyncMock(spec=AsyncSession)


class TestCurrentUser:
    """Tests for get_current_user_id"""

    @pytest.mark.asyncio
    async def test_header_value_is_the_user(self):
        assert await get_current_user_id("u1") == "u1"

    @pytest.mark.asyncio
    async def test_missing_header(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(None)
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


class TestSettingsEndpoints:
    """Tests for settings and appearance endpoints"""

    @pytest.mark.asyncio
    async def test_update_merges_settings(self, mock_db):
        with patch('taskboard.api.v1.settings.SettingsService.update', return_value={"theme": "dark", "fontSize": "large"}) as mock_update:
            result = await update_settings(SettingsUpdate(settings={"fontSize": "large"}), mock_db, "u1")

        mock_update.assert_awaited_once_with(mock_db, "u1", {"fontSize": "large"})
        assert result.user_id == "u1"
        assert result.settings["theme"] == "dark"

    @pytest.mark.asyncio
    async def test_appearance_from_stored_settings(self, mock_db):
        stored = {"theme": "system", "primaryColor": "#ff0000", "uiDensity": "compact", "animationsEnabled": False}
        with patch('taskboard.api.v1.settings.SettingsService.get', return_value=stored):
            style = await read_appearance(True, mock_db, "u1")

        assert style.classes == ["dark", "density-compact"]
        assert style.css_variables["--primary"] == "0 100% 50%"
        assert style.css_variables["--animation-duration"] == "0s"


class TestSettingsService:
    """Tests for SettingsService.update"""

    @pytest.mark.asyncio
    async def test_merges_over_existing_row(self, mock_db):
        row = UserSettings(user_id="u1", settings={"theme": "dark", "fontSize": "small"})
        result = MagicMock()
        result.scalars.return_value.first.return_value = row
        mock_db.execute.return_value = result

        merged = await SettingsService.update(mock_db, "u1", {"fontSize": "large"})

        assert merged == {"theme": "dark", "fontSize": "large"}
        assert row.settings == merged
        mock_db.add.assert_not_called()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_creates_row_for_new_user(self, mock_db):
        result = MagicMock()
        result.scalars.return_value.first.return_value = None
        mock_db.execute.return_value = result

        merged = await SettingsService.update(mock_db, "u2", {"theme": "light"})

        assert merged == {"theme": "light"}
        mock_db.add.assert_called_once()
