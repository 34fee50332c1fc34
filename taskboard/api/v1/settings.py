from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.database import get_async_session
from taskboard.api.dependencies.auth import get_current_user_id
from taskboard.engine.appearance import build_style, parse_appearance
from taskboard.services.settings_service import SettingsService
from taskboard.schemas.settings import SettingsRead, SettingsUpdate, StyleDescription

router = APIRouter(
    prefix="/users/me",
    tags=["settings"],
)


@router.get("/settings", response_model=SettingsRead)
async def read_settings(
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Flat settings object of the current user"""
    settings = await SettingsService.get(db, user_id)
    return SettingsRead(user_id=user_id, settings=settings)


@router.put("/settings", response_model=SettingsRead)
async def update_settings(
    settings_update: SettingsUpdate,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """Merge the given keys over the stored settings"""
    settings = await SettingsService.update(db, user_id, settings_update.settings)
    return SettingsRead(user_id=user_id, settings=settings)


@router.get("/appearance", response_model=StyleDescription)
async def read_appearance(
    prefers_dark: bool = False,
    db: AsyncSession = Depends(get_async_session),
    user_id: str = Depends(get_current_user_id),
):
    """CSS variables, root classes and data attributes for the current user's appearance settings"""
    settings = await SettingsService.get(db, user_id)
    try:
        return build_style(parse_appearance(settings), prefers_dark=prefers_dark)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
