import re
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class SettingsUpdate(BaseModel):
    """Partial settings object merged over the stored one"""
    settings: Dict[str, Any]


class SettingsRead(BaseModel):
    user_id: str
    settings: Dict[str, Any] = {}


class AppearanceSettings(BaseModel):
    """Appearance subset of the flat user settings object"""
    theme: Literal["light", "dark", "system"] = "system"
    primary_color: str = Field(default="#2563eb", alias="primaryColor")
    accent_color: Optional[str] = Field(default=None, alias="accentColor")
    font_family: Optional[str] = Field(default=None, alias="fontFamily")
    font_size: Literal["small", "medium", "large"] = Field(default="medium", alias="fontSize")
    ui_density: Literal["compact", "standard", "comfortable"] = Field(default="standard", alias="uiDensity")
    animations_enabled: bool = Field(default=True, alias="animationsEnabled")

    @field_validator("primary_color", "accent_color")
    @classmethod
    def check_color(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not HEX_COLOR.match(value):
            raise ValueError(f"Not a hex colour: {value}")
        return value

    class Config:
        populate_by_name = True
        extra = "ignore"


class StyleDescription(BaseModel):
    """What a rendering layer has to apply to the document root"""
    css_variables: Dict[str, str] = {}
    classes: List[str] = []
    data_attributes: Dict[str, str] = {}
