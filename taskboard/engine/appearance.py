"""Appearance settings turned into a style description.

Nothing here touches a document: ``build_style`` returns what a rendering
layer should apply to its root element. Every entry depends on exactly one
setting, so entries can be applied in any order.
"""
import colorsys
from typing import Any, Dict, Optional

from pydantic import ValidationError

from taskboard.schemas.settings import HEX_COLOR, AppearanceSettings, StyleDescription

FONT_SIZES = {
    "small": "14px",
    "medium": "16px",
    "large": "18px",
}

FONT_FAMILIES = {
    "sans-serif": "var(--font-sans, sans-serif)",
    "serif": "serif",
    "mono": "monospace",
}


def hex_to_hsl(value: str) -> str:
    """Convert ``#rrggbb`` (or ``#rgb``) to the ``"H S% L%"`` form used in CSS variables"""
    match = HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Not a hex colour: {value!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(d * 2 for d in digits)
    r, g, b = (int(digits[i:i + 2], 16) / 255 for i in (0, 2, 4))

    h, l, s = colorsys.rgb_to_hls(r, g, b)
    return f"{round(h * 360) % 360} {round(s * 100)}% {round(l * 100)}%"


def parse_appearance(settings: Dict[str, Any]) -> AppearanceSettings:
    """Read the appearance keys of a flat settings object.

    Values that do not validate fall back to their defaults instead of
    failing the whole object.
    """
    # Error locations may name the alias or the field; either can be the key
    names = {}
    for name, info in AppearanceSettings.model_fields.items():
        names[name] = {name, info.alias or name}
        names[info.alias or name] = names[name]

    data = dict(settings or {})
    while True:
        try:
            return AppearanceSettings.model_validate(data)
        except ValidationError as e:
            invalid = set()
            for error in e.errors():
                if error["loc"]:
                    invalid |= names.get(error["loc"][0], {error["loc"][0]})
            invalid &= set(data)
            if not invalid:
                raise
            for key in invalid:
                data.pop(key)


def font_stack(font_family: str) -> str:
    if font_family in FONT_FAMILIES:
        return FONT_FAMILIES[font_family]
    return f'"{font_family}", sans-serif'


def build_style(settings: AppearanceSettings, prefers_dark: bool = False) -> StyleDescription:
    dark = settings.theme == "dark" or (settings.theme == "system" and prefers_dark)

    css_variables = {
        "--primary": hex_to_hsl(settings.primary_color),
        "--base-font-size": FONT_SIZES[settings.font_size],
    }
    if settings.accent_color:
        css_variables["--accent"] = hex_to_hsl(settings.accent_color)
    if settings.font_family:
        css_variables["--font-family"] = font_stack(settings.font_family)
    if not settings.animations_enabled:
        css_variables["--animation-duration"] = "0s"

    classes = ["dark" if dark else "light", f"density-{settings.ui_density}"]

    return StyleDescription(
        css_variables=css_variables,
        classes=classes,
        data_attributes={
            "theme": settings.theme,
            "density": settings.ui_density,
            "animate": "on" if settings.animations_enabled else "off",
        },
    )


def style_for(settings: Optional[Dict[str, Any]], prefers_dark: bool = False) -> StyleDescription:
    return build_style(parse_appearance(settings or {}), prefers_dark=prefers_dark)
