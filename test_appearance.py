import colorsys
import re

import pytest

from taskboard.engine.appearance import build_style, hex_to_hsl, parse_appearance, style_for
from taskboard.schemas.settings import AppearanceSettings

HSL = re.compile(r"^(\d+) (\d+)% (\d+)%$")


def hsl_to_rgb(hsl: str):
    h, s, l = (int(part) for part in HSL.match(hsl).groups())
    r, g, b = colorsys.hls_to_rgb(h / 360, l / 100, s / 100)
    return round(r * 255), round(g * 255), round(b * 255)


class TestHexToHsl:
    """Tests for hex_to_hsl"""

    @pytest.mark.parametrize("value,expected", [
        ("#000000", "0 0% 0%"),
        ("#ffffff", "0 0% 100%"),
        ("#ff0000", "0 100% 50%"),
        ("#00ff00", "120 100% 50%"),
        ("#0000ff", "240 100% 50%"),
        ("#808080", "0 0% 50%"),
        ("#fff", "0 0% 100%"),
    ])
    def test_known_colours(self, value, expected):
        assert hex_to_hsl(value) == expected

    @pytest.mark.parametrize("value", [
        "#2563eb", "#10b981", "#f59e0b", "#7c3aed", "#123456", "#abcdef", "#fedcba", "#0a0b0c",
    ])
    def test_round_trip_within_rounding_tolerance(self, value):
        original = tuple(int(value[i:i + 2], 16) for i in (1, 3, 5))
        result = hsl_to_rgb(hex_to_hsl(value))
        # Whole-number H, S and L move each channel by a few units at most
        assert all(abs(a - b) <= 6 for a, b in zip(original, result))

    @pytest.mark.parametrize("value", ["", "blue", "#12345", "#gggggg", None])
    def test_invalid_input(self, value):
        with pytest.raises(ValueError):
            hex_to_hsl(value)


class TestBuildStyle:
    """Tests for build_style"""

    def test_defaults(self):
        style = build_style(AppearanceSettings())
        assert style.css_variables["--base-font-size"] == "16px"
        assert "--animation-duration" not in style.css_variables
        assert style.classes == ["light", "density-standard"]

    @pytest.mark.parametrize("theme,prefers_dark,expected", [
        ("dark", False, "dark"),
        ("light", True, "light"),
        ("system", True, "dark"),
        ("system", False, "light"),
    ])
    def test_theme(self, theme, prefers_dark, expected):
        style = build_style(AppearanceSettings(theme=theme), prefers_dark=prefers_dark)
        assert style.classes[0] == expected

    @pytest.mark.parametrize("size,expected", [("small", "14px"), ("medium", "16px"), ("large", "18px")])
    def test_font_size(self, size, expected):
        style = build_style(AppearanceSettings(fontSize=size))
        assert style.css_variables["--base-font-size"] == expected

    @pytest.mark.parametrize("family,expected", [
        ("sans-serif", "var(--font-sans, sans-serif)"),
        ("serif", "serif"),
        ("mono", "monospace"),
        ("Inter", '"Inter", sans-serif'),
    ])
    def test_font_family(self, family, expected):
        style = build_style(AppearanceSettings(fontFamily=family))
        assert style.css_variables["--font-family"] == expected

    def test_animations_off(self):
        style = build_style(AppearanceSettings(animationsEnabled=False))
        assert style.css_variables["--animation-duration"] == "0s"
        assert style.data_attributes["animate"] == "off"

    def test_density_class(self):
        style = build_style(AppearanceSettings(uiDensity="compact"))
        assert "density-compact" in style.classes

    def test_colours(self):
        style = build_style(AppearanceSettings(primaryColor="#ff0000", accentColor="#0000ff"))
        assert style.css_variables["--primary"] == "0 100% 50%"
        assert style.css_variables["--accent"] == "240 100% 50%"

    def test_entries_are_independent_of_each_other(self):
        base = {"fontFamily": "serif", "fontSize": "large", "primaryColor": "#10b981"}
        full = build_style(AppearanceSettings(**base)).css_variables
        for key, value in base.items():
            alone = build_style(AppearanceSettings(**{key: value})).css_variables
            default = build_style(AppearanceSettings()).css_variables
            changed = {k: v for k, v in alone.items() if default.get(k) != v}
            assert all(full[k] == v for k, v in changed.items())


class TestParseAppearance:
    """Tests for parse_appearance"""

    def test_reads_flat_settings_and_ignores_other_keys(self):
        settings = parse_appearance({"theme": "dark", "fontSize": "small", "emailNotifications": True})
        assert settings.theme == "dark"
        assert settings.font_size == "small"

    def test_invalid_values_fall_back_to_defaults(self):
        settings = parse_appearance({"theme": "neon", "primaryColor": "not-a-colour", "fontSize": "large"})
        assert settings.theme == "system"
        assert settings.primary_color == "#2563eb"
        assert settings.font_size == "large"

    def test_style_for_settings_object(self):
        style = style_for({"uiDensity": "comfortable", "animationsEnabled": False})
        assert "density-comfortable" in style.classes
        assert style.css_variables["--animation-duration"] == "0s"
