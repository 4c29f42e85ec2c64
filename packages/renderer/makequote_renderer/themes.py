"""Built-in quote card themes."""

from __future__ import annotations

from .models import ThemeConfig

DEFAULT_THEME_NAME = "Classic"

THEMES: dict[str, ThemeConfig] = {
    "Classic": ThemeConfig(
        name="Classic",
        background="#000000",
        quote_color="#FFFFFF",
        username_color="#939393",
    ),
    "Sepia": ThemeConfig(
        name="Sepia",
        background="#1A140E",
        quote_color="#FFF7E8",
        username_color="#E3CFA8",
    ),
    "Midnight": ThemeConfig(
        name="Midnight",
        background="#0A0F1D",
        quote_color="#F4F7FF",
        username_color="#A9B5D1",
    ),
}


def list_themes() -> list[str]:
    return sorted(THEMES.keys())


def get_theme(name: str | None) -> ThemeConfig:
    if not name:
        return THEMES[DEFAULT_THEME_NAME]
    return THEMES.get(name, THEMES[DEFAULT_THEME_NAME])


def hex_to_rgba(value: str, alpha: int = 255) -> tuple[int, int, int, int]:
    r, g, b = (int(value[i : i + 2], 16) for i in (1, 3, 5))
    return (r, g, b, alpha)
