"""Shared fixtures: in-repo import paths, bundled test fonts, and avatars."""

from __future__ import annotations

import sys
from functools import lru_cache
from io import BytesIO
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for _path in (
    ROOT / "packages" / "renderer",
    ROOT / "packages" / "core",
    ROOT / "apps" / "cli",
):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

import matplotlib
from PIL import Image

from makequote_renderer import FontResource, load_font

FONT_DIR = Path(matplotlib.get_data_path()) / "fonts" / "ttf"
REGULAR_FONT = FONT_DIR / "DejaVuSans.ttf"
BOLD_FONT = FONT_DIR / "DejaVuSans-Bold.ttf"
LIGHT_FONT = FONT_DIR / "DejaVuSans-Oblique.ttf"

CJK_FONT_CANDIDATES = (
    Path("/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc"),
    Path("/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc"),
    Path("/usr/share/fonts/truetype/wqy/wqy-zenhei.ttc"),
)


@lru_cache(maxsize=1)
def load_test_font() -> FontResource:
    return load_font(
        REGULAR_FONT.read_bytes(),
        bold=BOLD_FONT.read_bytes(),
        light=LIGHT_FONT.read_bytes(),
    )


def cjk_font_path() -> Path | None:
    for candidate in CJK_FONT_CANDIDATES:
        if candidate.is_file():
            return candidate
    return None


def avatar_image(size: tuple[int, int] = (80, 60), color: tuple[int, int, int] = (200, 30, 30)) -> Image.Image:
    return Image.new("RGB", size, color)


def avatar_png(size: tuple[int, int] = (80, 60), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    buf = BytesIO()
    avatar_image(size, color).save(buf, format="PNG")
    return buf.getvalue()
