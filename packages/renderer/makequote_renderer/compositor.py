"""Quote card composition for avatar, gradient transition, and text blocks."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .avatar import avatar_region_width, prepare_avatar
from .fonts import FontResource
from .layout import REPLACEMENT_CHAR
from .models import AvatarSource, FontVariant, LayoutResult, ThemeConfig
from .themes import get_theme, hex_to_rgba


@dataclass(frozen=True)
class CardGeometry:
    width: int
    height: int
    avatar_width: int
    text_gap: int

    @property
    def text_left(self) -> int:
        return self.avatar_width + self.text_gap

    @property
    def text_width(self) -> int:
        return max(1, self.width - self.avatar_width - 2 * self.text_gap)

    @property
    def username_top(self) -> int:
        return self.height - self.height // 4

    @property
    def quote_max_height(self) -> int:
        return self.username_top - self.text_gap

    @property
    def username_max_height(self) -> int:
        return self.height - self.username_top

    def quote_top(self, quote_height: int) -> int:
        # The quote block ends at the vertical centre unless it is too tall.
        return max(self.text_gap, self.height // 2 - quote_height)


def card_geometry(canvas_size: tuple[int, int], avatar: AvatarSource, text_gap: int = 30) -> CardGeometry:
    width, height = canvas_size
    return CardGeometry(
        width=width,
        height=height,
        avatar_width=avatar_region_width(canvas_size, avatar),
        text_gap=text_gap,
    )


def transition_overlay(avatar_width: int, height: int, color: tuple[int, int, int, int]) -> Image.Image:
    """Horizontal gradient from transparent to ``color`` a third of the avatar wide."""
    width = max(1, avatar_width // 3)
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, :, 0] = color[0]
    arr[:, :, 1] = color[1]
    arr[:, :, 2] = color[2]
    ramp = np.linspace(0, color[3], num=width) if width > 1 else np.array([color[3]])
    arr[:, :, 3] = np.rint(ramp).astype(np.uint8)[np.newaxis, :]
    return Image.fromarray(arr)


def _text_layer(
    canvas_size: tuple[int, int],
    layout: LayoutResult,
    origin_left: int,
    area_width: int,
    top: int,
    font: FontResource,
    color: tuple[int, int, int, int],
) -> Image.Image:
    mask = Image.new("L", canvas_size, 0)
    draw = ImageDraw.Draw(mask)
    fonts: dict[FontVariant, ImageFont.FreeTypeFont] = {}
    width, height = canvas_size

    for line_width, placements in layout.line_spans():
        left = origin_left + max(0, (area_width - line_width) // 2)
        for p in placements:
            x, y = left + p.x, top + p.y
            if x >= width or y >= height or x + p.advance <= 0 or y + layout.line_height <= 0:
                continue
            pil_font = fonts.get(p.variant)
            if pil_font is None:
                pil_font = fonts[p.variant] = font.truetype(layout.pixel_size, p.variant)
            draw.text((x, y), p.text, font=pil_font, fill=255, anchor="la")

    layer = Image.new("RGBA", canvas_size, color)
    alpha = np.asarray(mask, dtype=np.uint16) * color[3] // 255
    layer.putalpha(Image.fromarray(alpha.astype(np.uint8)))
    return layer


def compose(
    canvas_size: tuple[int, int],
    avatar: AvatarSource,
    username_layout: LayoutResult,
    quote_layout: LayoutResult,
    *,
    font: FontResource,
    theme: ThemeConfig | None = None,
    text_gap: int = 30,
    fallback_char: str = REPLACEMENT_CHAR,
) -> Image.Image:
    """Layer background, avatar, transition, username, and quote with source-over blending."""
    theme = theme or get_theme(None)
    geometry = card_geometry(canvas_size, avatar, text_gap)
    background = hex_to_rgba(theme.background)

    canvas = Image.new("RGBA", canvas_size, background)

    avatar_image = prepare_avatar(avatar, canvas_size, font, fallback_char=fallback_char)
    canvas.alpha_composite(avatar_image, dest=(0, 0))

    gradient = transition_overlay(avatar_image.width, geometry.height, background)
    canvas.alpha_composite(gradient, dest=(max(0, avatar_image.width - gradient.width), 0))

    if not username_layout.is_empty:
        layer = _text_layer(
            canvas_size,
            username_layout,
            geometry.text_left,
            geometry.text_width,
            geometry.username_top,
            font,
            hex_to_rgba(theme.username_color),
        )
        canvas = Image.alpha_composite(canvas, layer)

    if not quote_layout.is_empty:
        layer = _text_layer(
            canvas_size,
            quote_layout,
            geometry.text_left,
            geometry.text_width,
            geometry.quote_top(quote_layout.height),
            font,
            hex_to_rgba(theme.quote_color),
        )
        canvas = Image.alpha_composite(canvas, layer)

    return canvas
