"""Avatar decoding, fitting, and generated letter avatars."""

from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageDraw

from .errors import InvalidAvatarError
from .fonts import FontResource
from .layout import REPLACEMENT_CHAR, segment_graphemes
from .models import AvatarSource, BytesAvatar, FontVariant, LetterAvatar, PathAvatar

LETTER_COLORS: tuple[tuple[int, int, int, int], ...] = (
    (255, 81, 106, 255),
    (255, 168, 92, 255),
    (214, 105, 237, 255),
    (84, 203, 104, 255),
    (40, 201, 183, 255),
    (42, 158, 241, 255),
    (255, 113, 154, 255),
)


def avatar_region_width(canvas_size: tuple[int, int], source: AvatarSource) -> int:
    """Width of the avatar strip at the left edge of the canvas."""
    if isinstance(source, LetterAvatar):
        return max(1, canvas_size[0] // 3)
    return _photo_region_width(canvas_size)


def _photo_region_width(canvas_size: tuple[int, int]) -> int:
    width, height = canvas_size
    return max(1, min(height * 3 // 4, width // 2))


def decode_avatar(source: AvatarSource) -> Image.Image:
    if isinstance(source, PathAvatar):
        label = str(source.path)
    elif isinstance(source, BytesAvatar):
        label = f"<{len(source.data)} bytes>"
    else:
        raise InvalidAvatarError(f"cannot decode avatar source {type(source).__name__}")

    try:
        stream = source.path if isinstance(source, PathAvatar) else BytesIO(source.data)
        with Image.open(stream) as img:
            image = img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise InvalidAvatarError(f"cannot decode avatar {label}: {exc}") from exc

    if image.width == 0 or image.height == 0:
        raise InvalidAvatarError(f"avatar {label} has zero dimensions")
    return image


def fit_avatar(image: Image.Image, canvas_size: tuple[int, int]) -> Image.Image:
    """Centre-crop to a square, scale to the canvas height, keep the right-hand strip."""
    _, height = canvas_size
    side = min(image.width, image.height)
    left = (image.width - side) // 2
    top = (image.height - side) // 2
    square = image.crop((left, top, left + side, top + side))
    scaled = square.resize((height, height), Image.Resampling.BICUBIC)

    region = _photo_region_width(canvas_size)
    return scaled.crop((height - region, 0, height, height))


def letter_avatar(
    source: LetterAvatar,
    canvas_size: tuple[int, int],
    font: FontResource,
    variant: FontVariant = FontVariant.BOLD,
    fallback_char: str = REPLACEMENT_CHAR,
) -> Image.Image:
    width = avatar_region_width(canvas_size, source)
    height = canvas_size[1]
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(canvas)

    cx, cy = width // 2, height // 2
    # Keep a 1/12 gap between the disc and the strip edges.
    radius = max(1, min(width // 2 - width // 12, height // 2))
    color = LETTER_COLORS[source.user_id % len(LETTER_COLORS)]
    draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=color)

    letter = segment_graphemes(source.name.strip())[0].upper()
    if not all(font.has_glyph(ord(ch), variant) for ch in letter):
        letter = fallback_char if font.has_glyph(ord(fallback_char[0]), variant) else "?"
    pil_font = font.truetype(max(1, round(radius * 1.1)), variant)
    draw.text((cx, cy), letter, font=pil_font, fill=(255, 255, 255, 255), anchor="mm")
    return canvas


def prepare_avatar(
    source: AvatarSource,
    canvas_size: tuple[int, int],
    font: FontResource,
    fallback_char: str = REPLACEMENT_CHAR,
) -> Image.Image:
    if isinstance(source, LetterAvatar):
        return letter_avatar(source, canvas_size, font, fallback_char=fallback_char)
    return fit_avatar(decode_avatar(source), canvas_size)
