"""Canvas serialization to compressed image formats."""

from __future__ import annotations

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from .errors import EncodeError, UnsupportedFormatError

DEFAULT_FORMAT = "jpeg"

# Normalised name -> (Pillow format, mode the codec accepts)
FORMATS: dict[str, tuple[str, str]] = {
    "jpeg": ("JPEG", "RGB"),
    "jpg": ("JPEG", "RGB"),
    "png": ("PNG", "RGBA"),
    "webp": ("WEBP", "RGBA"),
}


def list_formats() -> list[str]:
    return sorted(FORMATS.keys())


def normalize_format(fmt: str | None) -> str:
    name = (fmt or DEFAULT_FORMAT).strip().lower().lstrip(".")
    if name not in FORMATS:
        raise UnsupportedFormatError(fmt or "")
    return name


def encode(canvas: Image.Image, fmt: str | None = DEFAULT_FORMAT, *, quality: int = 90) -> bytes:
    """Serialize ``canvas``; identical pixels, format and quality give identical bytes."""
    pil_format, mode = FORMATS[normalize_format(fmt)]
    image = canvas if canvas.mode == mode else canvas.convert(mode)

    params: dict[str, object] = {}
    if pil_format == "JPEG":
        params = {"quality": quality, "optimize": False, "progressive": False, "subsampling": 0}
    elif pil_format == "PNG":
        params = {"optimize": False, "compress_level": 6}
    elif pil_format == "WEBP":
        params = {"quality": quality, "method": 4, "exact": True}

    buf = BytesIO()
    try:
        image.save(buf, format=pil_format, **params)
    except (OSError, KeyError, ValueError) as exc:
        raise EncodeError(f"failed to encode {pil_format}: {exc}") from exc
    return buf.getvalue()


def decode(data: bytes) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise EncodeError(f"encoded data is not a readable image: {exc}") from exc
    return image
