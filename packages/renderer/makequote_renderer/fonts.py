"""Font loading: parse raw font bytes into an immutable, shareable resource.

FreeType (through freetype-py) is used once per face to validate the container
and read the unicode character map. Rasterisation goes through Pillow, which
gets a fresh ``FreeTypeFont`` per render call so concurrent renders never share
FreeType state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import freetype
from PIL import ImageFont

from .errors import MalformedFontError, NoGlyphsError, RenderError
from .models import FontVariant

logger = logging.getLogger("makequote.renderer.fonts")

NOTDEF_GLYPH = 0


@dataclass(frozen=True)
class FontFace:
    data: bytes = field(repr=False)
    index: int
    family: str
    style: str
    num_glyphs: int
    cmap: Mapping[int, int] = field(repr=False)

    def glyph_id(self, codepoint: int) -> int:
        return self.cmap.get(codepoint, NOTDEF_GLYPH)

    def truetype(self, size: int) -> ImageFont.FreeTypeFont:
        return ImageFont.truetype(
            BytesIO(self.data),
            size=max(1, int(size)),
            index=self.index,
            layout_engine=ImageFont.Layout.BASIC,
        )


def _decode_name(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return value


def parse_face(data: bytes, index: int = 0) -> FontFace:
    if not data:
        raise MalformedFontError("font data is empty")
    try:
        face = freetype.Face(BytesIO(bytes(data)), index)
    except freetype.FT_Exception as exc:
        raise MalformedFontError(f"font data is not a recognizable font container: {exc}") from exc

    if face.num_charmaps == 0:
        raise NoGlyphsError()
    try:
        face.select_charmap(freetype.FT_ENCODING_UNICODE)
    except freetype.FT_Exception as exc:
        raise NoGlyphsError("font has no unicode character map") from exc

    cmap = {code: gid for code, gid in face.get_chars() if gid != NOTDEF_GLYPH}
    if not cmap:
        raise NoGlyphsError()

    parsed = FontFace(
        data=bytes(data),
        index=index,
        family=_decode_name(face.family_name),
        style=_decode_name(face.style_name),
        num_glyphs=int(face.num_glyphs),
        cmap=MappingProxyType(cmap),
    )

    # Pillow must be able to open the same container for rasterisation.
    try:
        parsed.truetype(12)
    except OSError as exc:
        raise MalformedFontError(f"font data cannot be rasterised: {exc}") from exc
    return parsed


@dataclass(frozen=True)
class FontResource:
    """Parsed font variants. ``regular`` is always present."""

    faces: Mapping[FontVariant, FontFace]

    def __post_init__(self) -> None:
        if FontVariant.REGULAR not in self.faces:
            raise ValueError("FontResource requires a regular face")
        object.__setattr__(self, "faces", MappingProxyType(dict(self.faces)))

    @property
    def regular(self) -> FontFace:
        return self.faces[FontVariant.REGULAR]

    @property
    def variants(self) -> list[FontVariant]:
        return [v for v in FontVariant if v in self.faces]

    def face(self, variant: FontVariant = FontVariant.REGULAR) -> FontFace:
        return self.faces.get(variant, self.regular)

    def has_glyph(self, codepoint: int, variant: FontVariant = FontVariant.REGULAR) -> bool:
        return codepoint in self.face(variant).cmap

    def glyph_id(self, codepoint: int, variant: FontVariant = FontVariant.REGULAR) -> int:
        return self.face(variant).glyph_id(codepoint)

    def truetype(self, size: int, variant: FontVariant = FontVariant.REGULAR) -> ImageFont.FreeTypeFont:
        try:
            return self.face(variant).truetype(size)
        except OSError as exc:
            raise RenderError(f"cannot rasterise {variant.value} face at {size}px: {exc}") from exc


def load_font(
    data: bytes,
    *,
    bold: bytes | None = None,
    light: bytes | None = None,
    index: int = 0,
) -> FontResource:
    faces = {FontVariant.REGULAR: parse_face(data, index)}
    if bold is not None:
        faces[FontVariant.BOLD] = parse_face(bold, index)
    if light is not None:
        faces[FontVariant.LIGHT] = parse_face(light, index)

    resource = FontResource(faces)
    logger.info(
        "font loaded",
        extra={
            "event": "font_loaded",
            "family": resource.regular.family,
            "variants": [v.value for v in resource.variants],
        },
    )
    return resource


def load_font_files(
    regular: str | Path,
    bold: str | Path | None = None,
    light: str | Path | None = None,
    index: int = 0,
) -> FontResource:
    def _read(path: str | Path | None) -> bytes | None:
        if path is None:
            return None
        try:
            return Path(path).expanduser().read_bytes()
        except OSError as exc:
            raise MalformedFontError(f"cannot read font file {path}: {exc}") from exc

    return load_font(_read(regular) or b"", bold=_read(bold), light=_read(light), index=index)
