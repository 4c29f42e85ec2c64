"""Text layout: grapheme segmentation, greedy line wrapping, and glyph placement.

Wide scripts (CJK and other East Asian wide/fullwidth characters) break
between any two clusters; other scripts break at whitespace. A unit wider than
the available width gets a line of its own and is never split.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass

from PIL import ImageFont

from .fonts import NOTDEF_GLYPH, FontFace, FontResource
from .models import FontVariant, GlyphPlacement, LayoutResult

REPLACEMENT_CHAR = "\ufffd"

_ZWJ = "\u200d"
_ZWSP = "\u200b"
_NO_BREAK_SPACES = ("\u00a0", "\u202f", "\u2007")


def pixel_size(font_scale: float) -> int:
    return max(1, int(round(font_scale)))


def _is_regional_indicator(ch: str) -> bool:
    return 0x1F1E6 <= ord(ch) <= 0x1F1FF


def _is_extender(ch: str) -> bool:
    if ch == _ZWJ:
        return True
    if unicodedata.category(ch) in ("Mn", "Mc", "Me"):
        return True
    cp = ord(ch)
    return (
        0xFE00 <= cp <= 0xFE0F  # variation selectors
        or 0xE0100 <= cp <= 0xE01EF
        or 0x1F3FB <= cp <= 0x1F3FF  # emoji skin tone modifiers
        or 0xE0020 <= cp <= 0xE007F  # tag sequences
    )


def segment_graphemes(text: str) -> list[str]:
    """Split ``text`` into user-perceived characters.

    Combining marks, variation selectors, ZWJ sequences, emoji modifiers and
    regional-indicator pairs stay attached to their base character.
    """
    clusters: list[str] = []
    join_next = False
    for ch in unicodedata.normalize("NFC", text):
        if clusters and not _is_newline(clusters[-1]):
            last = clusters[-1]
            if join_next or _is_extender(ch):
                clusters[-1] = last + ch
                join_next = ch == _ZWJ
                continue
            if _is_regional_indicator(ch) and len(last) == 1 and _is_regional_indicator(last):
                clusters[-1] = last + ch
                continue
        if ch == "\n" and clusters and clusters[-1] == "\r":
            clusters[-1] = "\r\n"
            continue
        clusters.append(ch)
        join_next = False
    return clusters


def _is_newline(cluster: str) -> bool:
    return cluster in ("\n", "\r", "\r\n", "\u2028", "\u2029")


def _is_space(cluster: str) -> bool:
    return cluster == _ZWSP or (cluster.isspace() and cluster not in _NO_BREAK_SPACES)


def _is_wide(cluster: str) -> bool:
    return unicodedata.east_asian_width(cluster[0]) in ("W", "F")


def _is_invisible(cluster: str) -> bool:
    return unicodedata.category(cluster[0]) in ("Cc", "Cf")


@dataclass(frozen=True)
class _Glyph:
    text: str
    glyph_id: int
    advance: float


class _GlyphMeasurer:
    """Resolves clusters to drawable text, glyph ids, and advances for one font."""

    def __init__(self, face: FontFace, font: ImageFont.FreeTypeFont, fallback_char: str) -> None:
        self._face = face
        self._font = font
        self._fallback = fallback_char if fallback_char and ord(fallback_char[0]) in face.cmap else None
        self._cache: dict[str, _Glyph] = {}

    def glyph(self, cluster: str) -> _Glyph:
        cached = self._cache.get(cluster)
        if cached is not None:
            return cached

        base = [ch for ch in cluster if not _is_extender(ch)] or [cluster[0]]
        if all(ord(ch) in self._face.cmap for ch in base):
            text = "".join(ch for ch in cluster if ord(ch) in self._face.cmap)
            glyph_id = self._face.glyph_id(ord(base[0]))
        elif self._fallback is not None:
            text = self._fallback
            glyph_id = self._face.glyph_id(ord(self._fallback[0]))
        else:
            text = base[0]
            glyph_id = NOTDEF_GLYPH

        glyph = _Glyph(text=text, glyph_id=glyph_id, advance=float(self._font.getlength(text)))
        self._cache[cluster] = glyph
        return glyph

    def space_advance(self, cluster: str) -> float:
        if cluster == _ZWSP:
            return 0.0
        if all(ord(ch) in self._face.cmap for ch in cluster):
            return float(self._font.getlength(cluster))
        if ord(" ") in self._face.cmap:
            return float(self._font.getlength(" "))
        return self._font.size / 4


def _tokenize(clusters: list[str]) -> list[tuple[str, list[str]]]:
    units: list[tuple[str, list[str]]] = []
    word: list[str] = []

    def flush() -> None:
        if word:
            units.append(("word", list(word)))
            word.clear()

    for cluster in clusters:
        if _is_newline(cluster):
            flush()
            units.append(("newline", [cluster]))
        elif _is_space(cluster):
            flush()
            units.append(("space", [cluster]))
        elif _is_invisible(cluster):
            continue
        elif _is_wide(cluster):
            flush()
            units.append(("wide", [cluster]))
        else:
            word.append(cluster)
    flush()
    return units


class _LineBuilder:
    def __init__(self, available_width: int) -> None:
        self.available_width = available_width
        self.lines: list[tuple[list[tuple[_Glyph, float]], float]] = []
        self._current: list[tuple[_Glyph, float]] = []
        self._pen = 0.0
        self._pending_space = 0.0

    def add_space(self, advance: float) -> None:
        if self._current:
            self._pending_space += advance

    def add_unit(self, glyphs: list[_Glyph]) -> None:
        unit_width = sum(g.advance for g in glyphs)
        if self._current and self._pen + self._pending_space + unit_width > self.available_width:
            self.break_line()
        pen = self._pen + self._pending_space if self._current else 0.0
        for glyph in glyphs:
            self._current.append((glyph, pen))
            pen += glyph.advance
        self._pen = pen
        self._pending_space = 0.0

    def break_line(self) -> None:
        self.lines.append((self._current, self._pen))
        self._current = []
        self._pen = 0.0
        self._pending_space = 0.0

    def finish(self) -> list[tuple[list[tuple[_Glyph, float]], float]]:
        self.break_line()
        lines = self.lines
        while lines and not lines[0][0]:
            lines = lines[1:]
        while lines and not lines[-1][0]:
            lines = lines[:-1]
        return lines


def layout(
    text: str,
    available_width: int,
    font_scale: float,
    font: FontResource,
    *,
    variant: FontVariant = FontVariant.REGULAR,
    fallback_char: str = REPLACEMENT_CHAR,
) -> LayoutResult:
    if available_width <= 0:
        raise ValueError(f"available_width must be positive, got {available_width}")

    size = pixel_size(font_scale)
    if not text:
        return LayoutResult(pixel_size=size)

    face = font.face(variant)
    pil_font = font.truetype(size, variant)
    ascent, descent = pil_font.getmetrics()
    line_height = ascent + descent

    measurer = _GlyphMeasurer(face, pil_font, fallback_char)
    builder = _LineBuilder(available_width)
    for kind, clusters in _tokenize(segment_graphemes(text)):
        if kind == "newline":
            builder.break_line()
        elif kind == "space":
            builder.add_space(measurer.space_advance(clusters[0]))
        else:
            builder.add_unit([measurer.glyph(c) for c in clusters])

    lines = builder.finish()
    if not lines:
        return LayoutResult(pixel_size=size)

    placements: list[GlyphPlacement] = []
    widths: list[int] = []
    for line_no, (glyphs, width) in enumerate(lines):
        widths.append(int(round(width)))
        for glyph, x in glyphs:
            placements.append(
                GlyphPlacement(
                    glyph_id=glyph.glyph_id,
                    x=int(round(x)),
                    y=line_no * line_height,
                    variant=variant if variant in font.faces else FontVariant.REGULAR,
                    text=glyph.text,
                    advance=int(round(glyph.advance)),
                    line=line_no,
                )
            )

    return LayoutResult(
        placements=tuple(placements),
        line_count=len(lines),
        line_height=line_height,
        line_widths=tuple(widths),
        pixel_size=size,
    )
