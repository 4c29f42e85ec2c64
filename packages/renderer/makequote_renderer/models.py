"""Typed renderer models."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from .errors import ConfigError


class FontVariant(str, Enum):
    REGULAR = "regular"
    BOLD = "bold"
    LIGHT = "light"


@dataclass(frozen=True)
class ThemeConfig:
    name: str
    background: str
    quote_color: str
    username_color: str


@dataclass(frozen=True)
class PathAvatar:
    path: Path


@dataclass(frozen=True)
class BytesAvatar:
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class LetterAvatar:
    """Generated placeholder: a coloured disc with the first letter of ``name``."""

    user_id: int
    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigError("Letter avatar name must not be empty")
        if isinstance(self.user_id, bool) or not isinstance(self.user_id, int) or self.user_id < 0:
            raise ConfigError(f"Letter avatar id must be a non-negative integer, got {self.user_id!r}")


AvatarSource = Union[PathAvatar, BytesAvatar, LetterAvatar]


def avatar_source(value: object) -> AvatarSource:
    if isinstance(value, (PathAvatar, BytesAvatar, LetterAvatar)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        data = bytes(value)
        if not data:
            raise ConfigError("Avatar bytes must not be empty")
        return BytesAvatar(data)
    if isinstance(value, (str, os.PathLike)):
        if not str(value):
            raise ConfigError("Avatar path must not be empty")
        return PathAvatar(Path(value))
    raise ConfigError(f"Unsupported avatar source: {type(value).__name__}")


@dataclass(frozen=True)
class QuoteConfig:
    """Per-render input. The quote may be empty; the username may not."""

    username: str
    avatar: AvatarSource
    quote: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.username, str) or not self.username.strip():
            raise ConfigError("Username must be a non-empty string")
        if not isinstance(self.quote, str):
            raise ConfigError("Quote must be a string")
        if self.avatar is None:
            raise ConfigError("Avatar is required")
        object.__setattr__(self, "avatar", avatar_source(self.avatar))


@dataclass(frozen=True)
class GlyphPlacement:
    glyph_id: int
    x: int
    y: int
    variant: FontVariant
    text: str
    advance: int
    line: int


@dataclass(frozen=True)
class LayoutResult:
    placements: tuple[GlyphPlacement, ...] = ()
    line_count: int = 0
    line_height: int = 0
    line_widths: tuple[int, ...] = ()
    pixel_size: int = 0

    @property
    def width(self) -> int:
        return max(self.line_widths, default=0)

    @property
    def height(self) -> int:
        return self.line_count * self.line_height

    @property
    def is_empty(self) -> bool:
        return self.line_count == 0

    def line_spans(self) -> list[tuple[int, tuple[GlyphPlacement, ...]]]:
        """Placements grouped per line as ``(line_width, placements)``."""
        rows: list[list[GlyphPlacement]] = [[] for _ in range(self.line_count)]
        for placement in self.placements:
            rows[placement.line].append(placement)
        return [(self.line_widths[i], tuple(row)) for i, row in enumerate(rows)]
