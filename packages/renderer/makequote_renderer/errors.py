"""Error taxonomy for font loading, configuration, and rendering."""

from __future__ import annotations

from enum import Enum


class MakeQuoteError(Exception):
    """Base class for every error raised by the quote renderer."""


class FontErrorKind(str, Enum):
    MALFORMED = "malformed"
    NO_GLYPHS = "no_glyphs"


class FontError(MakeQuoteError):
    kind: FontErrorKind

    def __init__(self, message: str, kind: FontErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


class MalformedFontError(FontError):
    def __init__(self, message: str = "font data is not a recognizable font container") -> None:
        super().__init__(message, FontErrorKind.MALFORMED)


class NoGlyphsError(FontError):
    def __init__(self, message: str = "font has no usable character map") -> None:
        super().__init__(message, FontErrorKind.NO_GLYPHS)


class ConfigError(MakeQuoteError, ValueError):
    """Raised while building a configuration, before any rendering work."""


class DimensionError(ConfigError):
    pass


class RenderError(MakeQuoteError):
    """Base class for failures scoped to a single render call."""


class CompositorError(RenderError):
    pass


class TextOverflowError(CompositorError):
    """Text does not fit its band even at the smallest pixel size."""


class InvalidAvatarError(CompositorError):
    pass


class EncodeError(RenderError):
    pass


class UnsupportedFormatError(EncodeError):
    def __init__(self, fmt: str) -> None:
        super().__init__(f"Unsupported output format: {fmt}")
        self.format = fmt
