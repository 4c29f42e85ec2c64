"""Renderer package for quote image composition."""

from .encoder import decode, encode, list_formats
from .errors import (
    CompositorError,
    ConfigError,
    DimensionError,
    EncodeError,
    FontError,
    FontErrorKind,
    InvalidAvatarError,
    MakeQuoteError,
    MalformedFontError,
    NoGlyphsError,
    RenderError,
    TextOverflowError,
    UnsupportedFormatError,
)
from .fonts import FontFace, FontResource, load_font, load_font_files
from .layout import layout, segment_graphemes
from .models import (
    BytesAvatar,
    FontVariant,
    GlyphPlacement,
    LayoutResult,
    LetterAvatar,
    PathAvatar,
    QuoteConfig,
    ThemeConfig,
    avatar_source,
)
from .producer import ProducerConfig, QuoteProducer, QuoteProducerBuilder
from .themes import DEFAULT_THEME_NAME, get_theme, list_themes

__all__ = [
    "BytesAvatar",
    "CompositorError",
    "ConfigError",
    "DEFAULT_THEME_NAME",
    "DimensionError",
    "EncodeError",
    "FontError",
    "FontErrorKind",
    "FontFace",
    "FontResource",
    "FontVariant",
    "GlyphPlacement",
    "InvalidAvatarError",
    "LayoutResult",
    "LetterAvatar",
    "MakeQuoteError",
    "MalformedFontError",
    "NoGlyphsError",
    "PathAvatar",
    "ProducerConfig",
    "QuoteConfig",
    "QuoteProducer",
    "QuoteProducerBuilder",
    "RenderError",
    "TextOverflowError",
    "ThemeConfig",
    "UnsupportedFormatError",
    "avatar_source",
    "decode",
    "encode",
    "get_theme",
    "layout",
    "list_formats",
    "list_themes",
    "load_font",
    "load_font_files",
    "segment_graphemes",
]
