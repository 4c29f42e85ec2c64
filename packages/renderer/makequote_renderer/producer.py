"""Quote image producer: layout, composition, and encoding behind one call.

A producer holds an immutable ``ProducerConfig`` (parsed fonts, canvas size,
font scale, styling). ``make_image`` owns its layout and canvas for the
duration of the call, so one producer can serve many threads at once.
"""

from __future__ import annotations

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Iterable

from .compositor import card_geometry, compose
from .encoder import DEFAULT_FORMAT, encode
from .errors import ConfigError, DimensionError, TextOverflowError
from .fonts import FontResource, load_font
from .layout import REPLACEMENT_CHAR, layout
from .models import FontVariant, LayoutResult, QuoteConfig
from .themes import get_theme

logger = logging.getLogger("makequote.renderer.producer")

DEFAULT_OUTPUT_SIZE = (1920, 1080)
DEFAULT_FONT_SCALE = 120.0
MAX_FONT_SCALE = 4096.0
# Text that overflows its band is retried at this fraction of the previous scale.
FIT_SCALE_STEP = 0.9


def _positive_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class ProducerConfig:
    font: FontResource
    output_size: tuple[int, int] = DEFAULT_OUTPUT_SIZE
    font_scale: float = DEFAULT_FONT_SCALE
    theme: str = "Classic"
    output_format: str = DEFAULT_FORMAT
    quality: int = 90
    fallback_char: str = REPLACEMENT_CHAR
    text_gap: int = 30
    quote_variant: FontVariant = FontVariant.BOLD
    username_variant: FontVariant = FontVariant.LIGHT
    username_scale_ratio: float = 1 / 3

    def __post_init__(self) -> None:
        if not isinstance(self.font, FontResource):
            raise ConfigError("A loaded FontResource is required")
        try:
            size = tuple(self.output_size)
        except TypeError as exc:
            raise DimensionError(f"Output size must be a (width, height) pair, got {self.output_size!r}") from exc
        if len(size) != 2 or not all(_positive_int(v) for v in size):
            raise DimensionError(f"Output size must be two positive integers, got {self.output_size!r}")
        object.__setattr__(self, "output_size", size)
        for name in ("font_scale", "username_scale_ratio"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        if max(self.font_scale, self.font_scale * self.username_scale_ratio) > MAX_FONT_SCALE:
            raise ConfigError(f"font scales must be at most {MAX_FONT_SCALE:g}, got {self.font_scale!r}")
        if not isinstance(self.quality, int) or not 1 <= self.quality <= 95:
            raise ConfigError(f"quality must be between 1 and 95, got {self.quality!r}")
        if not isinstance(self.text_gap, int) or self.text_gap < 0:
            raise ConfigError(f"text_gap must be a non-negative integer, got {self.text_gap!r}")
        if not self.fallback_char:
            raise ConfigError("fallback_char must not be empty")
        for name in ("quote_variant", "username_variant"):
            try:
                object.__setattr__(self, name, FontVariant(getattr(self, name)))
            except ValueError as exc:
                raise ConfigError(f"Unknown font variant for {name}: {getattr(self, name)!r}") from exc

    @property
    def width(self) -> int:
        return self.output_size[0]

    @property
    def height(self) -> int:
        return self.output_size[1]


class QuoteProducerBuilder:
    """Fluent builder; every setter is optional except a font."""

    def __init__(self) -> None:
        self._font: FontResource | None = None
        self._options: dict[str, object] = {}

    def font(self, font: FontResource) -> QuoteProducerBuilder:
        self._font = font
        return self

    def fonts(self, bold: bytes, light: bytes, regular: bytes | None = None, index: int = 0) -> QuoteProducerBuilder:
        """Load quote (bold) and username (light) faces from raw bytes."""
        self._font = load_font(regular if regular is not None else bold, bold=bold, light=light, index=index)
        return self

    def output_size(self, width: int, height: int) -> QuoteProducerBuilder:
        self._options["output_size"] = (width, height)
        return self

    def font_scale(self, scale: float) -> QuoteProducerBuilder:
        self._options["font_scale"] = scale
        return self

    def theme(self, name: str) -> QuoteProducerBuilder:
        self._options["theme"] = name
        return self

    def output_format(self, fmt: str) -> QuoteProducerBuilder:
        self._options["output_format"] = fmt
        return self

    def quality(self, quality: int) -> QuoteProducerBuilder:
        self._options["quality"] = quality
        return self

    def fallback_char(self, char: str) -> QuoteProducerBuilder:
        self._options["fallback_char"] = char
        return self

    def build(self) -> QuoteProducer:
        if self._font is None:
            raise ConfigError("A font is required to build a QuoteProducer")
        return QuoteProducer(ProducerConfig(font=self._font, **self._options))  # type: ignore[arg-type]


class QuoteProducer:
    def __init__(self, config: ProducerConfig) -> None:
        self.config = config

    @staticmethod
    def builder() -> QuoteProducerBuilder:
        return QuoteProducerBuilder()

    def with_options(self, **changes: object) -> QuoteProducer:
        return QuoteProducer(replace(self.config, **changes))

    def make_image(self, config: QuoteConfig, *, output_format: str | None = None) -> bytes:
        cfg = self.config
        started = time.perf_counter()
        geometry = card_geometry(cfg.output_size, config.avatar, cfg.text_gap)

        quote_layout = self.fit_layout(
            config.quote,
            geometry.text_width,
            geometry.quote_max_height,
            cfg.font_scale,
            cfg.quote_variant,
            label="quote",
        )
        username_layout = self.fit_layout(
            config.username,
            geometry.text_width,
            geometry.username_max_height,
            cfg.font_scale * cfg.username_scale_ratio,
            cfg.username_variant,
            label="username",
        )
        canvas = compose(
            cfg.output_size,
            config.avatar,
            username_layout,
            quote_layout,
            font=cfg.font,
            theme=get_theme(cfg.theme),
            text_gap=cfg.text_gap,
            fallback_char=cfg.fallback_char,
        )
        data = encode(canvas, output_format or cfg.output_format, quality=cfg.quality)

        logger.info(
            "render complete",
            extra={
                "event": "render_complete",
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "bytes": len(data),
                "quote_lines": quote_layout.line_count,
            },
        )
        return data

    def fit_layout(
        self,
        text: str,
        max_width: int,
        max_height: int,
        scale: float,
        variant: FontVariant = FontVariant.REGULAR,
        *,
        label: str = "text",
    ) -> LayoutResult:
        """Lay out ``text``, shrinking the scale by ``FIT_SCALE_STEP`` until it fits its band."""
        current = scale
        while True:
            result = layout(
                text, max_width, current, self.config.font, variant=variant, fallback_char=self.config.fallback_char
            )
            if result.is_empty or (result.height <= max_height and result.width <= max_width):
                break
            if result.pixel_size <= 1:
                raise TextOverflowError(
                    f"{label} does not fit in {max_width}x{max(0, max_height)}px even at 1px "
                    f"({result.line_count} lines, {result.width}x{result.height}px)"
                )
            current *= FIT_SCALE_STEP

        if current != scale:
            logger.info(
                f"{label} scaled down to fit",
                extra={
                    "event": "text_scaled_down",
                    "block": label,
                    "font_scale": scale,
                    "fitted_scale": round(current, 3),
                    "lines": result.line_count,
                },
            )
        return result

    def make_images(self, configs: Iterable[QuoteConfig], max_workers: int | None = None) -> list[bytes]:
        """Render several configs concurrently; results keep the input order."""
        items = list(configs)
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="makequote") as pool:
            return list(pool.map(self.make_image, items))
