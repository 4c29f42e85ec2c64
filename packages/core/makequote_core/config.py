"""Persistent settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from makequote_renderer import FontResource, ProducerConfig, list_formats, list_themes
from makequote_renderer.producer import MAX_FONT_SCALE


CONFIG_VERSION = 2


@dataclass
class FontsConfig:
    regular_path: str | None = None
    bold_path: str | None = None
    light_path: str | None = None
    face_index: int = 0


@dataclass
class OutputConfig:
    width: int = 1920
    height: int = 1080
    font_scale: float = 120.0
    format: str = "jpeg"
    quality: int = 90


@dataclass
class StyleConfig:
    theme: str = "Classic"
    text_gap: int = 30
    fallback_char: str = "\ufffd"


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class PerformanceConfig:
    render_ms_max: float = 1500.0
    rss_mb_max: float = 512.0


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    fonts: FontsConfig = field(default_factory=FontsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    style: StyleConfig = field(default_factory=StyleConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


DEFAULT_CONFIG = AppConfig()


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "MakeQuote"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "MakeQuote"
    return Path.home() / ".config" / "makequote"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _normalize_output(cfg: AppConfig) -> None:
    out = cfg.output
    out.width = max(1, _as_int(out.width, OutputConfig.width))
    out.height = max(1, _as_int(out.height, OutputConfig.height))
    out.font_scale = _as_float(out.font_scale, OutputConfig.font_scale)
    if not 0 < out.font_scale < float("inf"):
        out.font_scale = OutputConfig.font_scale
    out.font_scale = min(out.font_scale, MAX_FONT_SCALE)
    out.quality = max(1, min(95, _as_int(out.quality, OutputConfig.quality)))
    out.format = str(out.format or "").lower()
    if out.format not in list_formats():
        out.format = "jpeg"


def _normalize_style(cfg: AppConfig) -> None:
    if cfg.style.theme not in list_themes():
        cfg.style.theme = "Classic"
    cfg.style.text_gap = max(0, _as_int(cfg.style.text_gap, StyleConfig.text_gap))
    if not cfg.style.fallback_char:
        cfg.style.fallback_char = "\ufffd"


def _normalize_performance(cfg: AppConfig) -> None:
    cfg.performance.render_ms_max = max(50.0, _as_float(cfg.performance.render_ms_max, 1500.0))
    cfg.performance.rss_mb_max = max(64.0, _as_float(cfg.performance.rss_mb_max, 512.0))
    cfg.diagnostics.keep_log_files = max(2, _as_int(cfg.diagnostics.keep_log_files, 7))


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = _as_int(raw.get("config_version", 1), 1)
    data = dict(raw)

    if version < 2:
        # v1 kept output settings and the font path flat at the top level.
        output = dict(data.get("output", {}) or {})
        for key in ("width", "height", "font_scale", "format", "quality"):
            if key in data:
                output.setdefault(key, data.pop(key))
        data["output"] = output
        fonts = dict(data.get("fonts", {}) or {})
        if "font_path" in data:
            fonts.setdefault("regular_path", data.pop("font_path"))
        data["fonts"] = fonts
        data.setdefault("style", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=_as_int(data.get("config_version"), CONFIG_VERSION),
        fonts=_merge(FontsConfig, data.get("fonts", {})),
        output=_merge(OutputConfig, data.get("output", {})),
        style=_merge(StyleConfig, data.get("style", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
        performance=_merge(PerformanceConfig, data.get("performance", {})),
    )

    _normalize_output(cfg)
    _normalize_style(cfg)
    _normalize_performance(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
    return path


def producer_config_from(cfg: AppConfig, font: FontResource) -> ProducerConfig:
    return ProducerConfig(
        font=font,
        output_size=(cfg.output.width, cfg.output.height),
        font_scale=cfg.output.font_scale,
        theme=cfg.style.theme,
        output_format=cfg.output.format,
        quality=cfg.output.quality,
        fallback_char=cfg.style.fallback_char,
        text_gap=cfg.style.text_gap,
    )
