"""Environment diagnostics for the ``doctor`` command."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from importlib import metadata
from pathlib import Path
from typing import Any

from PIL import features

from makequote_renderer import MakeQuoteError, list_formats, list_themes, load_font_files

from .config import AppConfig, config_path
from .logging_setup import log_dir

_DISTRIBUTIONS = ("Pillow", "numpy", "freetype-py", "psutil")
_CODECS = ("freetype2", "jpg", "zlib", "webp", "raqm")


def redact(value: Any, home: str | None = None) -> Any:
    """Replace the user's home directory in string values with ``~``."""
    home = home if home is not None else str(Path.home())
    if isinstance(value, dict):
        return {k: redact(v, home) for k, v in value.items()}
    if isinstance(value, list):
        return [redact(v, home) for v in value]
    if isinstance(value, str) and home and value.startswith(home):
        return "~" + value[len(home) :]
    return value


def _version(dist: str) -> str | None:
    try:
        return metadata.version(dist)
    except metadata.PackageNotFoundError:
        return None


def _font_report(cfg: AppConfig) -> dict[str, Any]:
    paths = {
        "regular": cfg.fonts.regular_path,
        "bold": cfg.fonts.bold_path,
        "light": cfg.fonts.light_path,
    }
    report: dict[str, Any] = {
        name: {"path": path, "exists": bool(path) and Path(path).expanduser().is_file()}
        for name, path in paths.items()
    }
    regular = cfg.fonts.regular_path or cfg.fonts.bold_path
    if not regular:
        report["status"] = "not_configured"
        return report
    try:
        font = load_font_files(regular, cfg.fonts.bold_path, cfg.fonts.light_path, index=cfg.fonts.face_index)
    except MakeQuoteError as exc:
        report["status"] = "error"
        report["error"] = str(exc)
        return report
    report["status"] = "ok"
    report["family"] = font.regular.family
    report["glyphs"] = font.regular.num_glyphs
    report["variants"] = [v.value for v in font.variants]
    return report


def build_doctor_payload(cfg: AppConfig) -> dict[str, Any]:
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "packages": {dist: _version(dist) for dist in _DISTRIBUTIONS},
        "codecs": {name: bool(features.check(name)) for name in _CODECS},
        "formats": list_formats(),
        "themes": list_themes(),
        "fonts": redact(_font_report(cfg)),
        "config_path": redact(str(config_path())),
        "log_dir": redact(str(log_dir())),
        "config": redact(asdict(cfg)),
    }
