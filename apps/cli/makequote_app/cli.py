"""CLI entrypoints for rendering quote images, diagnostics, and benchmarks."""

from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict, replace
from importlib import metadata
from pathlib import Path

from makequote_core import (
    PerformanceController,
    PerformanceTargets,
    build_doctor_payload,
    load_config,
    producer_config_from,
    save_config,
)
from makequote_core.config import AppConfig, config_path
from makequote_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from makequote_renderer import (
    ConfigError,
    FontResource,
    LetterAvatar,
    MakeQuoteError,
    QuoteConfig,
    QuoteProducer,
    get_theme,
    list_formats,
    list_themes,
    load_font_files,
)

BENCHMARK_QUOTE = "大家好，今天来点大家想看的东西。 The quick brown fox jumps over the lazy dog."


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str, ensure_ascii=False))


def _installed_version() -> str:
    try:
        return metadata.version("makequote")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def _load_fonts(args: argparse.Namespace, cfg: AppConfig) -> FontResource:
    bold = args.bold_font or cfg.fonts.bold_path
    light = args.light_font or cfg.fonts.light_path
    regular = args.font or cfg.fonts.regular_path or bold or light
    if not regular:
        raise ConfigError("No font configured; pass --font/--bold-font or run 'makequote config init'")
    index = args.face_index if args.face_index is not None else cfg.fonts.face_index
    return load_font_files(regular, bold, light, index=index)


def _build_producer(args: argparse.Namespace, cfg: AppConfig) -> QuoteProducer:
    config = producer_config_from(cfg, _load_fonts(args, cfg))
    overrides: dict[str, object] = {}
    if args.width is not None or args.height is not None:
        overrides["output_size"] = (
            args.width if args.width is not None else cfg.output.width,
            args.height if args.height is not None else cfg.output.height,
        )
    if args.scale is not None:
        overrides["font_scale"] = args.scale
    if args.theme is not None:
        overrides["theme"] = args.theme
    if args.format is not None:
        overrides["output_format"] = args.format
    if args.quality is not None:
        overrides["quality"] = args.quality
    return QuoteProducer(replace(config, **overrides))


def cmd_render(args: argparse.Namespace) -> int:
    cfg = load_config()
    producer = _build_producer(args, cfg)

    if args.letter_avatar is not None:
        avatar: object = LetterAvatar(user_id=args.letter_avatar, name=args.username.lstrip("@") or args.username)
    else:
        avatar = Path(args.avatar).expanduser()
    quote = Path(args.quote_file).read_text(encoding="utf-8").strip() if args.quote_file else args.quote

    data = producer.make_image(QuoteConfig(username=args.username, avatar=avatar, quote=quote))  # type: ignore[arg-type]

    out = Path(args.out).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)

    width, height = producer.config.output_size
    _print_json(
        {
            "success": True,
            "out": str(out),
            "bytes": len(data),
            "width": width,
            "height": height,
            "format": producer.config.output_format,
            "theme": get_theme(producer.config.theme).name,
        }
    )
    return 0


def cmd_themes(_args: argparse.Namespace) -> int:
    _print_json([asdict(get_theme(name)) for name in list_themes()])
    return 0


def cmd_doctor(_args: argparse.Namespace) -> int:
    _print_json(build_doctor_payload(load_config()))
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    cfg = load_config()
    install_crash_hooks()
    producer = _build_producer(args, cfg)
    perf = PerformanceController(
        PerformanceTargets(
            render_ms_max=cfg.performance.render_ms_max,
            rss_mb_max=cfg.performance.rss_mb_max,
        )
    )
    config = QuoteConfig(username="@makequote", avatar=LetterAvatar(user_id=5, name="makequote"), quote=BENCHMARK_QUOTE)

    renders = 0
    bytes_out = 0
    samples = []
    start = time.perf_counter()
    deadline = start + args.seconds

    while renders == 0 or time.perf_counter() < deadline:
        t0 = time.perf_counter()
        bytes_out += len(producer.make_image(config))
        renders += 1
        samples.append(perf.sample((time.perf_counter() - t0) * 1000))

    elapsed = max(time.perf_counter() - start, 1e-9)
    cpu_max = max(s.cpu_percent for s in samples)
    rss_max = max(s.rss_mb for s in samples)
    render_ms_max = max(s.render_ms for s in samples)
    pass_time = render_ms_max <= cfg.performance.render_ms_max
    pass_mem = rss_max <= cfg.performance.rss_mb_max

    _print_json(
        {
            "seconds": args.seconds,
            "renders": renders,
            "renders_per_s": renders / elapsed,
            "bytes_out": bytes_out,
            "budget": {
                "targets": asdict(perf.targets),
                "max_observed": {
                    "cpu_percent": cpu_max,
                    "rss_mb": rss_max,
                    "render_ms": render_ms_max,
                },
                "pass": bool(pass_time and pass_mem),
                "checks": {"render_time": pass_time, "memory": pass_mem},
            },
        }
    )
    return 0


def cmd_config_show(_args: argparse.Namespace) -> int:
    _print_json(asdict(load_config()))
    return 0


def cmd_config_path(_args: argparse.Namespace) -> int:
    print(config_path())
    return 0


def cmd_config_init(args: argparse.Namespace) -> int:
    path = config_path()
    if path.exists() and not args.force:
        raise ConfigError(f"{path} already exists; pass --force to overwrite")
    cfg = AppConfig()
    cfg.fonts.regular_path = args.font
    cfg.fonts.bold_path = args.bold_font
    cfg.fonts.light_path = args.light_font
    if args.face_index is not None:
        cfg.fonts.face_index = args.face_index
    _print_json({"success": True, "config_path": str(save_config(cfg, path))})
    return 0


def _add_font_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--font", default=None, help="Regular font file")
    cmd.add_argument("--bold-font", default=None, help="Bold font file, used for the quote")
    cmd.add_argument("--light-font", default=None, help="Light font file, used for the username")
    cmd.add_argument("--face-index", type=int, default=None, help="Face index inside a font collection (.ttc)")


def _add_output_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--width", type=int, default=None)
    cmd.add_argument("--height", type=int, default=None)
    cmd.add_argument("--scale", type=float, default=None, help="Quote font scale in pixels")
    cmd.add_argument("--format", choices=list_formats(), default=None)
    cmd.add_argument("--quality", type=int, default=None)
    cmd.add_argument("--theme", choices=list_themes(), default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="makequote", description="Turn somebody's quote into an image")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_installed_version()}")
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser("render", help="Render a quote image")
    avatar_group = render_cmd.add_mutually_exclusive_group(required=True)
    avatar_group.add_argument("--avatar", help="Avatar image file")
    avatar_group.add_argument("--letter-avatar", type=int, metavar="ID", help="Generate a letter avatar with colour ID")
    render_cmd.add_argument("--username", required=True)
    quote_group = render_cmd.add_mutually_exclusive_group()
    quote_group.add_argument("--quote", default="")
    quote_group.add_argument("--quote-file", default=None, help="Read the quote from a UTF-8 text file")
    render_cmd.add_argument("--out", required=True, help="Output image path")
    _add_font_args(render_cmd)
    _add_output_args(render_cmd)
    render_cmd.set_defaults(func=cmd_render)

    themes_cmd = sub.add_parser("themes", help="List built-in themes")
    themes_cmd.set_defaults(func=cmd_themes)

    doctor_cmd = sub.add_parser("doctor", help="Print diagnostics for fonts, codecs, and settings")
    doctor_cmd.set_defaults(func=cmd_doctor)

    bench_cmd = sub.add_parser("benchmark", help="Run a rendering benchmark")
    bench_cmd.add_argument("--seconds", type=int, default=10)
    _add_font_args(bench_cmd)
    _add_output_args(bench_cmd)
    bench_cmd.set_defaults(func=cmd_benchmark)

    config_cmd = sub.add_parser("config", help="Inspect or create settings")
    config_sub = config_cmd.add_subparsers(dest="config_cmd", required=True)
    show_cmd = config_sub.add_parser("show", help="Print effective settings")
    show_cmd.set_defaults(func=cmd_config_show)
    path_cmd = config_sub.add_parser("path", help="Print the settings file location")
    path_cmd.set_defaults(func=cmd_config_path)
    init_cmd = config_sub.add_parser("init", help="Write a settings file with font paths")
    _add_font_args(init_cmd)
    init_cmd.add_argument("--force", action="store_true")
    init_cmd.set_defaults(func=cmd_config_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(keep_files=load_config().diagnostics.keep_log_files, console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except (MakeQuoteError, OSError) as exc:
        get_logger().error(
            f"{args.command} failed: {exc}",
            extra={"event": "command_failed", "command": args.command, "error_type": type(exc).__name__},
        )
        _print_json({"success": False, "error": str(exc), "error_type": type(exc).__name__})
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
