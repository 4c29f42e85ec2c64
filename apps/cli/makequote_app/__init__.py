"""Command line application for the quote image renderer."""

from .cli import build_parser, main

__all__ = ["build_parser", "main"]
