"""Command-line entrypoint for content-link-sync."""

from .main import build_parser, main

__all__ = ["build_parser", "main"]
