"""Utility functions for time handling and text clamping."""

from .text import clamp_text, is_blank
from .timestamps import ensure_utc, format_timestamp, parse_timestamp, utc_now

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
    # Text
    "clamp_text",
    "is_blank",
]
