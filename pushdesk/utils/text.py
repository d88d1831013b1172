"""Text helpers for notification payloads."""

from typing import Optional


def is_blank(text: Optional[str]) -> bool:
    """Return True when text is None, empty, or whitespace-only."""
    return text is None or not text.strip()


def clamp_text(text: str, max_length: int) -> str:
    """Cut text to at most max_length characters.

    Push providers display titles and bodies verbatim, so no ellipsis is
    appended and no word-boundary search is done.

    Example:
        >>> clamp_text("Weekly digest is ready", 6)
        'Weekly'
    """
    if max_length < 0:
        raise ValueError(f"max_length must be non-negative, got: {max_length}")
    return text[:max_length]
