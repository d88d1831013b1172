"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are valid but risky.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    delivery = config_dict.get("delivery") or {}
    if isinstance(delivery, dict):
        concurrency = delivery.get("max_concurrency")
        if isinstance(concurrency, int) and concurrency > 16:
            warning_messages.append(
                f"High max_concurrency ({concurrency}) may trigger provider rate limits"
            )

        batch_size = delivery.get("max_batch_size")
        if isinstance(batch_size, int) and 0 < batch_size < 100:
            warning_messages.append(
                f"Small max_batch_size ({batch_size}) multiplies provider calls per request"
            )

    retry = config_dict.get("retry") or {}
    if isinstance(retry, dict):
        max_retries = retry.get("max_retries")
        if isinstance(max_retries, int) and max_retries > 0:
            warning_messages.append(
                "Batch retries are enabled; a provider call that failed after "
                "accepting messages may deliver duplicates when retried"
            )

    segments = config_dict.get("segments")
    if isinstance(segments, list) and not segments:
        warning_messages.append("No segments configured; only 'all' and explicit targets will work")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
