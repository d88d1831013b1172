"""Logging and observability configuration for structured event emission."""

import logging
from typing import Optional, Union

from .context import bind_current_context, get_log_context, log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that adds a component field without clobbering call-site extras."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally tagging every record with a component.

    Example:
        >>> logger = get_logger(__name__, component="dispatcher")
        >>> logger.info("Batch sent", extra={"event": "delivery.batch.sent"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = [
    "ComponentLoggerAdapter",
    "get_logger",
    "log_context",
    "get_log_context",
    "bind_current_context",
]
