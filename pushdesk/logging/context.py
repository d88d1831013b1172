"""Context propagation for structured logging.

Fields pushed here (request_id, batch_index, ...) are attached to every log
record emitted within the scope. Worker threads do not inherit contextvars
automatically, so callables submitted to an executor should be wrapped with
bind_current_context().
"""

import contextvars
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, TypeVar

T = TypeVar("T")

LogContextVar: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "pushdesk_log_context", default={}
)


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> contextvars.Token:
    """Merge fields into the logging context; returns a token for pop_log_context()."""
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: contextvars.Token) -> None:
    """Restore the logging context captured by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop all context fields (mainly for tests)."""
    LogContextVar.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Scope fields to the enclosed block.

    Example:
        >>> with log_context(request_id="a1b2"):
        ...     logger.info("Resolving recipients")  # carries request_id
    """
    token = push_log_context(**fields)
    try:
        yield
    finally:
        pop_log_context(token)


def bind_current_context(func: Callable[..., T]) -> Callable[..., T]:
    """Capture the caller's contextvars so func sees them on another thread."""
    captured = contextvars.copy_context()

    def runner(*args: Any, **kwargs: Any) -> T:
        return captured.copy().run(func, *args, **kwargs)

    return runner
