"""Tests for logging context propagation."""

from concurrent.futures import ThreadPoolExecutor

from pushdesk.logging.context import (
    bind_current_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


def test_empty_context():
    """Context starts empty."""
    assert get_log_context() == {}


def test_push_and_pop():
    """Pushed fields are visible until popped."""
    token = push_log_context(request_id="abc123", target="all")
    assert get_log_context() == {"request_id": "abc123", "target": "all"}
    pop_log_context(token)
    assert get_log_context() == {}


def test_context_override():
    """Pushing the same key shadows the previous value."""
    token1 = push_log_context(batch_index=0)
    token2 = push_log_context(batch_index=1)
    assert get_log_context() == {"batch_index": 1}

    pop_log_context(token2)
    assert get_log_context() == {"batch_index": 0}
    pop_log_context(token1)


def test_context_manager_nested():
    """Nested context managers merge and unwind."""
    with log_context(request_id="abc123"):
        with log_context(batch_index=2):
            assert get_log_context() == {"request_id": "abc123", "batch_index": 2}
        assert get_log_context() == {"request_id": "abc123"}
    assert get_log_context() == {}


def test_context_manager_restores_on_exception():
    """Context unwinds even when the block raises."""
    try:
        with log_context(request_id="abc123"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert get_log_context() == {}


def test_get_log_context_returns_copy():
    """Mutating the returned dict does not leak into the context."""
    with log_context(request_id="abc123"):
        snapshot = get_log_context()
        snapshot["request_id"] = "changed"
        assert get_log_context() == {"request_id": "abc123"}


def test_bind_current_context_carries_fields_to_executor():
    """Bound callables see the submitting thread's context."""
    with log_context(request_id="abc123"):
        bound = bind_current_context(get_log_context)

    with ThreadPoolExecutor(max_workers=2) as executor:
        results = [executor.submit(bound).result() for _ in range(3)]

    assert results == [{"request_id": "abc123"}] * 3


def test_bound_callable_changes_stay_local():
    """Context pushed inside a bound call does not escape it."""

    def worker():
        with log_context(batch_index=5):
            return get_log_context()

    with log_context(request_id="abc123"):
        bound = bind_current_context(worker)

    assert bound() == {"request_id": "abc123", "batch_index": 5}
    assert get_log_context() == {}
