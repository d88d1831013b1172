"""Retirement of endpoints the provider reported as permanently invalid."""

from typing import Callable, ContextManager, Iterable

from sqlalchemy.orm import Session

from pushdesk.logging import get_logger
from pushdesk.persistence.database import get_session
from pushdesk.persistence.repositories import EndpointRepository

logger = get_logger(__name__, component="lifecycle")


class EndpointLifecycleManager:
    """Clears dead endpoints from the endpoint store."""

    def __init__(self, session_scope: Callable[[], ContextManager[Session]] = get_session):
        self.session_scope = session_scope

    def retire(self, endpoints: Iterable[str]) -> int:
        """Clear every recipient currently holding one of the endpoints.

        Runs in its own transaction. Endpoints already cleared (for example
        by a concurrent request) are skipped silently.

        Returns:
            Number of recipients whose endpoint was cleared

        Raises:
            PersistenceError: If the store cannot be updated
        """
        values = set(endpoints)
        if not values:
            return 0

        with self.session_scope() as session:
            cleared = EndpointRepository(session).clear_endpoints(values)

        logger.info(
            f"Retired {cleared} endpoints ({len(values)} reported invalid)",
            extra={
                "event": "delivery.endpoints.pruned",
                "reported_count": len(values),
                "cleared_count": cleared,
            },
        )
        return cleared
