"""Audit trail of delivery requests."""

from datetime import datetime
from typing import Callable, ContextManager, Optional, Sequence

from sqlalchemy.orm import Session

from pushdesk.domain.models import AuditRecord, DeliveryRequest
from pushdesk.logging import get_logger
from pushdesk.persistence.database import get_session
from pushdesk.persistence.repositories import AuditRepository
from pushdesk.utils.timestamps import utc_now

from .models import AggregateResult

logger = get_logger(__name__, component="audit")


class AuditRecorder:
    """Writes one append-only AuditRecord per accepted delivery request."""

    def __init__(self, session_scope: Callable[[], ContextManager[Session]] = get_session):
        self.session_scope = session_scope

    def record(
        self,
        request: DeliveryRequest,
        identities: Sequence[str],
        aggregate: AggregateResult,
        created_at: Optional[datetime] = None,
    ) -> AuditRecord:
        """Persist the request with its final counts.

        Args:
            request: The accepted (already truncated) request
            identities: Identities of the eligible recipients
            aggregate: Final totals of the delivery
            created_at: Record time (defaults to now, UTC)

        Returns:
            The stored record, with its id

        Raises:
            PersistenceError: If the record cannot be written
        """
        record = AuditRecord(
            title=request.title,
            body=request.body,
            target_summary=request.target.summary(),
            recipient_identities=list(identities),
            delivered_count=aggregate.delivered,
            failed_count=aggregate.failed,
            targeted_count=aggregate.targeted,
            partial=aggregate.partial,
            sent_by=request.sent_by,
            created_at=created_at or utc_now(),
        )

        with self.session_scope() as session:
            stored = AuditRepository(session).insert(record)

        logger.info(
            f"Audit record {stored.id} written",
            extra={
                "event": "delivery.audit.recorded",
                "audit_record_id": stored.id,
                "delivered_count": stored.delivered_count,
                "failed_count": stored.failed_count,
            },
        )
        return stored
