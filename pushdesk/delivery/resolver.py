"""Recipient resolution: TargetSelector -> eligible recipients."""

from typing import Callable, ContextManager, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from pushdesk.config.models import SegmentConfig
from pushdesk.domain.models import Recipient, TargetKind, TargetSelector
from pushdesk.logging import get_logger
from pushdesk.persistence.database import get_session
from pushdesk.persistence.repositories import EndpointRepository

from .exceptions import InvalidTargetError

logger = get_logger(__name__, component="resolver")


class RecipientResolver:
    """Turns a target selector into the list of recipients to deliver to.

    A recipient is eligible when it has an endpoint of at least
    min_endpoint_length characters. Recipients sharing one endpoint are
    collapsed to the first one seen, so a device never receives the same
    notification twice from one request.
    """

    def __init__(
        self,
        segments: Sequence[SegmentConfig],
        min_endpoint_length: int = 11,
        page_size: int = 1000,
        session_scope: Callable[[], ContextManager[Session]] = get_session,
    ):
        self.segments = {segment.name: segment for segment in segments}
        self.min_endpoint_length = min_endpoint_length
        self.page_size = page_size
        self.session_scope = session_scope

    def resolve(self, target: TargetSelector) -> List[Recipient]:
        """Return eligible recipients for the target, in store order.

        Raises:
            InvalidTargetError: If the target names an unknown segment
            PersistenceError: If the endpoint store cannot be read
        """
        account_type = self._account_type_for(target)

        with self.session_scope() as session:
            repo = EndpointRepository(session)
            if target.kind == TargetKind.EXPLICIT:
                candidates = repo.find_by_identities(target.identities)
                unknown = len(target.identities) - len(candidates)
                if unknown:
                    logger.info(
                        f"{unknown} requested recipients are unknown",
                        extra={"event": "delivery.resolve.unknown_identities", "unknown_count": unknown},
                    )
                recipients, skipped = self._eligible(candidates)
            else:
                recipients, skipped = self._eligible(
                    recipient
                    for page in repo.iter_with_endpoint(account_type, page_size=self.page_size)
                    for recipient in page
                )

        logger.info(
            f"Resolved {len(recipients)} eligible recipients for target {target.summary()}",
            extra={
                "event": "delivery.resolve.completed",
                "target": target.summary(),
                "eligible_count": len(recipients),
                "skipped_count": skipped,
            },
        )
        return recipients

    def _account_type_for(self, target: TargetSelector) -> Optional[str]:
        if target.kind != TargetKind.SEGMENT:
            return None
        segment = self.segments.get(target.segment)
        if segment is None:
            known = ", ".join(sorted(self.segments)) or "none configured"
            raise InvalidTargetError(f"Unknown segment '{target.segment}' (known: {known})")
        return segment.account_type

    def _eligible(self, candidates: Iterable[Recipient]):
        """Filter to usable endpoints and drop repeated endpoints.

        Returns:
            Tuple of (eligible recipients, number skipped)
        """
        eligible: List[Recipient] = []
        seen_endpoints = set()
        skipped = 0
        for recipient in candidates:
            if not recipient.has_usable_endpoint(self.min_endpoint_length):
                skipped += 1
                continue
            if recipient.endpoint in seen_endpoints:
                skipped += 1
                continue
            seen_endpoints.add(recipient.endpoint)
            eligible.append(recipient)
        return eligible, skipped
