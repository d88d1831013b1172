"""Data models for the delivery pipeline.

Types flow through the pipeline in this order:
PushMessage + Batch -> EndpointResponse (provider) -> DeliveryOutcome
-> BatchResult -> AggregateResult -> SendResult.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from pushdesk.domain.models import Recipient


class OutcomeStatus(str, Enum):
    """Per-recipient delivery status."""

    DELIVERED = "delivered"
    FAILED = "failed"


class FailureReason(str, Enum):
    """Closed set of failure categories.

    TRANSIENT: the attempt failed; the endpoint may still be valid.
    PERMANENT_ENDPOINT: the endpoint itself is invalid and must be retired.
    """

    TRANSIENT = "transient"
    PERMANENT_ENDPOINT = "permanent_endpoint"


@dataclass(frozen=True)
class PushMessage:
    """Provider-neutral notification payload for one delivery request."""

    title: str
    body: str
    sent_at: datetime
    image_url: Optional[str] = None
    action_url: Optional[str] = None


@dataclass(frozen=True)
class EndpointResponse:
    """Provider feedback for one endpoint of a multicast call.

    Attributes:
        endpoint: Endpoint the response refers to
        success: Whether the provider accepted the message for this endpoint
        error_code: Normalised provider error code when success is False
        message_id: Provider message id when success is True
    """

    endpoint: str
    success: bool
    error_code: Optional[str] = None
    message_id: Optional[str] = None


@dataclass(frozen=True)
class Batch:
    """An ordered slice of recipients sent in one provider call."""

    index: int
    recipients: Tuple[Recipient, ...]

    @property
    def endpoints(self) -> List[str]:
        return [recipient.endpoint for recipient in self.recipients]

    def __len__(self) -> int:
        return len(self.recipients)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Outcome for exactly one eligible recipient.

    reason is set if and only if status is FAILED.
    """

    identity: str
    endpoint: str
    status: OutcomeStatus
    reason: Optional[FailureReason] = None
    error_code: Optional[str] = None

    @classmethod
    def delivered(cls, recipient: Recipient) -> "DeliveryOutcome":
        return cls(recipient.identity, recipient.endpoint, OutcomeStatus.DELIVERED)

    @classmethod
    def failed(
        cls, recipient: Recipient, reason: FailureReason, error_code: Optional[str] = None
    ) -> "DeliveryOutcome":
        return cls(recipient.identity, recipient.endpoint, OutcomeStatus.FAILED, reason, error_code)

    @property
    def is_delivered(self) -> bool:
        return self.status == OutcomeStatus.DELIVERED


@dataclass
class BatchResult:
    """Outcomes of one batch plus how the call went.

    timed_out is set when the delivery deadline passed before the batch
    reported back; its outcomes are then synthesised transient failures.
    """

    batch_index: int
    outcomes: List[DeliveryOutcome]
    attempts: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0
    timed_out: bool = False

    @property
    def delivered_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.is_delivered)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.delivered_count


@dataclass
class AggregateResult:
    """Totals for a whole delivery request.

    delivered + failed always equals the number of eligible recipients.
    partial is True when the delivery deadline expired before all batches
    reported back.
    """

    delivered: int = 0
    failed: int = 0
    endpoints_to_retire: Set[str] = field(default_factory=set)
    partial: bool = False

    @property
    def targeted(self) -> int:
        return self.delivered + self.failed


@dataclass
class SendResult:
    """Tagged result returned to the UI/CLI layer.

    On rejection success is False and error explains why; nothing was sent.
    On success, warning carries non-fatal post-processing problems such as
    a failed audit write.
    """

    success: bool
    delivered: int = 0
    failed: int = 0
    targeted: int = 0
    error: Optional[str] = None
    warning: Optional[str] = None
    partial: bool = False
    retired_endpoints: int = 0
    audit_record_id: Optional[int] = None

    @classmethod
    def rejected(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        payload: Dict[str, Any] = {
            "success": True,
            "delivered": self.delivered,
            "failed": self.failed,
            "targeted": self.targeted,
            "partial": self.partial,
            "retired_endpoints": self.retired_endpoints,
            "audit_record_id": self.audit_record_id,
        }
        if self.warning:
            payload["warning"] = self.warning
        return payload
