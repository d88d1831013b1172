"""Push delivery pipeline.

Public API:
    - NotificationService.send_notification(): the inbound operation
    - PushProvider / FirebaseProvider: provider clients
    - RecipientResolver, partition_recipients, DeliveryDispatcher,
      OutcomeAggregator, EndpointLifecycleManager, AuditRecorder: pipeline stages
    - classify_error_code(): the single place error codes are interpreted
"""

from .aggregator import OutcomeAggregator
from .audit import AuditRecorder
from .batching import partition_recipients
from .classification import classify_error_code, is_payload_rejection, normalize_error_code
from .dispatcher import DeliveryDispatcher
from .exceptions import (
    DeliveryError,
    InvalidRequestError,
    InvalidTargetError,
    ProviderConfigurationError,
    ProviderError,
    ProviderUnavailableError,
)
from .lifecycle import EndpointLifecycleManager
from .models import (
    AggregateResult,
    Batch,
    BatchResult,
    DeliveryOutcome,
    EndpointResponse,
    FailureReason,
    OutcomeStatus,
    PushMessage,
    SendResult,
)
from .provider import PushProvider
from .resolver import RecipientResolver
from .service import NotificationService

__all__ = [
    # Orchestration
    "NotificationService",
    # Pipeline stages
    "RecipientResolver",
    "partition_recipients",
    "DeliveryDispatcher",
    "OutcomeAggregator",
    "EndpointLifecycleManager",
    "AuditRecorder",
    "classify_error_code",
    "is_payload_rejection",
    "normalize_error_code",
    # Provider
    "PushProvider",
    # Models
    "AggregateResult",
    "Batch",
    "BatchResult",
    "DeliveryOutcome",
    "EndpointResponse",
    "FailureReason",
    "OutcomeStatus",
    "PushMessage",
    "SendResult",
    # Exceptions
    "DeliveryError",
    "InvalidRequestError",
    "InvalidTargetError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderConfigurationError",
]
