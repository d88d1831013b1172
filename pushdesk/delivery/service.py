"""Orchestration of one notification request, from validation to audit.

send_notification() is the single inbound operation. Flow:
    validate -> resolve recipients -> partition -> dispatch (fan-out)
    -> aggregate (fan-in) -> retire dead endpoints + write audit (in parallel)
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, ContextManager, List, Optional, Sequence, Union
from uuid import uuid4

from pydantic import ValidationError
from sqlalchemy.orm import Session

from pushdesk.config.models import AppConfig
from pushdesk.domain.models import DeliveryRequest, Recipient, TargetSelector
from pushdesk.logging import bind_current_context, get_logger, log_context
from pushdesk.persistence.database import get_session
from pushdesk.persistence.exceptions import PersistenceError
from pushdesk.utils.timestamps import utc_now

from .aggregator import OutcomeAggregator
from .audit import AuditRecorder
from .batching import partition_recipients
from .dispatcher import DeliveryDispatcher
from .exceptions import InvalidRequestError
from .lifecycle import EndpointLifecycleManager
from .models import AggregateResult, PushMessage, SendResult
from .provider import PushProvider
from .resolver import RecipientResolver

logger = get_logger(__name__, component="service")


def describe_validation_error(exc: ValidationError) -> str:
    """Turn the first pydantic error into a message fit for an admin UI."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    message = first.get("msg", str(exc))
    if message.startswith("Value error, "):
        return message[len("Value error, ") :]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {message}" if location else message


class NotificationService:
    """Sends one admin-authored push notification to a target audience."""

    def __init__(
        self,
        provider: PushProvider,
        app_config: AppConfig,
        session_scope: Callable[[], ContextManager[Session]] = get_session,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the notification service.

        Args:
            provider: Push provider client
            app_config: Application configuration
            session_scope: Factory for transactional sessions
            sleep: Used for retry backoff; injectable for tests
        """
        self.app_config = app_config
        delivery = app_config.delivery

        self.resolver = RecipientResolver(
            segments=app_config.segments,
            min_endpoint_length=delivery.min_endpoint_length,
            page_size=delivery.page_size,
            session_scope=session_scope,
        )
        self.dispatcher = DeliveryDispatcher(
            provider,
            max_concurrency=delivery.max_concurrency,
            retry_config=app_config.retry,
            sleep=sleep,
        )
        self.lifecycle = EndpointLifecycleManager(session_scope=session_scope)
        self.audit = AuditRecorder(session_scope=session_scope)

    def send_notification(
        self,
        title: Optional[str],
        body: Optional[str],
        target: Union[TargetSelector, str],
        sent_by: Optional[str] = None,
        image_url: Optional[str] = None,
        action_url: Optional[str] = None,
    ) -> SendResult:
        """Validate, deliver and record one notification.

        Never raises for expected failures. A rejected request (blank title
        or body, bad target, unknown segment) returns success=False and has
        no side effects. An accepted request returns the final counts; a
        failed endpoint cleanup or audit write is reported in warning.
        """
        request_id = uuid4().hex
        with log_context(request_id=request_id):
            try:
                request = self._build_request(title, body, target, sent_by, image_url, action_url)
                recipients = self._resolve(request)
                return self._deliver(request, recipients)
            except InvalidRequestError as e:
                logger.warning(
                    f"Notification request rejected: {e}",
                    extra={"event": "delivery.request.rejected", "error": str(e)},
                )
                return SendResult.rejected(str(e))
            except Exception as e:
                logger.error(
                    f"Unexpected error sending notification: {e}",
                    exc_info=True,
                    extra={"event": "delivery.request.error", "error_type": type(e).__name__},
                )
                return SendResult.rejected(f"Unexpected error: {e}")

    def _build_request(
        self,
        title: Optional[str],
        body: Optional[str],
        target: Union[TargetSelector, str],
        sent_by: Optional[str],
        image_url: Optional[str],
        action_url: Optional[str],
    ) -> DeliveryRequest:
        try:
            selector = target if isinstance(target, TargetSelector) else TargetSelector.parse(target)
            return DeliveryRequest.model_validate(
                {
                    "title": title,
                    "body": body,
                    "target": selector,
                    "sent_by": sent_by,
                    "image_url": image_url,
                    "action_url": action_url,
                },
                context={
                    "title_max_length": self.app_config.delivery.title_max_length,
                    "body_max_length": self.app_config.delivery.body_max_length,
                },
            )
        except ValidationError as e:
            raise InvalidRequestError(describe_validation_error(e)) from e
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e

    def _resolve(self, request: DeliveryRequest) -> List[Recipient]:
        try:
            return self.resolver.resolve(request.target)
        except PersistenceError as e:
            raise InvalidRequestError(f"Could not resolve recipients: {e}") from e

    def _deliver(self, request: DeliveryRequest, recipients: Sequence[Recipient]) -> SendResult:
        delivery = self.app_config.delivery
        batches = partition_recipients(recipients, delivery.max_batch_size)
        message = PushMessage(
            title=request.title,
            body=request.body,
            sent_at=utc_now(),
            image_url=request.image_url,
            action_url=request.action_url,
        )

        logger.info(
            f"Sending notification to {len(recipients)} recipients in {len(batches)} batches",
            extra={
                "event": "delivery.request.accepted",
                "target": request.target.summary(),
                "eligible_count": len(recipients),
                "batch_count": len(batches),
            },
        )

        aggregate = (
            OutcomeAggregator()
            .add_all(self.dispatcher.dispatch(message, batches, timeout=delivery.delivery_timeout_seconds))
            .result()
        )

        identities = [recipient.identity for recipient in recipients]
        retired, audit_record_id, warnings = self._post_process(request, identities, aggregate)

        result = SendResult(
            success=True,
            delivered=aggregate.delivered,
            failed=aggregate.failed,
            targeted=aggregate.targeted,
            warning="; ".join(warnings) or None,
            partial=aggregate.partial,
            retired_endpoints=retired,
            audit_record_id=audit_record_id,
        )

        logger.info(
            f"Notification finished: {result.delivered} delivered, {result.failed} failed",
            extra={
                "event": "delivery.request.completed",
                "delivered_count": result.delivered,
                "failed_count": result.failed,
                "targeted_count": result.targeted,
                "retired_count": retired,
                "partial": result.partial,
            },
        )
        return result

    def _post_process(self, request: DeliveryRequest, identities: List[str], aggregate: AggregateResult):
        """Retire dead endpoints and write the audit record concurrently.

        Returns:
            Tuple of (endpoints retired, audit record id or None, warnings)
        """
        warnings: List[str] = []
        retired = 0
        audit_record_id = None

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="pushdesk-post") as executor:
            cleanup = executor.submit(
                bind_current_context(self.lifecycle.retire), aggregate.endpoints_to_retire
            )
            audit = executor.submit(
                bind_current_context(self.audit.record), request, identities, aggregate
            )

            try:
                retired = cleanup.result()
            except Exception as e:
                logger.warning(
                    f"Endpoint cleanup failed: {e}",
                    exc_info=True,
                    extra={
                        "event": "delivery.endpoints.prune_failed",
                        "endpoint_count": len(aggregate.endpoints_to_retire),
                    },
                )
                warnings.append(f"Endpoint cleanup failed: {e}")

            try:
                audit_record_id = audit.result().id
            except Exception as e:
                logger.warning(
                    f"Audit record could not be written: {e}",
                    exc_info=True,
                    extra={"event": "audit.write.failed"},
                )
                warnings.append(f"Audit record could not be written: {e}")

        return retired, audit_record_id, warnings
