"""Concurrent batch dispatch to the push provider.

Batches fan out to a bounded thread pool and fan back in through
as_completed(). A batch never raises to the caller: whatever happens to the
provider call is turned into one DeliveryOutcome per recipient.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from pushdesk.config.models import RetryConfig
from pushdesk.logging import bind_current_context, get_logger, log_context

from .classification import classify_error_code, is_payload_rejection, normalize_error_code
from .exceptions import ProviderUnavailableError
from .models import Batch, BatchResult, DeliveryOutcome, EndpointResponse, FailureReason, PushMessage
from .provider import PushProvider

logger = get_logger(__name__, component="dispatcher")

MAX_RETRY_DELAY = 60.0


class DeliveryDispatcher:
    """Sends batches to the provider with at most max_concurrency calls in flight."""

    def __init__(
        self,
        provider: PushProvider,
        max_concurrency: int = 4,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the dispatcher.

        Args:
            provider: Push provider client
            max_concurrency: Ceiling on simultaneous provider calls
            retry_config: Whole-batch retry policy (no retries when omitted)
            sleep: Used for retry backoff; injectable for tests
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got: {max_concurrency}")
        self.provider = provider
        self.max_concurrency = max_concurrency
        self.retry_config = retry_config or RetryConfig()
        self.sleep = sleep

    def dispatch(
        self, message: PushMessage, batches: Sequence[Batch], timeout: Optional[float] = None
    ) -> Iterator[BatchResult]:
        """Send every batch and yield results in completion order.

        Exactly one BatchResult is yielded per batch. If timeout (seconds,
        measured from the first call) expires, batches that never started
        are cancelled and reported with error code "cancelled"; batches
        still in flight are reported with error code "timeout". Both are
        flagged timed_out and counted as transient failures. A batch that
        finishes while the deadline is being handled keeps its real result.
        """
        if not batches:
            return

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_concurrency, len(batches)),
            thread_name_prefix="pushdesk-dispatch",
        )
        send = bind_current_context(self._send_batch)
        futures: Dict[Future, Batch] = {
            executor.submit(send, message, batch): batch for batch in batches
        }
        pending = set(futures)
        timed_out = False

        logger.info(
            f"Dispatching {len(batches)} batches",
            extra={
                "event": "delivery.dispatch.started",
                "batch_count": len(batches),
                "max_concurrency": self.max_concurrency,
                "timeout_seconds": timeout,
            },
        )

        try:
            try:
                for future in as_completed(futures, timeout=timeout):
                    pending.discard(future)
                    yield future.result()
            except FuturesTimeoutError:
                timed_out = True
                logger.warning(
                    f"Delivery deadline of {timeout}s passed with {len(pending)} batches outstanding",
                    extra={
                        "event": "delivery.dispatch.timeout",
                        "timeout_seconds": timeout,
                        "outstanding_batches": len(pending),
                    },
                )
                for future in sorted(pending, key=lambda f: futures[f].index):
                    if future.done() and not future.cancelled():
                        yield future.result()
                        continue
                    code = "cancelled" if future.cancel() else "timeout"
                    yield self._whole_batch_failure(
                        futures[future], attempts=0, error_code=code, error=code, timed_out=True
                    )
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

    def _send_batch(self, message: PushMessage, batch: Batch) -> BatchResult:
        """Send one batch, retrying whole-call failures per the retry policy."""
        started = time.monotonic()
        max_attempts = self.retry_config.max_retries + 1
        last_error: Optional[ProviderUnavailableError] = None

        with log_context(batch_index=batch.index, batch_size=len(batch)):
            for attempt in range(1, max_attempts + 1):
                if attempt > 1:
                    delay = self.retry_config.retry_initial_delay * (
                        self.retry_config.retry_backoff_multiplier ** (attempt - 2)
                    )
                    delay = min(delay, MAX_RETRY_DELAY)
                    logger.warning(
                        f"Retrying batch {batch.index} (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                        extra={"event": "delivery.batch.retry", "attempt": attempt, "delay_seconds": delay},
                    )
                    self.sleep(delay)

                try:
                    responses = self.provider.send_multicast(message, batch.endpoints)
                except ProviderUnavailableError as e:
                    last_error = e
                    logger.warning(
                        f"Provider call failed for batch {batch.index} (attempt {attempt}/{max_attempts}): {e}",
                        extra={
                            "event": "delivery.batch.call_failed",
                            "attempt": attempt,
                            "error_code": e.error_code,
                            "retry_remaining": attempt < max_attempts,
                        },
                    )
                    continue
                except Exception as e:
                    logger.error(
                        f"Unexpected error sending batch {batch.index}: {e}",
                        exc_info=True,
                        extra={"event": "delivery.batch.error", "attempt": attempt},
                    )
                    return self._whole_batch_failure(
                        batch, attempts=attempt, error_code="unknown", error=str(e), started=started
                    )

                outcomes = self._map_responses(batch, responses)
                result = BatchResult(
                    batch_index=batch.index,
                    outcomes=outcomes,
                    attempts=attempt,
                    duration_seconds=time.monotonic() - started,
                )
                logger.info(
                    f"Batch {batch.index} sent: {result.delivered_count} delivered, {result.failed_count} failed",
                    extra={
                        "event": "delivery.batch.sent",
                        "attempts": attempt,
                        "delivered_count": result.delivered_count,
                        "failed_count": result.failed_count,
                        "duration_seconds": round(result.duration_seconds, 3),
                    },
                )
                return result

            logger.error(
                f"Batch {batch.index} failed after {max_attempts} attempts: {last_error}",
                extra={
                    "event": "delivery.batch.failed",
                    "attempts": max_attempts,
                    "error_code": last_error.error_code if last_error else None,
                },
            )
            return self._whole_batch_failure(
                batch,
                attempts=max_attempts,
                error_code=normalize_error_code(last_error.error_code if last_error else None),
                error=str(last_error),
                started=started,
            )

    @staticmethod
    def _whole_batch_failure(
        batch: Batch,
        attempts: int,
        error_code: str,
        error: str,
        started: Optional[float] = None,
        timed_out: bool = False,
    ) -> BatchResult:
        # A call-level failure says nothing about individual endpoints.
        outcomes = [
            DeliveryOutcome.failed(recipient, FailureReason.TRANSIENT, error_code)
            for recipient in batch.recipients
        ]
        return BatchResult(
            batch_index=batch.index,
            outcomes=outcomes,
            attempts=attempts,
            error=error,
            duration_seconds=time.monotonic() - started if started is not None else 0.0,
            timed_out=timed_out,
        )

    @staticmethod
    def _map_responses(batch: Batch, responses: Sequence[EndpointResponse]) -> List[DeliveryOutcome]:
        """Pair responses with recipients by position.

        Recipients left without a response fail transiently with
        "missing-response"; surplus responses are ignored.
        """
        if len(responses) != len(batch):
            logger.warning(
                f"Provider returned {len(responses)} responses for {len(batch)} endpoints",
                extra={
                    "event": "delivery.batch.response_mismatch",
                    "response_count": len(responses),
                    "endpoint_count": len(batch),
                },
            )

        payload_rejected = is_payload_rejection(responses)
        if payload_rejected:
            logger.warning(
                f"Provider rejected the message for every endpoint of batch {batch.index}",
                extra={
                    "event": "delivery.batch.payload_rejected",
                    "endpoint_count": len(batch),
                },
            )

        outcomes = []
        for position, recipient in enumerate(batch.recipients):
            if position >= len(responses):
                outcomes.append(
                    DeliveryOutcome.failed(recipient, FailureReason.TRANSIENT, "missing-response")
                )
                continue
            response = responses[position]
            if response.success:
                outcomes.append(DeliveryOutcome.delivered(recipient))
            else:
                code = normalize_error_code(response.error_code)
                reason = classify_error_code(code, payload_rejected=payload_rejected)
                outcomes.append(DeliveryOutcome.failed(recipient, reason, code))
        return outcomes
