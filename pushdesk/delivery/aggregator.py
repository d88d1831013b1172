"""Fan-in of per-recipient outcomes into request totals."""

from typing import Iterable

from .models import AggregateResult, BatchResult, DeliveryOutcome, FailureReason


class OutcomeAggregator:
    """Accumulates outcomes for one delivery request.

    Each outcome is counted exactly once: delivered or failed. Endpoints of
    PERMANENT_ENDPOINT failures are collected for retirement; transient
    failures never are.
    """

    def __init__(self):
        self._delivered = 0
        self._failed = 0
        self._to_retire = set()
        self._partial = False

    def add(self, outcome: DeliveryOutcome) -> None:
        if outcome.is_delivered:
            self._delivered += 1
            return
        self._failed += 1
        if outcome.reason == FailureReason.PERMANENT_ENDPOINT:
            self._to_retire.add(outcome.endpoint)

    def add_batch(self, batch_result: BatchResult) -> None:
        for outcome in batch_result.outcomes:
            self.add(outcome)
        if batch_result.timed_out:
            self._partial = True

    def add_all(self, batch_results: Iterable[BatchResult]) -> "OutcomeAggregator":
        for batch_result in batch_results:
            self.add_batch(batch_result)
        return self

    def result(self) -> AggregateResult:
        return AggregateResult(
            delivered=self._delivered,
            failed=self._failed,
            endpoints_to_retire=set(self._to_retire),
            partial=self._partial,
        )
