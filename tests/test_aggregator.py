"""Tests for outcome aggregation."""

from pushdesk.delivery.aggregator import OutcomeAggregator
from pushdesk.delivery.models import BatchResult, DeliveryOutcome, FailureReason
from tests.helpers import make_recipients


def _batch(index, outcomes, timed_out=False):
    return BatchResult(batch_index=index, outcomes=outcomes, attempts=1, timed_out=timed_out)


class TestOutcomeAggregator:
    """Tests for OutcomeAggregator."""

    def test_empty_aggregate_is_zero(self):
        result = OutcomeAggregator().result()

        assert (result.delivered, result.failed, result.targeted) == (0, 0, 0)
        assert result.endpoints_to_retire == set()
        assert result.partial is False

    def test_counts_sum_to_targeted(self):
        recipients = make_recipients(5)
        outcomes = [
            DeliveryOutcome.delivered(recipients[0]),
            DeliveryOutcome.delivered(recipients[1]),
            DeliveryOutcome.failed(recipients[2], FailureReason.TRANSIENT, "unavailable"),
            DeliveryOutcome.failed(recipients[3], FailureReason.PERMANENT_ENDPOINT, "unregistered"),
            DeliveryOutcome.delivered(recipients[4]),
        ]
        result = OutcomeAggregator().add_all([_batch(0, outcomes)]).result()

        assert result.delivered == 3
        assert result.failed == 2
        assert result.targeted == 5

    def test_only_permanent_failures_are_retired(self):
        recipients = make_recipients(3)
        outcomes = [
            DeliveryOutcome.failed(recipients[0], FailureReason.TRANSIENT, "unavailable"),
            DeliveryOutcome.failed(recipients[1], FailureReason.PERMANENT_ENDPOINT, "unregistered"),
            DeliveryOutcome.failed(recipients[2], FailureReason.TRANSIENT, "quota-exceeded"),
        ]
        result = OutcomeAggregator().add_all([_batch(0, outcomes)]).result()

        assert result.endpoints_to_retire == {recipients[1].endpoint}

    def test_order_does_not_matter(self):
        recipients = make_recipients(4)
        first = _batch(0, [DeliveryOutcome.delivered(r) for r in recipients[:2]])
        second = _batch(
            1,
            [DeliveryOutcome.failed(r, FailureReason.PERMANENT_ENDPOINT, "unregistered") for r in recipients[2:]],
        )

        forward = OutcomeAggregator().add_all([first, second]).result()
        backward = OutcomeAggregator().add_all([second, first]).result()

        assert forward == backward

    def test_timed_out_batch_marks_partial(self):
        recipients = make_recipients(2)
        aggregator = OutcomeAggregator()
        aggregator.add_batch(_batch(0, [DeliveryOutcome.delivered(recipients[0])]))
        aggregator.add_batch(
            _batch(1, [DeliveryOutcome.failed(recipients[1], FailureReason.TRANSIENT, "timeout")], timed_out=True)
        )

        result = aggregator.result()
        assert result.partial is True
        assert result.delivered == 1
        assert result.failed == 1
        assert result.endpoints_to_retire == set()

    def test_result_is_a_snapshot(self):
        recipients = make_recipients(2)
        aggregator = OutcomeAggregator()
        aggregator.add(DeliveryOutcome.failed(recipients[0], FailureReason.PERMANENT_ENDPOINT, "unregistered"))
        snapshot = aggregator.result()

        aggregator.add(DeliveryOutcome.failed(recipients[1], FailureReason.PERMANENT_ENDPOINT, "unregistered"))

        assert snapshot.failed == 1
        assert snapshot.endpoints_to_retire == {recipients[0].endpoint}
