"""Tests for endpoint retirement and audit recording."""

from sqlalchemy import text

from pushdesk.delivery.audit import AuditRecorder
from pushdesk.delivery.lifecycle import EndpointLifecycleManager
from pushdesk.delivery.models import AggregateResult
from pushdesk.domain.models import DeliveryRequest, TargetSelector
from pushdesk.persistence import AuditRepository, get_session
from tests.helpers import make_recipients, seed_recipients


class TestEndpointLifecycleManager:
    """Tests for EndpointLifecycleManager.retire()."""

    def test_retire_clears_endpoints(self, database):
        recipients = make_recipients(4)
        seed_recipients(recipients)

        cleared = EndpointLifecycleManager().retire({recipients[0].endpoint, recipients[2].endpoint})

        assert cleared == 2
        with get_session() as session:
            remaining = session.execute(
                text("SELECT uid FROM users WHERE token IS NOT NULL ORDER BY uid")
            ).fetchall()
        assert [row[0] for row in remaining] == ["user-00001", "user-00003"]

    def test_retire_nothing_skips_database(self):
        def session_scope():
            raise AssertionError("no session expected")

        assert EndpointLifecycleManager(session_scope=session_scope).retire(set()) == 0

    def test_retire_twice_is_harmless(self, database):
        recipients = make_recipients(1)
        seed_recipients(recipients)
        manager = EndpointLifecycleManager()

        assert manager.retire({recipients[0].endpoint}) == 1
        assert manager.retire({recipients[0].endpoint}) == 0


class TestAuditRecorder:
    """Tests for AuditRecorder.record()."""

    def test_record_persists_request_and_counts(self, database):
        request = DeliveryRequest(
            title="Hello",
            body="World",
            target=TargetSelector.for_segment("seekers"),
            sent_by="admin@example.com",
        )
        aggregate = AggregateResult(delivered=3, failed=1, partial=True)

        stored = AuditRecorder().record(request, ["a", "b", "c", "d"], aggregate)

        assert stored.id is not None
        with get_session() as session:
            fetched = AuditRepository(session).get(stored.id)
        assert fetched.title == "Hello"
        assert fetched.target_summary == "segment:seekers"
        assert fetched.recipient_identities == ["a", "b", "c", "d"]
        assert (fetched.delivered_count, fetched.failed_count, fetched.targeted_count) == (3, 1, 4)
        assert fetched.partial is True
        assert fetched.sent_by == "admin@example.com"
