"""
Tests for the hash-chained audit trail
"""

from decimal import Decimal

from budget_ledger.storage import InMemoryStorage
from budget_ledger.audit import AuditTrail, AuditEventType


class TestAuditTrail:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.audit_trail = AuditTrail(self.storage)

    def log(self, entity_id="bank_1", budget_code="family", **metadata):
        return self.audit_trail.log_event(
            event_type=AuditEventType.BANK_CREATED,
            entity_type="bank",
            entity_id=entity_id,
            budget_code=budget_code,
            metadata=metadata
        )

    def test_events_are_chained(self):
        first = self.log()
        second = self.log(entity_id="bank_2")

        assert first.sequence == 1
        assert first.previous_hash == ""
        assert second.sequence == 2
        assert second.previous_hash == first.current_hash
        assert first.verify_hash()

    def test_metadata_is_serialized(self):
        event = self.log(amount=Decimal('12.50'), kind=AuditEventType.BANK_DELETED)

        assert event.metadata == {"amount": "12.50", "kind": "bank_deleted"}

    def test_queries(self):
        self.log(entity_id="bank_1")
        self.log(entity_id="bank_2", budget_code="other")
        self.log(entity_id="bank_1")

        assert len(self.audit_trail.get_events_for_entity("bank", "bank_1")) == 2
        assert len(self.audit_trail.get_events_for_budget("other")) == 1
        assert self.audit_trail.get_events_for_budget(
            "family", AuditEventType.BANK_DELETED
        ) == []

    def test_intact_chain_verifies(self):
        for i in range(5):
            self.log(entity_id=f"bank_{i}")

        result = self.audit_trail.verify_integrity()

        assert result['valid']
        assert result['total_events'] == 5
        assert result['hash_errors'] == []
        assert result['chain_breaks'] == []

    def test_tampering_is_detected(self):
        self.log(entity_id="bank_1", name="Savings")
        target = self.log(entity_id="bank_2", name="Checking")
        self.log(entity_id="bank_3", name="Cash")

        stored = self.storage.load("audit_events", target.id)
        stored["metadata"]["name"] = "Offshore"
        self.storage.save("audit_events", target.id, stored)

        result = self.audit_trail.verify_integrity()

        assert not result['valid']
        assert [e['event_id'] for e in result['hash_errors']] == [target.id]

    def test_deleted_event_breaks_chain(self):
        self.log(entity_id="bank_1")
        removed = self.log(entity_id="bank_2")
        self.log(entity_id="bank_3")

        self.storage.delete("audit_events", removed.id)

        result = self.audit_trail.verify_integrity()
        assert not result['valid']
        assert len(result['chain_breaks']) == 1
