"""
Audit Trail Module

Append-only record of committed ledger changes. Each event stores the
SHA-256 digest of its own content and the digest of the event before it,
so editing or removing a stored event is detectable.
"""

import hashlib
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .storage import StorageInterface, StorageRecord


class AuditEventType(Enum):
    BANK_CREATED = "bank_created"
    BANK_DELETED = "bank_deleted"
    BANK_BALANCE_OVERRIDDEN = "bank_balance_overridden"
    DEFAULT_BANK_CREATED = "default_bank_created"
    TRANSACTION_POSTED = "transaction_posted"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSFER_COMPLETED = "transfer_completed"


def _plain(value: Any) -> Any:
    """Reduce metadata values to JSON types"""
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


@dataclass
class AuditEvent(StorageRecord):
    sequence: int
    event_type: AuditEventType
    entity_type: str  # "bank" or "transaction"
    entity_id: str
    budget_code: str
    previous_hash: str
    current_hash: str
    metadata: Dict[str, Any]

    def __post_init__(self):
        self.metadata = _plain(self.metadata or {})

    def calculate_hash(self) -> str:
        """Digest over every field except current_hash"""
        payload = json.dumps({
            'id': self.id,
            'sequence': self.sequence,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'budget_code': self.budget_code,
            'previous_hash': self.previous_hash,
            'metadata': self.metadata,
        }, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(payload.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        return self.current_hash == self.calculate_hash()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditEvent':
        data = dict(data)
        data['event_type'] = AuditEventType(data['event_type'])
        return super().from_dict(data)


class AuditTrail:
    """Hash chain of AuditEvents kept in one storage table"""

    def __init__(self, storage: StorageInterface, table_name: str = "audit_events"):
        self.storage = storage
        self.table_name = table_name

    def _events(self, filters: Optional[Dict[str, Any]] = None) -> List[AuditEvent]:
        rows = self.storage.find(self.table_name, filters) if filters else self.storage.load_all(self.table_name)
        return sorted((AuditEvent.from_dict(row) for row in rows), key=lambda e: e.sequence)

    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        budget_code: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditEvent:
        """
        Append an event to the chain.

        Args:
            event_type: What happened
            entity_type: "bank" or "transaction"
            entity_id: Id of the affected entity
            budget_code: Budget the entity belongs to
            metadata: Event details; Decimals, enums and datetimes are stringified

        Returns:
            The stored AuditEvent
        """
        with self.storage.atomic():
            events = self._events()
            last = events[-1] if events else None
            now = datetime.now(timezone.utc)

            event = AuditEvent(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                sequence=last.sequence + 1 if last else 1,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=entity_id,
                budget_code=budget_code,
                previous_hash=last.current_hash if last else "",
                current_hash="",
                metadata=metadata
            )
            event.current_hash = event.calculate_hash()
            self.storage.insert(self.table_name, event.id, event.to_dict())
            return event

    def get_events_for_entity(self, entity_type: str, entity_id: str) -> List[AuditEvent]:
        return self._events({'entity_type': entity_type, 'entity_id': entity_id})

    def get_events_for_budget(self, budget_code: str,
                              event_type: Optional[AuditEventType] = None) -> List[AuditEvent]:
        filters = {'budget_code': budget_code}
        if event_type is not None:
            filters['event_type'] = event_type.value
        return self._events(filters)

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Walk the chain in sequence order.

        Returns:
            ``valid``, ``total_events``, ``hash_errors`` (events whose stored
            digest no longer matches their content) and ``chain_breaks``
            (events whose previous_hash does not point at the event before)
        """
        events = self._events()
        hash_errors = []
        chain_breaks = []

        expected_previous = ""
        for position, event in enumerate(events):
            if not event.verify_hash():
                hash_errors.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_hash': event.calculate_hash(),
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != expected_previous:
                chain_breaks.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_previous_hash': expected_previous,
                    'actual_previous_hash': event.previous_hash
                })
            expected_previous = event.current_hash

        return {
            'valid': not hash_errors and not chain_breaks,
            'total_events': len(events),
            'hash_errors': hash_errors,
            'chain_breaks': chain_breaks
        }
