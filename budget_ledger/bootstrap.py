"""
Default bank bootstrapping.

Every budget code owns exactly one "Payroll Bank(RBANK)". The bank's id is
derived from the budget code, so the store's primary key acts as the
uniqueness constraint and concurrent first calls cannot create two.
"""

from typing import Optional
import uuid

from .ledger_store import LedgerStore
from .models import Bank, DEFAULT_BANK_NAME
from .storage import DuplicateRecordError
from .audit import AuditTrail, AuditEventType
from .errors import InternalFailureError
from .logging_config import get_logger, log_action


DEFAULT_BANK_NAMESPACE = uuid.UUID("6f1c2a52-9a0e-4c58-b7f4-2d1f3c8e5a90")


def default_bank_id(budget_code: str) -> str:
    """Deterministic id of the canonical bank for ``budget_code``"""
    return str(uuid.uuid5(DEFAULT_BANK_NAMESPACE, f"{budget_code}:{DEFAULT_BANK_NAME}"))


class DefaultBankBootstrapper:

    def __init__(self, store: LedgerStore, audit_trail: Optional[AuditTrail] = None):
        self.store = store
        self.audit_trail = audit_trail
        self.logger = get_logger("bootstrap")

    def ensure_default_bank(self, budget_code: str) -> Bank:
        """Return the tenant's canonical bank, creating it with a zero balance if absent"""
        bank = self.store.find_bank_by_name(budget_code, DEFAULT_BANK_NAME)
        if bank:
            return bank

        try:
            bank = self.store.create_bank(
                budget_code, DEFAULT_BANK_NAME, bank_id=default_bank_id(budget_code)
            )
        except DuplicateRecordError:
            # Lost the race to a concurrent caller
            bank = self.store.find_bank(budget_code, default_bank_id(budget_code))
            if bank is None:
                raise InternalFailureError("Default bank could not be created")
            return bank

        log_action(
            self.logger, "info", "Default bank created",
            budget_code=budget_code, action="create_default_bank",
            resource=f"bank:{bank.id}"
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.DEFAULT_BANK_CREATED,
                entity_type="bank",
                entity_id=bank.id,
                budget_code=budget_code,
                metadata={"name": bank.name}
            )
        return bank
