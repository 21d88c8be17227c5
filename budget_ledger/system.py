"""
Ledger system wiring.

Builds the store, the audit trail and the core components over one storage
backend.
"""

from typing import Optional

from .config import get_config
from .storage import StorageInterface, create_storage
from .ledger_store import LedgerStore
from .audit import AuditTrail
from .bootstrap import DefaultBankBootstrapper
from .balances import BalanceMutationEngine
from .transfers import TransferProtocol
from .summary import SummaryAggregator
from .banks import BankManager


class BudgetLedgerSystem:
    """Budget ledger with all components initialized"""

    def __init__(self, storage: Optional[StorageInterface] = None,
                 enable_audit: Optional[bool] = None):
        config = get_config()
        if storage is None:
            storage = create_storage(config.database_url)
        if enable_audit is None:
            enable_audit = config.enable_audit_logging

        self.storage = storage
        self.audit_trail = AuditTrail(self.storage) if enable_audit else None
        self.store = LedgerStore(self.storage)
        self.bootstrapper = DefaultBankBootstrapper(self.store, self.audit_trail)
        self.balances = BalanceMutationEngine(self.store, self.bootstrapper, self.audit_trail)
        self.transfers = TransferProtocol(self.store, self.audit_trail)
        self.summary = SummaryAggregator(self.store)
        self.bank_manager = BankManager(self.store, self.audit_trail)

    def close(self) -> None:
        self.storage.close()
