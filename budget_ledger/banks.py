"""
Bank Management Module

Bank lifecycle for one budget: listing, creation, deletion, the
administrative balance override and balance reconciliation.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from .ledger_store import LedgerStore
from .models import Bank, Transaction, Reconciliation, DEFAULT_BANK_NAME
from .audit import AuditTrail, AuditEventType
from .errors import InvalidRequestError, NotFoundError, ForbiddenError, ConflictError
from .logging_config import get_logger, log_action


class BankManager:

    def __init__(self, store: LedgerStore, audit_trail: Optional[AuditTrail] = None):
        self.store = store
        self.audit_trail = audit_trail
        self.logger = get_logger("banks")

    def list_banks(self, budget_code: str) -> List[Bank]:
        return self.store.find_banks_by_tenant(budget_code)

    def create_bank(self, budget_code: str, name: str) -> Bank:
        """Create a bank with a zero balance; the default bank's name is reserved"""
        name = (name or "").strip()
        if not name:
            raise InvalidRequestError("Bank name required")
        if name == DEFAULT_BANK_NAME:
            raise ConflictError("Default bank already exists")

        with self.store.atomic():
            bank = self.store.create_bank(budget_code, name)

        log_action(
            self.logger, "info", f"Bank created: {name}",
            budget_code=budget_code, action="create_bank", resource=f"bank:{bank.id}"
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.BANK_CREATED,
                entity_type="bank",
                entity_id=bank.id,
                budget_code=budget_code,
                metadata={"name": name}
            )
        return bank

    def delete_bank(self, budget_code: str, bank_id: str) -> None:
        """
        Delete a non-default bank. Its transactions are kept.

        Raises:
            NotFoundError: no such bank
            ForbiddenError: the bank belongs to another budget
            ConflictError: the bank is the default bank
        """
        with self.store.atomic():
            bank = self.store.find_bank_unscoped(bank_id)
            if bank is None:
                raise NotFoundError("Bank not found")
            if bank.budget_code != budget_code:
                raise ForbiddenError("Forbidden")
            if bank.is_default:
                raise ConflictError("Cannot delete default bank")
            self.store.delete_bank(bank_id)

        log_action(
            self.logger, "info", f"Bank deleted: {bank.name}",
            budget_code=budget_code, action="delete_bank", resource=f"bank:{bank.id}",
            extra={"balance": str(bank.balance)}
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.BANK_DELETED,
                entity_type="bank",
                entity_id=bank.id,
                budget_code=budget_code,
                metadata={"name": bank.name, "balance": bank.balance}
            )

    def override_balance(self, budget_code: str, bank_id: str, balance: Any) -> Bank:
        """
        Administrative override: set a bank's balance directly.

        The balance no longer follows from the transaction log alone, so the
        bank is re-based: its baseline absorbs the difference and later
        reconciliations measure drift from the overridden value.
        """
        if balance is None or balance == "" or isinstance(balance, bool):
            raise InvalidRequestError("Missing balance")
        try:
            new_balance = Decimal(str(balance))
        except InvalidOperation:
            raise InvalidRequestError(f"Invalid balance: {balance!r}")
        if not new_balance.is_finite():
            raise InvalidRequestError(f"Invalid balance: {balance!r}")

        with self.store.atomic():
            bank = self.store.find_bank(budget_code, bank_id)
            if bank is None:
                raise NotFoundError("Bank not found")
            old_balance = bank.balance
            posted = sum(
                (t.signed_amount for t in self.store.find_transactions_by_bank(bank.id)),
                Decimal('0')
            )
            bank.balance = new_balance
            bank.balance_baseline = new_balance - posted
            self.store.save_bank(bank, budget_code)

        log_action(
            self.logger, "warning", f"Balance overridden on {bank.name}",
            budget_code=budget_code, action="override_balance", resource=f"bank:{bank.id}",
            extra={"old_balance": str(old_balance), "new_balance": str(new_balance)}
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.BANK_BALANCE_OVERRIDDEN,
                entity_type="bank",
                entity_id=bank.id,
                budget_code=budget_code,
                metadata={
                    "old_balance": old_balance,
                    "new_balance": new_balance,
                    "baseline": bank.balance_baseline
                }
            )
        return bank

    def list_transactions(self, budget_code: str) -> List[Tuple[Transaction, Optional[str]]]:
        """Transactions of a budget paired with their bank's name (None if the bank is gone)"""
        names = {bank.id: bank.name for bank in self.store.find_banks_by_tenant(budget_code)}
        return [
            (transaction, names.get(transaction.bank_id))
            for transaction in self.store.find_transactions_by_tenant(budget_code)
        ]

    def reconcile_bank(self, budget_code: str, bank_id: str) -> Reconciliation:
        """Compare a bank's stored balance with baseline + signed transaction sum"""
        bank = self.store.find_bank(budget_code, bank_id)
        if bank is None:
            raise NotFoundError("Bank not found")

        transactions = self.store.find_transactions_by_bank(bank.id)
        expected = bank.balance_baseline + sum(
            (t.signed_amount for t in transactions), Decimal('0')
        )
        return Reconciliation(
            bank_id=bank.id,
            actual=bank.balance,
            expected=expected,
            transaction_count=len(transactions)
        )
