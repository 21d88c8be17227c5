"""
Ledger Store

Typed, tenant-scoped persistence for Bank and Transaction records on top of
any StorageInterface backend.
"""

from decimal import Decimal
from datetime import datetime, timezone
from contextlib import contextmanager
from typing import List, Optional
import uuid

from .storage import StorageInterface
from .models import Bank, Transaction, TransactionKind, DEFAULT_BANK_NAME
from .errors import LedgerError, ConflictError, ForbiddenError, InternalFailureError
from .logging_config import get_logger, log_action


class LedgerStore:
    """Bank and transaction persistence scoped by budget code"""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.banks_table = "banks"
        self.transactions_table = "transactions"
        self.logger = get_logger("ledger_store")

    @contextmanager
    def atomic(self):
        """
        Run a block of store calls as one unit.

        Ledger errors raised inside the block propagate unchanged after the
        rollback; anything else is reported as InternalFailureError.
        """
        try:
            with self.storage.atomic():
                yield
        except LedgerError:
            raise
        except Exception as e:
            log_action(
                self.logger, "error", f"Atomic commit failed: {e}",
                action="atomic_commit", extra={"error_type": type(e).__name__}
            )
            raise InternalFailureError(f"Atomic commit could not complete: {e}") from e

    # Banks

    def find_bank(self, budget_code: str, bank_id: str) -> Optional[Bank]:
        """Load a bank visible to ``budget_code``; another tenant's bank reads as absent"""
        bank = self.find_bank_unscoped(bank_id)
        if bank and bank.budget_code == budget_code:
            return bank
        return None

    def find_bank_unscoped(self, bank_id: str) -> Optional[Bank]:
        data = self.storage.load(self.banks_table, bank_id)
        if data:
            return Bank.from_dict(data)
        return None

    def find_banks_by_tenant(self, budget_code: str) -> List[Bank]:
        rows = self.storage.find(self.banks_table, {"budget_code": budget_code})
        return [Bank.from_dict(row) for row in rows]

    def find_bank_by_name(self, budget_code: str, name: str) -> Optional[Bank]:
        rows = self.storage.find(self.banks_table, {"budget_code": budget_code, "name": name})
        if rows:
            return Bank.from_dict(rows[0])
        return None

    def create_bank(self, budget_code: str, name: str,
                    balance: Decimal = Decimal('0'),
                    bank_id: Optional[str] = None) -> Bank:
        """Build and insert a new bank; raises DuplicateRecordError if ``bank_id`` is taken"""
        now = datetime.now(timezone.utc)
        bank = Bank(
            id=bank_id or str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            name=name,
            balance=balance,
            budget_code=budget_code
        )
        self.storage.insert(self.banks_table, bank.id, bank.to_dict())
        return bank

    def save_bank(self, bank: Bank, budget_code: Optional[str] = None) -> None:
        """Persist balance and field changes of an existing bank"""
        if budget_code is not None and bank.budget_code != budget_code:
            raise ForbiddenError(f"Bank {bank.id} belongs to another budget")
        stored = self.find_bank_unscoped(bank.id)
        if stored and stored.budget_code != bank.budget_code:
            raise ForbiddenError(f"Bank {bank.id} belongs to another budget")
        bank.updated_at = datetime.now(timezone.utc)
        self.storage.save(self.banks_table, bank.id, bank.to_dict())

    def delete_bank(self, bank_id: str) -> bool:
        bank = self.find_bank_unscoped(bank_id)
        if bank is None:
            return False
        if bank.name == DEFAULT_BANK_NAME:
            raise ConflictError("Cannot delete default bank")
        return self.storage.delete(self.banks_table, bank_id)

    # Transactions

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        data = self.storage.load(self.transactions_table, transaction_id)
        if data:
            return Transaction.from_dict(data)
        return None

    def get_transaction(self, budget_code: str, transaction_id: str) -> Optional[Transaction]:
        """Load a transaction, refusing one that belongs to another tenant"""
        transaction = self.find_transaction(transaction_id)
        if transaction and transaction.budget_code != budget_code:
            raise ForbiddenError("Forbidden")
        return transaction

    def find_transactions_by_tenant(self, budget_code: str) -> List[Transaction]:
        rows = self.storage.find(self.transactions_table, {"budget_code": budget_code})
        return [Transaction.from_dict(row) for row in rows]

    def find_transactions_by_bank(self, bank_id: str) -> List[Transaction]:
        rows = self.storage.find(self.transactions_table, {"bank_id": bank_id})
        return [Transaction.from_dict(row) for row in rows]

    def create_transaction(
        self,
        bank: Bank,
        budget_code: str,
        kind: TransactionKind,
        amount: Decimal,
        period: str,
        source_name: Optional[str] = None,
        dest_name: Optional[str] = None,
        is_ledger: bool = False
    ) -> Transaction:
        """Insert a transaction against ``bank``; does not touch the bank's balance"""
        if bank.budget_code != budget_code:
            raise ForbiddenError(f"Bank {bank.id} belongs to another budget")

        now = datetime.now(timezone.utc)
        transaction = Transaction(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            kind=kind,
            amount=amount,
            period=period,
            bank_id=bank.id,
            budget_code=budget_code,
            source_name=source_name,
            dest_name=dest_name,
            is_ledger=is_ledger
        )
        self.storage.insert(self.transactions_table, transaction.id, transaction.to_dict())
        return transaction

    def delete_transaction(self, transaction_id: str) -> bool:
        return self.storage.delete(self.transactions_table, transaction_id)
