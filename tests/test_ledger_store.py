"""
Tests for the tenant-scoped ledger store
"""

import pytest
from decimal import Decimal

from budget_ledger.storage import InMemoryStorage
from budget_ledger.ledger_store import LedgerStore
from budget_ledger.models import Bank, TransactionKind, DEFAULT_BANK_NAME
from budget_ledger.errors import ConflictError, ForbiddenError, InternalFailureError


class TestBanks:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.store = LedgerStore(self.storage)

    def test_create_and_find_bank(self):
        bank = self.store.create_bank("family", "Savings")

        found = self.store.find_bank("family", bank.id)
        assert found is not None
        assert found.name == "Savings"
        assert found.balance == Decimal('0')
        assert found.balance_baseline == Decimal('0')
        assert found.budget_code == "family"

    def test_find_bank_is_tenant_scoped(self):
        bank = self.store.create_bank("family", "Savings")

        assert self.store.find_bank("other", bank.id) is None
        assert self.store.find_bank_unscoped(bank.id) is not None

    def test_find_banks_by_tenant(self):
        self.store.create_bank("family", "A")
        self.store.create_bank("family", "B")
        self.store.create_bank("other", "C")

        names = [b.name for b in self.store.find_banks_by_tenant("family")]
        assert names == ["A", "B"]

    def test_find_bank_by_name(self):
        bank = self.store.create_bank("family", "Savings")
        self.store.create_bank("other", "Savings")

        assert self.store.find_bank_by_name("family", "Savings").id == bank.id
        assert self.store.find_bank_by_name("family", "Missing") is None

    def test_save_bank_persists_balance(self):
        bank = self.store.create_bank("family", "Savings")
        bank.balance = Decimal('12.34')
        self.store.save_bank(bank, "family")

        assert self.store.find_bank("family", bank.id).balance == Decimal('12.34')

    def test_save_bank_rejects_other_tenant(self):
        bank = self.store.create_bank("family", "Savings")

        with pytest.raises(ForbiddenError):
            self.store.save_bank(bank, "other")

    def test_save_bank_cannot_move_tenant(self):
        bank = self.store.create_bank("family", "Savings")
        bank.budget_code = "other"

        with pytest.raises(ForbiddenError):
            self.store.save_bank(bank)

    def test_delete_bank(self):
        bank = self.store.create_bank("family", "Savings")

        assert self.store.delete_bank(bank.id)
        assert self.store.find_bank("family", bank.id) is None
        assert not self.store.delete_bank(bank.id)

    def test_delete_default_bank_conflicts(self):
        bank = self.store.create_bank("family", DEFAULT_BANK_NAME)

        with pytest.raises(ConflictError, match="Cannot delete default bank"):
            self.store.delete_bank(bank.id)

        assert self.store.find_bank("family", bank.id) is not None


class TestTransactions:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.store = LedgerStore(self.storage)
        self.bank = self.store.create_bank("family", "Savings")

    def test_create_and_find_transaction(self):
        transaction = self.store.create_transaction(
            self.bank, "family", TransactionKind.INCOME, Decimal('100'), "2024-01"
        )

        found = self.store.find_transaction(transaction.id)
        assert found.kind == TransactionKind.INCOME
        assert found.amount == Decimal('100')
        assert found.period == "2024-01"
        assert found.bank_id == self.bank.id
        assert found.is_ledger is False
        assert found.source_name is None

    def test_create_transaction_does_not_touch_balance(self):
        self.store.create_transaction(
            self.bank, "family", TransactionKind.INCOME, Decimal('100'), "2024-01"
        )

        assert self.store.find_bank("family", self.bank.id).balance == Decimal('0')

    def test_create_transaction_rejects_foreign_bank(self):
        with pytest.raises(ForbiddenError):
            self.store.create_transaction(
                self.bank, "other", TransactionKind.INCOME, Decimal('1'), "2024-01"
            )

    def test_get_transaction_checks_tenant(self):
        transaction = self.store.create_transaction(
            self.bank, "family", TransactionKind.EXPENSE, Decimal('5'), "2024-01"
        )

        assert self.store.get_transaction("family", transaction.id).id == transaction.id
        assert self.store.get_transaction("family", "missing") is None
        with pytest.raises(ForbiddenError):
            self.store.get_transaction("other", transaction.id)

    def test_find_by_tenant_and_bank(self):
        other_bank = self.store.create_bank("family", "Checking")
        self.store.create_transaction(self.bank, "family", TransactionKind.INCOME, Decimal('1'), "p")
        self.store.create_transaction(other_bank, "family", TransactionKind.INCOME, Decimal('2'), "p")

        assert len(self.store.find_transactions_by_tenant("family")) == 2
        assert len(self.store.find_transactions_by_tenant("other")) == 0
        by_bank = self.store.find_transactions_by_bank(other_bank.id)
        assert [t.amount for t in by_bank] == [Decimal('2')]

    def test_delete_transaction(self):
        transaction = self.store.create_transaction(
            self.bank, "family", TransactionKind.INCOME, Decimal('1'), "p"
        )

        assert self.store.delete_transaction(transaction.id)
        assert self.store.find_transaction(transaction.id) is None

    def test_negative_amount_rejected_by_model(self):
        with pytest.raises(ValueError, match="must not be negative"):
            self.store.create_transaction(
                self.bank, "family", TransactionKind.INCOME, Decimal('-1'), "p"
            )


class TestAtomic:

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.store = LedgerStore(self.storage)

    def test_unexpected_error_becomes_internal_failure(self):
        with pytest.raises(InternalFailureError):
            with self.store.atomic():
                self.store.create_bank("family", "Savings")
                raise OSError("disk gone")

        assert self.store.find_banks_by_tenant("family") == []

    def test_ledger_errors_pass_through(self):
        with pytest.raises(ConflictError):
            with self.store.atomic():
                self.store.create_bank("family", "Savings")
                raise ConflictError("nope")

        assert self.store.find_banks_by_tenant("family") == []

    def test_bank_round_trip(self):
        bank = self.store.create_bank("family", "Savings", balance=Decimal('-3.50'))
        loaded = Bank.from_dict(self.storage.load("banks", bank.id))

        assert loaded == bank
