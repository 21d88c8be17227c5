"""
Ledger Data Model

Banks, transactions and monthly summary rows. Amounts and balances are
Decimal; the sign of a transaction comes from its kind, never its amount.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Any, Dict, Optional
from enum import Enum

from .storage import StorageRecord


DEFAULT_BANK_NAME = "Payroll Bank(RBANK)"


class TransactionKind(Enum):
    """Direction of a transaction's effect on its bank"""
    INCOME = "income"
    EXPENSE = "expense"

    def signed(self, amount: Decimal) -> Decimal:
        """Balance effect of posting ``amount`` with this kind"""
        return amount if self is TransactionKind.INCOME else -amount


@dataclass
class Bank(StorageRecord):
    """
    A named account belonging to one budget code.

    ``balance_baseline`` is the part of the balance not explained by the
    transaction log. It stays zero unless an administrative override has
    re-based the bank.
    """
    name: str
    balance: Decimal
    budget_code: str
    balance_baseline: Decimal = Decimal('0')

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_BANK_NAME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bank':
        data = dict(data)
        data['balance'] = Decimal(str(data['balance']))
        data['balance_baseline'] = Decimal(str(data.get('balance_baseline', '0')))
        return super().from_dict(data)


@dataclass
class Transaction(StorageRecord):
    """An income or expense posted against a bank"""
    kind: TransactionKind
    amount: Decimal
    period: str
    bank_id: str
    budget_code: str
    source_name: Optional[str] = None
    dest_name: Optional[str] = None
    is_ledger: bool = False

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Transaction amount must not be negative")

    @property
    def signed_amount(self) -> Decimal:
        return self.kind.signed(self.amount)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        data = dict(data)
        data['kind'] = TransactionKind(data['kind'])
        data['amount'] = Decimal(str(data['amount']))
        return super().from_dict(data)


@dataclass
class MonthlySummary:
    """Totals for one period label"""
    period: str
    total_income: Decimal = Decimal('0')
    total_expense: Decimal = Decimal('0')

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period": self.period,
            "total_income": str(self.total_income),
            "total_expense": str(self.total_expense),
            "balance": str(self.balance),
        }


@dataclass
class Reconciliation:
    """Result of checking a bank's balance against its transaction log"""
    bank_id: str
    actual: Decimal
    expected: Decimal
    transaction_count: int

    @property
    def drift(self) -> Decimal:
        return self.actual - self.expected

    @property
    def consistent(self) -> bool:
        return self.drift == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bank_id": self.bank_id,
            "actual": str(self.actual),
            "expected": str(self.expected),
            "drift": str(self.drift),
            "consistent": self.consistent,
            "transaction_count": self.transaction_count,
        }