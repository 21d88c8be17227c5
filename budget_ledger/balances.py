"""
Balance Mutation Engine

Posts and reverses single transactions. Each operation writes the
transaction record and the bank balance inside one atomic unit, so a bank's
balance always equals its baseline plus the signed sum of its transactions.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from .ledger_store import LedgerStore
from .bootstrap import DefaultBankBootstrapper
from .models import Bank, Transaction, TransactionKind
from .audit import AuditTrail, AuditEventType
from .errors import InvalidRequestError, NotFoundError
from .logging_config import get_logger, log_action


def parse_amount(value: Any, field_name: str = "amount") -> Decimal:
    """Convert caller input to a non-negative, finite Decimal"""
    if value is None or value == "":
        raise InvalidRequestError(f"Missing {field_name}")
    if isinstance(value, bool):
        raise InvalidRequestError(f"Invalid {field_name}: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise InvalidRequestError(f"Invalid {field_name}: {value!r}")
    if not amount.is_finite():
        raise InvalidRequestError(f"Invalid {field_name}: {value!r}")
    if amount < 0:
        raise InvalidRequestError(f"{field_name} must not be negative")
    return amount


def parse_kind(value: Union[str, TransactionKind, None]) -> TransactionKind:
    if isinstance(value, TransactionKind):
        return value
    try:
        return TransactionKind(value)
    except ValueError:
        raise InvalidRequestError(f"Transaction type must be 'income' or 'expense', got {value!r}")


class BalanceMutationEngine:

    def __init__(
        self,
        store: LedgerStore,
        bootstrapper: DefaultBankBootstrapper,
        audit_trail: Optional[AuditTrail] = None
    ):
        self.store = store
        self.bootstrapper = bootstrapper
        self.audit_trail = audit_trail
        self.logger = get_logger("balances")

    def _resolve_bank(self, budget_code: str, bank_id: str) -> Bank:
        bank = self.store.find_bank(budget_code, bank_id)
        if bank is None:
            raise NotFoundError("Bank not found")
        return bank

    def post_transaction(
        self,
        budget_code: str,
        kind: Union[str, TransactionKind],
        amount: Any,
        period: str,
        bank_id: Optional[str] = None,
        source_name: Optional[str] = None,
        dest_name: Optional[str] = None,
        is_ledger: bool = False
    ) -> Transaction:
        """
        Record an income or expense and apply it to the bank's balance.

        Args:
            budget_code: Tenant scope
            kind: "income" or "expense"
            amount: Non-negative magnitude
            period: Grouping label, e.g. "2024-01"
            bank_id: Target bank; the tenant's default bank when omitted
            source_name: Free-text label for transfer-style postings
            dest_name: Free-text label for transfer-style postings
            is_ledger: Marks the posting as a ledger leg

        Returns:
            The created Transaction

        Raises:
            InvalidRequestError: bad kind, amount or period
            NotFoundError: bank_id is not a bank of this tenant
        """
        kind = parse_kind(kind)
        amount = parse_amount(amount)
        if not period:
            raise InvalidRequestError("Missing month")
        if not bank_id:
            # ensure_default_bank writes an audit event; audit writes stay outside atomic units
            bank_id = self.bootstrapper.ensure_default_bank(budget_code).id

        with self.store.atomic():
            bank = self._resolve_bank(budget_code, bank_id)
            transaction = self.store.create_transaction(
                bank, budget_code, kind, amount, period,
                source_name=source_name,
                dest_name=dest_name,
                is_ledger=bool(is_ledger)
            )
            bank.balance += kind.signed(amount)
            self.store.save_bank(bank, budget_code)

        log_action(
            self.logger, "info", f"Transaction posted: {kind.value} {amount}",
            budget_code=budget_code, action="post_transaction",
            resource=f"transaction:{transaction.id}",
            extra={"bank_id": bank.id, "period": period, "new_balance": str(bank.balance)}
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSACTION_POSTED,
                entity_type="transaction",
                entity_id=transaction.id,
                budget_code=budget_code,
                metadata={
                    "bank_id": bank.id,
                    "kind": kind,
                    "amount": amount,
                    "period": period
                }
            )
        return transaction

    def reverse_and_delete_transaction(self, budget_code: str, transaction_id: str) -> None:
        """
        Undo a transaction's balance effect and delete it.

        A transaction whose bank has since been deleted is removed without a
        balance change.

        Raises:
            NotFoundError: no such transaction
            ForbiddenError: the transaction belongs to another tenant
        """
        with self.store.atomic():
            transaction = self.store.get_transaction(budget_code, transaction_id)
            if transaction is None:
                raise NotFoundError("Not found")

            bank = self.store.find_bank(budget_code, transaction.bank_id)
            if bank is not None:
                bank.balance -= transaction.signed_amount
                self.store.save_bank(bank, budget_code)
            self.store.delete_transaction(transaction.id)

        if bank is None:
            log_action(
                self.logger, "warning", "Deleted transaction of a removed bank",
                budget_code=budget_code, action="delete_transaction",
                resource=f"transaction:{transaction.id}",
                extra={"bank_id": transaction.bank_id}
            )
        else:
            log_action(
                self.logger, "info", f"Transaction reversed: {transaction.kind.value} {transaction.amount}",
                budget_code=budget_code, action="delete_transaction",
                resource=f"transaction:{transaction.id}",
                extra={"bank_id": bank.id, "new_balance": str(bank.balance)}
            )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSACTION_DELETED,
                entity_type="transaction",
                entity_id=transaction.id,
                budget_code=budget_code,
                metadata={
                    "bank_id": transaction.bank_id,
                    "kind": transaction.kind,
                    "amount": transaction.amount,
                    "period": transaction.period
                }
            )
