"""
Transfer Protocol

Moves money between two banks of the same budget. The two balance updates
and the two transaction legs are written in one atomic unit: either all
four are visible afterwards or none are.
"""

from decimal import Decimal
from typing import Any, List, Optional

from .ledger_store import LedgerStore
from .balances import parse_amount
from .models import Transaction, TransactionKind
from .audit import AuditTrail, AuditEventType
from .errors import InvalidRequestError, NotFoundError, InsufficientFundsError
from .logging_config import get_logger, log_action


class TransferProtocol:

    def __init__(self, store: LedgerStore, audit_trail: Optional[AuditTrail] = None):
        self.store = store
        self.audit_trail = audit_trail
        self.logger = get_logger("transfers")

    def _validate(self, source_id: Any, dest_id: Any, amount: Any, period: Any) -> Decimal:
        if not source_id or not dest_id or not period or amount is None or amount == "":
            raise InvalidRequestError("Missing data")
        amount = parse_amount(amount)
        if amount == 0:
            raise InvalidRequestError("Missing data")
        if source_id == dest_id:
            raise InvalidRequestError("Source and destination banks must differ")
        return amount

    def transfer(
        self,
        budget_code: str,
        source_id: str,
        dest_id: str,
        amount: Any,
        period: str
    ) -> List[Transaction]:
        """
        Transfer ``amount`` from one bank to another.

        Returns:
            [expense leg on the source bank, income leg on the destination bank]

        Raises:
            InvalidRequestError: a field is missing or the amount is invalid
            NotFoundError: either bank is not a bank of this tenant
            InsufficientFundsError: amount exceeds the source balance
        """
        amount = self._validate(source_id, dest_id, amount, period)

        try:
            with self.store.atomic():
                source = self.store.find_bank(budget_code, source_id)
                dest = self.store.find_bank(budget_code, dest_id)
                if source is None or dest is None:
                    raise NotFoundError("Bank not found")
                if amount > source.balance:
                    raise InsufficientFundsError("Insufficient balance")

                source.balance -= amount
                dest.balance += amount
                self.store.save_bank(source, budget_code)
                self.store.save_bank(dest, budget_code)

                expense_leg = self.store.create_transaction(
                    source, budget_code, TransactionKind.EXPENSE, amount, period,
                    source_name=source.name,
                    dest_name=dest.name,
                    is_ledger=not source.is_default
                )
                income_leg = self.store.create_transaction(
                    dest, budget_code, TransactionKind.INCOME, amount, period,
                    source_name=source.name,
                    dest_name=dest.name,
                    is_ledger=not dest.is_default
                )
        except (NotFoundError, InsufficientFundsError) as e:
            log_action(
                self.logger, "warning", f"Transfer rejected: {e.message}",
                budget_code=budget_code, action="transfer",
                extra={"source_id": source_id, "dest_id": dest_id, "amount": str(amount)}
            )
            raise

        log_action(
            self.logger, "info", f"Transfer completed: {amount} from {source.name} to {dest.name}",
            budget_code=budget_code, action="transfer",
            extra={
                "source_id": source.id,
                "dest_id": dest.id,
                "period": period,
                "expense_leg": expense_leg.id,
                "income_leg": income_leg.id
            }
        )
        if self.audit_trail:
            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSFER_COMPLETED,
                entity_type="bank",
                entity_id=source.id,
                budget_code=budget_code,
                metadata={
                    "dest_id": dest.id,
                    "amount": amount,
                    "period": period,
                    "legs": [expense_leg.id, income_leg.id]
                }
            )
        return [expense_leg, income_leg]
