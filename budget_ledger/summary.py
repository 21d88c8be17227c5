"""
Summary Aggregator

Monthly income/expense rollups derived from the transaction log.
"""

from typing import Dict, List

from .ledger_store import LedgerStore
from .models import MonthlySummary, TransactionKind


class SummaryAggregator:

    def __init__(self, store: LedgerStore):
        self.store = store

    def monthly_summary(self, budget_code: str) -> List[MonthlySummary]:
        """
        Totals per period label for one budget.

        Rows are ordered by plain string comparison of the label, so
        "2024-10" sorts after "2024-09" but "Oct" sorts before "Sep".
        """
        groups: Dict[str, MonthlySummary] = {}

        for transaction in self.store.find_transactions_by_tenant(budget_code):
            row = groups.get(transaction.period)
            if row is None:
                row = groups[transaction.period] = MonthlySummary(period=transaction.period)
            if transaction.kind == TransactionKind.INCOME:
                row.total_income += transaction.amount
            else:
                row.total_expense += transaction.amount

        return [groups[period] for period in sorted(groups)]
