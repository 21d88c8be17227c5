"""
Request dependencies: the ledger system instance and the budget code header
"""

from typing import Optional

from fastapi import HTTPException, Request

from ..config import get_config
from ..system import BudgetLedgerSystem


_ledger_system: Optional[BudgetLedgerSystem] = None


def get_ledger_system() -> BudgetLedgerSystem:
    """Global ledger system, created from configuration on first use"""
    global _ledger_system
    if _ledger_system is None:
        _ledger_system = BudgetLedgerSystem()
    return _ledger_system


def require_budget_code(request: Request) -> str:
    """Tenant scope of the request; every ledger route requires it"""
    code = request.headers.get(get_config().budget_code_header)
    if not code:
        raise HTTPException(status_code=400, detail="Budget code required")
    return code
