"""
Monthly summary endpoint
"""

from fastapi import APIRouter, Depends

from .dependencies import get_ledger_system, require_budget_code
from ..system import BudgetLedgerSystem


router = APIRouter()


@router.get("")
async def monthly_summary(
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Income, expense and net balance per month label"""
    return [row.to_dict() for row in system.summary.monthly_summary(budget_code)]
