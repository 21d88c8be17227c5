"""
Transfer endpoint
"""

from fastapi import APIRouter, Depends

from .dependencies import get_ledger_system, require_budget_code
from .schemas import TransferRequest, transaction_to_dict
from ..system import BudgetLedgerSystem


router = APIRouter()


@router.post("")
async def transfer(
    request: TransferRequest,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Move money between two banks; returns the expense and income legs"""
    legs = system.transfers.transfer(
        budget_code,
        source_id=request.source_id,
        dest_id=request.dest_id,
        amount=request.amount,
        period=request.period
    )
    return [transaction_to_dict(leg) for leg in legs]
