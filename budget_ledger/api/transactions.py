"""
Transaction endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_ledger_system, require_budget_code
from .schemas import CreateTransactionRequest, transaction_to_dict
from ..system import BudgetLedgerSystem


router = APIRouter()


@router.get("")
async def list_transactions(
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """List the budget's transactions with their bank names"""
    system.bootstrapper.ensure_default_bank(budget_code)
    return [
        transaction_to_dict(transaction, bank_name)
        for transaction, bank_name in system.bank_manager.list_transactions(budget_code)
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: CreateTransactionRequest,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Post an income or expense; without bankId it goes to the default bank"""
    if not request.bank_id:
        system.bootstrapper.ensure_default_bank(budget_code)
    transaction = system.balances.post_transaction(
        budget_code,
        kind=request.kind,
        amount=request.amount,
        period=request.period,
        bank_id=request.bank_id,
        source_name=request.source_name,
        dest_name=request.dest_name,
        is_ledger=request.is_ledger
    )
    return transaction_to_dict(transaction)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Delete a transaction and reverse its balance effect"""
    system.balances.reverse_and_delete_transaction(budget_code, transaction_id)
    return {"message": "Deleted"}
