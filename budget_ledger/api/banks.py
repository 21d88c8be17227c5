"""
Bank endpoints
"""

from fastapi import APIRouter, Depends, status

from .dependencies import get_ledger_system, require_budget_code
from .schemas import CreateBankRequest, UpdateBalanceRequest, bank_to_dict
from ..system import BudgetLedgerSystem


router = APIRouter()


@router.get("")
async def list_banks(
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """List the budget's banks, creating the default bank if needed"""
    system.bootstrapper.ensure_default_bank(budget_code)
    return [bank_to_dict(bank) for bank in system.bank_manager.list_banks(budget_code)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bank(
    request: CreateBankRequest,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Add a bank"""
    bank = system.bank_manager.create_bank(budget_code, request.name)
    return bank_to_dict(bank)


@router.delete("/{bank_id}")
async def delete_bank(
    bank_id: str,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Delete a bank other than the default bank"""
    system.bank_manager.delete_bank(budget_code, bank_id)
    return {"message": "Deleted"}


@router.patch("/{bank_id}")
async def override_bank_balance(
    bank_id: str,
    request: UpdateBalanceRequest,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Administrative override of a bank's balance"""
    bank = system.bank_manager.override_balance(budget_code, bank_id, request.balance)
    return bank_to_dict(bank)


@router.get("/{bank_id}/reconciliation")
async def reconcile_bank(
    bank_id: str,
    budget_code: str = Depends(require_budget_code),
    system: BudgetLedgerSystem = Depends(get_ledger_system)
):
    """Check a bank's balance against its transactions"""
    return system.bank_manager.reconcile_bank(budget_code, bank_id).to_dict()
