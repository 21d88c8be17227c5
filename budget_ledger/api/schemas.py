"""
Pydantic schemas for API requests and response serializers.

Request models accept both snake_case names and the camelCase names used by
the budget frontend (``type``, ``month``, ``bankId``, ...).
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..models import Bank, Transaction


class CreateBankRequest(BaseModel):
    name: Optional[str] = None
    # Accepted for compatibility; new banks always start at zero
    balance: Optional[Decimal] = None


class UpdateBalanceRequest(BaseModel):
    balance: Optional[Decimal] = None


class CreateTransactionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    kind: Optional[str] = Field(None, alias="type", description="income or expense")
    amount: Optional[Decimal] = None
    period: Optional[str] = Field(None, alias="month", description="Grouping label, e.g. 2024-01")
    bank_id: Optional[str] = Field(None, alias="bankId")
    is_ledger: bool = Field(False, alias="isLedger")
    source_name: Optional[str] = Field(None, alias="sourceName")
    dest_name: Optional[str] = Field(None, alias="destName")


class TransferRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: Optional[str] = Field(None, alias="sourceId")
    dest_id: Optional[str] = Field(None, alias="destId")
    amount: Optional[Decimal] = None
    period: Optional[str] = Field(None, alias="month")


def bank_to_dict(bank: Bank) -> Dict[str, Any]:
    return {
        "id": bank.id,
        "name": bank.name,
        "balance": str(bank.balance),
        "budget_code": bank.budget_code,
        "is_default": bank.is_default,
        "created_at": bank.created_at.isoformat()
    }


def transaction_to_dict(transaction: Transaction, bank_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": transaction.id,
        "kind": transaction.kind.value,
        "amount": str(transaction.amount),
        "period": transaction.period,
        "bank_id": transaction.bank_id,
        "bank_name": bank_name,
        "source_name": transaction.source_name,
        "dest_name": transaction.dest_name,
        "is_ledger": transaction.is_ledger,
        "budget_code": transaction.budget_code,
        "created_at": transaction.created_at.isoformat()
    }
