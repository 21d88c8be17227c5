"""
Budget Ledger

Per-tenant budget ledger: bank accounts, income/expense transactions,
transfers between banks and monthly rollups. All monetary values use Decimal.
"""

__version__ = "1.0.0"
