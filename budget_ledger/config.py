"""
Configuration Management Module

Settings are read from ``BUDGET_LEDGER_*`` environment variables or a
``.env`` file through pydantic-settings.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class BudgetLedgerConfig(BaseSettings):
    """Budget ledger service configuration"""

    # memory://, sqlite:// (in-memory) or sqlite:///path/to.db
    database_url: str = "sqlite:///budget_ledger.db"

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    cors_origins: List[str] = ["https://imjangoluan8.github.io"]
    budget_code_header: str = "x-budget-code"

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # stderr when unset

    enable_audit_logging: bool = True

    class Config:
        env_prefix = "BUDGET_LEDGER_"
        env_file = ".env"
        case_sensitive = False


config = BudgetLedgerConfig()


def get_config() -> BudgetLedgerConfig:
    return config


def reload_config() -> BudgetLedgerConfig:
    """Re-read settings from the environment and replace the module-level instance"""
    global config
    config = BudgetLedgerConfig()
    return config
