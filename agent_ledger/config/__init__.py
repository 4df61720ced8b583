"""Configuration package."""

from agent_ledger.config.settings import (
    SUPPORTED_PROVIDERS,
    AppSettings,
    LedgerSettings,
    ManufactSettings,
    PuzzleSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SUPPORTED_PROVIDERS",
    "AppSettings",
    "LedgerSettings",
    "ManufactSettings",
    "PuzzleSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
