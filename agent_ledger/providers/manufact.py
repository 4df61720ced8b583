"""
Manufact Ledger Provider (not implemented)

The backend is wired into the factory so it can be selected, but no remote
calls exist yet. Every operation first checks configuration, then raises
NOT_IMPLEMENTED.
"""

from typing import Optional

from pydantic import ValidationError

from agent_ledger.config import ManufactSettings
from agent_ledger.ledger.errors import (
    NotImplementedLedgerError,
    ProviderNotConfiguredError,
)
from agent_ledger.models.ledger import (
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    TrackExpenseInput,
    TrackExpenseResult,
)
from agent_ledger.providers.interface import LedgerProvider


class ManufactLedgerProvider(LedgerProvider):
    """Placeholder for the Manufact API backend."""

    name = "manufact"
    display_name = "Manufact"

    def __init__(self, settings: Optional[ManufactSettings] = None):
        self._settings = settings

    def _ensure_configured(self) -> ManufactSettings:
        if self._settings is None:
            try:
                self._settings = ManufactSettings()
            except ValidationError:
                raise ProviderNotConfiguredError(
                    "Manufact provider requires MANUFACT_API_KEY and MANUFACT_BASE_URL."
                )
        return self._settings

    async def get_expenses(self, filters: LedgerFilters) -> GetExpensesResult:
        self._ensure_configured()

        # TODO: Map Manufact expense payloads into GetExpensesResult
        raise NotImplementedLedgerError(
            "Manufact expenses integration is scaffolded but not implemented yet."
        )

    async def get_balance(self, filters: LedgerFilters) -> GetBalanceResult:
        self._ensure_configured()

        # TODO: Map Manufact balance payloads into GetBalanceResult
        raise NotImplementedLedgerError(
            "Manufact balance integration is scaffolded but not implemented yet."
        )

    async def track_expense(self, expense_input: TrackExpenseInput) -> TrackExpenseResult:
        self._ensure_configured()

        # TODO: Map the Manufact create-expense response into TrackExpenseResult
        raise NotImplementedLedgerError(
            "Manufact expense tracking integration is scaffolded but not implemented yet."
        )
