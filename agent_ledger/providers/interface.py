"""
Abstract Ledger Provider Interface

DESIGN DECISION: We define an abstract interface for ledger backends.
This allows us to:
1. Serve a deterministic in-memory ledger for demos and tests
2. Swap in PostgreSQL without touching the dispatch layer
3. Wire a not-yet-built backend in with a typed failure instead of a crash
4. Keep filter normalization and output shaping backend-agnostic

Every implementation MUST behave identically at this boundary, including
its error kinds.
"""

from abc import ABC, abstractmethod

from agent_ledger.ledger.errors import UnsupportedCurrencyError
from agent_ledger.models.ledger import (
    SUPPORTED_CURRENCY,
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    TrackExpenseInput,
    TrackExpenseResult,
)


class LedgerProvider(ABC):
    """
    Abstract interface for ledger backends.

    Any backend (in-memory, PostgreSQL, remote API) must implement
    these methods.
    """

    name: str = ""
    display_name: str = ""

    @abstractmethod
    async def get_expenses(self, filters: LedgerFilters) -> GetExpensesResult:
        """
        List expenses matching the filters, newest first, with a summary.

        Args:
            filters: Canonical filter set

        Returns:
            Matching expenses plus totals, by-agent and by-category breakdowns

        Raises:
            UnsupportedCurrencyError: If filters.currency is not USD
            ProviderUnavailableError: If the backend fails
        """
        pass

    @abstractmethod
    async def get_balance(self, filters: LedgerFilters) -> GetBalanceResult:
        """
        Compute per-agent balances over the filter window.

        Args:
            filters: Canonical filter set. `agent_id` narrows to one agent.

        Returns:
            One balance row per agent in scope, plus totals

        Raises:
            UnsupportedCurrencyError: If filters.currency is not USD
            ProviderUnavailableError: If the backend fails
        """
        pass

    @abstractmethod
    async def track_expense(self, expense_input: TrackExpenseInput) -> TrackExpenseResult:
        """
        Validate and persist one new expense.

        Args:
            expense_input: Normalized record-expense input

        Returns:
            The stored expense in canonical form

        Raises:
            UnsupportedCurrencyError: If the currency is not USD
            InvalidAmountError: If the amount is not a positive integer
            InvalidDateError: If occurredAt is not a valid timestamp
        """
        pass

    def assert_supported_currency(self, currency: str) -> None:
        """Every backend supports USD only."""
        if currency != SUPPORTED_CURRENCY:
            label = self.display_name or self.name
            raise UnsupportedCurrencyError(
                f"{label} provider supports USD only. Received currency: {currency}"
            )
