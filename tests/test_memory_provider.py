"""
Tests for the in-memory reference provider.
"""

from datetime import datetime, timezone

import pytest

from agent_ledger.ledger.errors import (
    InvalidAgentError,
    InvalidAmountError,
    UnsupportedCurrencyError,
)
from agent_ledger.models.ledger import TrackExpenseInput
from agent_ledger.providers import InMemoryLedgerStore, MemoryLedgerProvider


def expense_input(**overrides) -> TrackExpenseInput:
    values = {
        "agent_id": "agent-atlas",
        "category": "software",
        "vendor": "OpenAI",
        "description": "Model usage credits",
        "amount_minor": 18400,
        "currency": "USD",
        "occurred_at": datetime(2026, 2, 25, 9, 30, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return TrackExpenseInput(**values)


class TestInMemoryLedgerStore:
    """Tests for the store itself."""

    def test_seeded_by_default(self):
        store = InMemoryLedgerStore()
        assert len(store.snapshot()) == 10
        assert {agent.id for agent in store.agents} == {
            "agent-atlas",
            "agent-beacon",
            "agent-cipher",
        }

    def test_next_id_follows_highest_suffix(self):
        assert InMemoryLedgerStore().next_expense_id() == "exp-011"

    def test_next_id_on_empty_store(self):
        assert InMemoryLedgerStore(expenses=[]).next_expense_id() == "exp-001"

    def test_append_swaps_snapshot(self):
        store = InMemoryLedgerStore()
        before = store.snapshot()
        store.append(before[0].model_copy(update={"id": "exp-099"}))
        assert len(before) == 10
        assert len(store.snapshot()) == 11
        assert store.next_expense_id() == "exp-100"

    def test_stores_are_independent(self):
        first = MemoryLedgerProvider()
        second = MemoryLedgerProvider()
        first.store.append(first.store.snapshot()[0].model_copy(update={"id": "exp-050"}))
        assert len(second.store.snapshot()) == 10


class TestGetExpenses:
    """Tests for listing expenses."""

    @pytest.mark.asyncio
    async def test_full_window(self, memory_provider, seed_window):
        result = await memory_provider.get_expenses(seed_window)
        assert result.summary.expense_count == 10
        assert result.summary.total_expense_minor == 149100
        assert result.date_from == "2026-01-01"
        assert result.date_to == "2026-02-28"

    @pytest.mark.asyncio
    async def test_newest_first(self, memory_provider, seed_window):
        result = await memory_provider.get_expenses(seed_window)
        timestamps = [expense.occurred_at for expense in result.expenses]
        assert timestamps == sorted(timestamps, reverse=True)

    @pytest.mark.asyncio
    async def test_bounds_are_inclusive_utc_days(self, memory_provider, filters_for):
        """exp-001 happened at 2026-02-20T16:12Z."""
        same_day = await memory_provider.get_expenses(
            filters_for(**{"from": "2026-02-20", "to": "2026-02-20"})
        )
        assert [expense.id for expense in same_day.expenses] == ["exp-001"]

        day_before = await memory_provider.get_expenses(
            filters_for(**{"from": "2026-02-19", "to": "2026-02-19"})
        )
        assert day_before.expenses == []

    @pytest.mark.asyncio
    async def test_february_only(self, memory_provider, filters_for):
        result = await memory_provider.get_expenses(
            filters_for(**{"from": "2026-02-01", "to": "2026-02-28"})
        )
        assert result.summary.expense_count == 8
        assert result.summary.total_expense_minor == 137400

    @pytest.mark.asyncio
    async def test_agent_scope(self, memory_provider, filters_for):
        result = await memory_provider.get_expenses(
            filters_for(**{"from": "2026-01-01", "to": "2026-02-28", "agentId": "agent-atlas"})
        )
        assert {expense.agent_id for expense in result.expenses} == {"agent-atlas"}
        assert result.summary.total_expense_minor == 51900

    @pytest.mark.asyncio
    async def test_summary_matches_rows(self, memory_provider, seed_window):
        result = await memory_provider.get_expenses(seed_window)
        assert result.summary.total_expense_minor == sum(
            expense.amount_minor for expense in result.expenses
        )
        assert result.summary.expense_count == len(result.expenses)

    @pytest.mark.asyncio
    async def test_non_usd_is_rejected(self, memory_provider, filters_for):
        with pytest.raises(UnsupportedCurrencyError) as exc_info:
            await memory_provider.get_expenses(filters_for(currency="EUR"))
        assert "Received currency: EUR" in exc_info.value.message


class TestGetBalance:
    """Tests for balances."""

    @pytest.mark.asyncio
    async def test_all_agents(self, memory_provider, seed_window):
        result = await memory_provider.get_balance(seed_window)
        assert len(result.balances) == 3
        assert result.totals.starting_minor == 650000
        assert result.totals.spent_minor == 149100
        assert result.totals.remaining_minor == 500900
        assert result.as_of.tzinfo is not None

    @pytest.mark.asyncio
    async def test_agent_scope(self, memory_provider, filters_for):
        result = await memory_provider.get_balance(
            filters_for(**{"from": "2026-01-01", "to": "2026-02-28", "agentId": "agent-beacon"})
        )
        [balance] = result.balances
        assert balance.agent_id == "agent-beacon"
        assert balance.spent_minor == 41400
        assert balance.remaining_minor == 138600

    @pytest.mark.asyncio
    async def test_unknown_agent_scope_is_empty(self, memory_provider, seed_window):
        filters = seed_window.model_copy(update={"agent_id": "agent-ghost"})
        result = await memory_provider.get_balance(filters)
        assert result.balances == []
        assert result.totals.remaining_minor == 0

    @pytest.mark.asyncio
    async def test_agents_without_spend_in_window(self, memory_provider, filters_for):
        result = await memory_provider.get_balance(
            filters_for(**{"from": "2025-01-01", "to": "2025-01-31"})
        )
        assert all(balance.spent_minor == 0 for balance in result.balances)
        assert result.totals.remaining_minor == result.totals.starting_minor

    @pytest.mark.asyncio
    async def test_non_usd_is_rejected(self, memory_provider, filters_for):
        with pytest.raises(UnsupportedCurrencyError):
            await memory_provider.get_balance(filters_for(currency="EUR"))


class TestTrackExpense:
    """Tests for recording expenses."""

    @pytest.mark.asyncio
    async def test_records_with_next_id(self, memory_provider):
        result = await memory_provider.track_expense(expense_input())
        assert result.currency == "USD"
        assert result.expense.id == "exp-011"
        assert result.expense.agent_name == "Atlas"
        assert result.expense.amount_minor == 18400

    @pytest.mark.asyncio
    async def test_recorded_expense_is_visible(self, memory_provider, filters_for):
        await memory_provider.track_expense(expense_input())
        result = await memory_provider.get_expenses(
            filters_for(**{"from": "2026-02-25", "to": "2026-02-25"})
        )
        assert [expense.id for expense in result.expenses] == ["exp-011"]

    @pytest.mark.asyncio
    async def test_balance_reflects_recorded_expense(self, memory_provider, filters_for):
        """Record 18400 for atlas, then its balance shows at least that much spent."""
        await memory_provider.track_expense(expense_input())
        result = await memory_provider.get_balance(
            filters_for(**{"from": "2026-02-01", "to": "2026-02-28", "agentId": "agent-atlas"})
        )
        [balance] = result.balances
        assert balance.starting_minor == 250000
        assert balance.spent_minor >= 18400
        assert balance.remaining_minor == balance.starting_minor - balance.spent_minor

    @pytest.mark.asyncio
    async def test_unknown_agent_is_rejected(self, memory_provider):
        with pytest.raises(InvalidAgentError) as exc_info:
            await memory_provider.track_expense(expense_input(agent_id="agent-ghost"))
        assert exc_info.value.message == "Unknown agent id: agent-ghost."
        assert len(memory_provider.store.snapshot()) == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -500])
    async def test_non_positive_amount_writes_nothing(self, memory_provider, amount):
        with pytest.raises(InvalidAmountError):
            await memory_provider.track_expense(expense_input(amount_minor=amount))
        assert len(memory_provider.store.snapshot()) == 10

    @pytest.mark.asyncio
    async def test_non_usd_is_rejected_before_agent_lookup(self, memory_provider):
        with pytest.raises(UnsupportedCurrencyError):
            await memory_provider.track_expense(
                expense_input(agent_id="agent-ghost", currency="EUR")
            )

    @pytest.mark.asyncio
    async def test_ids_increase(self, memory_provider):
        first = await memory_provider.track_expense(expense_input())
        second = await memory_provider.track_expense(expense_input())
        assert (first.expense.id, second.expense.id) == ("exp-011", "exp-012")
