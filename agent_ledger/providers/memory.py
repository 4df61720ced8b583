"""
In-Memory Reference Provider

DESIGN DECISION: The reference backend is deterministic and seeded, so it
doubles as the default demo backend and as the behavioral reference for
the relational backend.

State lives in an explicitly owned `InMemoryLedgerStore` rather than a
module global, so tests can build independent ledgers.

TRADEOFFS:
- Data lives only as long as the process
- Unknown agents are rejected; this backend never auto-creates them
"""

import re
from datetime import datetime
from typing import Iterable, Optional

from agent_ledger.ledger.aggregation import (
    build_balances,
    sort_by_newest,
    spent_by_agent,
    sum_balance_totals,
    summarize_expenses,
)
from agent_ledger.ledger.dates import end_of_day, start_of_day, utc_now
from agent_ledger.ledger.errors import InvalidAgentError
from agent_ledger.ledger.filters import require_positive_amount
from agent_ledger.ledger.seed import SEED_AGENTS, SEED_EXPENSES
from agent_ledger.models.ledger import (
    Agent,
    Expense,
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    TrackExpenseInput,
    TrackExpenseResult,
)
from agent_ledger.providers.interface import LedgerProvider


EXPENSE_ID_PATTERN = re.compile(r"^exp-(\d+)$")


class InMemoryLedgerStore:
    """
    Process-local ledger state.

    Expenses are held in an immutable tuple. Writes swap in a new tuple,
    so a reader always sees either the old or the new snapshot, never a
    half-written row.
    """

    def __init__(
        self,
        agents: Optional[Iterable[Agent]] = None,
        expenses: Optional[Iterable[Expense]] = None,
    ):
        roster = SEED_AGENTS if agents is None else tuple(agents)
        self._agents: dict[str, Agent] = {agent.id: agent for agent in roster}
        self._expenses: tuple[Expense, ...] = (
            SEED_EXPENSES if expenses is None else tuple(expenses)
        )

    @property
    def agents(self) -> list[Agent]:
        return list(self._agents.values())

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def snapshot(self) -> tuple[Expense, ...]:
        return self._expenses

    def append(self, expense: Expense) -> None:
        self._expenses = self._expenses + (expense,)

    def next_expense_id(self) -> str:
        """
        Next sequential id: highest `exp-NNN` suffix plus one.

        Ids are never reused because expenses are never deleted.
        """
        highest = 0
        for expense in self._expenses:
            matched = EXPENSE_ID_PATTERN.match(expense.id)
            if matched:
                highest = max(highest, int(matched.group(1)))
        return f"exp-{highest + 1:03d}"


class MemoryLedgerProvider(LedgerProvider):
    """In-memory implementation of the ledger contract."""

    name = "mock"
    display_name = "Mock"

    def __init__(self, store: Optional[InMemoryLedgerStore] = None):
        self._store = store or InMemoryLedgerStore()

    @property
    def store(self) -> InMemoryLedgerStore:
        return self._store

    def _filtered_expenses(self, filters: LedgerFilters) -> list[Expense]:
        """Inclusive UTC day bounds plus optional agent equality."""
        from_time = start_of_day(filters.date_from)
        to_time = end_of_day(filters.date_to)

        return [
            expense
            for expense in self._store.snapshot()
            if from_time <= expense.occurred_at <= to_time
            and (not filters.agent_id or expense.agent_id == filters.agent_id)
        ]

    async def get_expenses(self, filters: LedgerFilters) -> GetExpensesResult:
        self.assert_supported_currency(filters.currency)

        expenses = sort_by_newest(self._filtered_expenses(filters))

        return GetExpensesResult(
            currency=filters.currency,
            date_from=filters.date_from,
            date_to=filters.date_to,
            expenses=expenses,
            summary=summarize_expenses(expenses),
        )

    async def get_balance(self, filters: LedgerFilters) -> GetBalanceResult:
        self.assert_supported_currency(filters.currency)

        spent = spent_by_agent(self._filtered_expenses(filters))
        selected_agents = [
            agent
            for agent in self._store.agents
            if not filters.agent_id or agent.id == filters.agent_id
        ]

        balances = build_balances(selected_agents, spent)

        return GetBalanceResult(
            currency=filters.currency,
            as_of=utc_now(),
            balances=balances,
            totals=sum_balance_totals(balances),
        )

    async def track_expense(self, expense_input: TrackExpenseInput) -> TrackExpenseResult:
        self.assert_supported_currency(expense_input.currency)

        agent = self._store.get_agent(expense_input.agent_id)
        if agent is None:
            raise InvalidAgentError(f"Unknown agent id: {expense_input.agent_id}.")

        amount_minor = require_positive_amount(expense_input.amount_minor)
        occurred_at: datetime = expense_input.occurred_at

        expense = Expense(
            id=self._store.next_expense_id(),
            agent_id=agent.id,
            agent_name=agent.name,
            category=expense_input.category,
            vendor=expense_input.vendor,
            description=expense_input.description,
            amount_minor=amount_minor,
            occurred_at=occurred_at,
        )

        self._store.append(expense)

        return TrackExpenseResult(
            currency=expense_input.currency,
            expense=expense,
        )
