"""
Aggregation Engine

Shared summarization used by every provider so that by-agent, by-category,
totals and balances come out identical regardless of backend.

CRITICAL: All sums are integer minor units. Never accumulate floats -
a fraction of a cent lost per row compounds over many rows.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from agent_ledger.models.ledger import (
    Agent,
    AgentBalance,
    BalanceTotals,
    Expense,
    ExpenseByAgent,
    ExpenseByCategory,
    ExpensesSummary,
)


def to_int(value: Any) -> int:
    """
    Coerce a driver-returned aggregate to integer minor units.

    Drivers may hand back sums as strings, Decimals or floats. Anything
    non-finite or unparseable becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return math.trunc(value) if math.isfinite(value) else 0
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() else 0
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError:
            pass
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return 0
        return int(parsed) if parsed.is_finite() else 0
    return 0


def rank_by_total(rows: list) -> list:
    """Sort aggregate rows descending by `total_expense_minor`."""
    # sorted() is stable, so ties keep first-seen order
    return sorted(rows, key=lambda row: row.total_expense_minor, reverse=True)


def summarize_by_agent(expenses: Iterable[Expense]) -> list[ExpenseByAgent]:
    """
    Total per agent, sorted descending by amount.

    The display name comes from the first row seen for each agent.
    """
    totals: dict[str, int] = {}
    names: dict[str, str] = {}

    for expense in expenses:
        if expense.agent_id not in totals:
            totals[expense.agent_id] = 0
            names[expense.agent_id] = expense.agent_name
        totals[expense.agent_id] += expense.amount_minor

    rows = [
        ExpenseByAgent(
            agent_id=agent_id,
            agent_name=names[agent_id],
            total_expense_minor=total,
        )
        for agent_id, total in totals.items()
    ]
    return rank_by_total(rows)


def summarize_by_category(expenses: Iterable[Expense]) -> list[ExpenseByCategory]:
    """Total per category (exact, case-sensitive), sorted descending."""
    totals: dict[str, int] = {}

    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0) + expense.amount_minor

    rows = [
        ExpenseByCategory(category=category, total_expense_minor=total)
        for category, total in totals.items()
    ]
    return rank_by_total(rows)


def summarize_expenses(expenses: list[Expense]) -> ExpensesSummary:
    """Full summary for a matched expense set."""
    return ExpensesSummary(
        total_expense_minor=sum(expense.amount_minor for expense in expenses),
        expense_count=len(expenses),
        by_agent=summarize_by_agent(expenses),
        by_category=summarize_by_category(expenses),
    )


def sort_by_newest(expenses: Iterable[Expense]) -> list[Expense]:
    return sorted(expenses, key=lambda expense: expense.occurred_at, reverse=True)


def spent_by_agent(expenses: Iterable[Expense]) -> dict[str, int]:
    spent: dict[str, int] = {}
    for expense in expenses:
        spent[expense.agent_id] = spent.get(expense.agent_id, 0) + expense.amount_minor
    return spent


def build_balances(
    agents: Iterable[Agent],
    spent: Mapping[str, int],
) -> list[AgentBalance]:
    """One balance row per agent: remaining = starting - spent."""
    balances = []
    for agent in agents:
        starting_minor = to_int(agent.starting_minor)
        spent_minor = to_int(spent.get(agent.id, 0))
        balances.append(
            AgentBalance(
                agent_id=agent.id,
                agent_name=agent.name,
                starting_minor=starting_minor,
                spent_minor=spent_minor,
                remaining_minor=starting_minor - spent_minor,
            )
        )
    return balances


def sum_balance_totals(balances: Iterable[AgentBalance]) -> BalanceTotals:
    """Grand totals across a balance set."""
    totals = BalanceTotals()
    for balance in balances:
        totals.starting_minor += balance.starting_minor
        totals.spent_minor += balance.spent_minor
        totals.remaining_minor += balance.remaining_minor
    return totals
