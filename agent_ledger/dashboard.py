"""
Dashboard Presentation Helpers

Builds the dashboard prop bundle and turns it into display-ready values.
Everything here can be tested without Streamlit; the Streamlit app only
lays the values out.
"""

import asyncio
import threading
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from agent_ledger.ledger.dates import as_utc, parse_timestamp, utc_now
from agent_ledger.ledger.filters import resolve_date_range
from agent_ledger.models.ledger import (
    AgentBalance,
    DashboardProps,
    Expense,
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    ToolName,
)


CURRENCY_SYMBOLS = {
    "USD": "$",
}

RECENT_EXPENSE_LIMIT = 10


class DashboardRunner:
    """
    Runs service coroutines for the synchronous dashboard.

    Streamlit reruns the script on every interaction, but the service is
    cached across reruns. Pooled database connections are bound to the
    event loop that opened them, so every rerun goes through one
    long-lived loop instead of a fresh one.
    """

    def __init__(self):
        self._loop = asyncio.new_event_loop()
        # Sessions rerun on separate threads; the loop runs one call at a time
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, coro):
        """Run `coro` to completion on the shared loop and return its result."""
        with self._lock:
            return self._loop.run_until_complete(coro)

    def close(self) -> None:
        with self._lock:
            if not self._loop.is_closed():
                self._loop.close()


class MetricCard(BaseModel):
    """One headline number on the dashboard."""
    label: str
    value: str
    caption: str


def build_dashboard_props(
    active_tool: ToolName,
    provider_name: str,
    filters: LedgerFilters,
    expenses_result: GetExpensesResult,
    balance_result: GetBalanceResult,
) -> DashboardProps:
    """Assemble the prop bundle from one expenses read and one balance read."""
    return DashboardProps(
        active_tool=active_tool,
        provider=provider_name,
        filters=filters,
        expenses=expenses_result.expenses,
        expense_summary=expenses_result.summary,
        balances=balance_result.balances,
        balance_totals=balance_result.totals,
        as_of=balance_result.as_of,
    )


def parse_dashboard_props(data: Any) -> Optional[DashboardProps]:
    """Validate a wire-shaped prop bundle. Returns None if it does not match."""
    try:
        return DashboardProps.model_validate(data)
    except ValidationError:
        return None


def default_date_window(now: Optional[datetime] = None) -> tuple[date, date]:
    """Pre-filled picker bounds: the same UTC window the tools default to."""
    date_from, date_to = resolve_date_range(None, None, now=as_utc(now or utc_now()))
    return date.fromisoformat(date_from), date.fromisoformat(date_to)


def format_money(amount_minor: int, currency: str = "USD") -> str:
    """
    Format minor units for display.

    USD renders as `$1,234.56`; other codes as `1,234.56 EUR`.
    """
    amount = Decimal(amount_minor) / 100
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.2f}"

    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{digits} {currency}"


def format_timestamp(value: Any) -> str:
    """`Feb 20, 2026`. Unparseable strings are returned unchanged."""
    if isinstance(value, datetime):
        parsed = as_utc(value)
    else:
        parsed = parse_timestamp(str(value))
        if parsed is None:
            return str(value)
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def scope_label(filters: LedgerFilters) -> str:
    return filters.agent_id or "all agents"


def header_caption(props: DashboardProps) -> str:
    return (
        f"Source: {props.provider} | View: {props.active_tool} | "
        f"Scope: {scope_label(props.filters)} | "
        f"Range: {props.filters.date_from} to {props.filters.date_to}"
    )


def metric_cards(props: DashboardProps) -> list[MetricCard]:
    currency = props.filters.currency
    return [
        MetricCard(
            label="Total Spent",
            value=format_money(props.expense_summary.total_expense_minor, currency),
            caption=f"{props.expense_summary.expense_count} expense entries",
        ),
        MetricCard(
            label="Total Remaining",
            value=format_money(props.balance_totals.remaining_minor, currency),
            caption=f"As of {format_timestamp(props.as_of)}",
        ),
        MetricCard(
            label="Agents in Scope",
            value=str(len(props.balances)),
            caption=f"Currency: {currency}",
        ),
    ]


def recent_expenses(
    expenses: list[Expense],
    limit: int = RECENT_EXPENSE_LIMIT,
) -> list[Expense]:
    """Newest first, capped at `limit`."""
    ordered = sorted(expenses, key=lambda expense: expense.occurred_at, reverse=True)
    return ordered[:limit]


def expense_rows(expenses: list[Expense], currency: str) -> list[dict[str, str]]:
    return [
        {
            "Date": format_timestamp(expense.occurred_at),
            "Agent": expense.agent_name,
            "Category": expense.category,
            "Vendor": expense.vendor,
            "Description": expense.description,
            "Amount": format_money(expense.amount_minor, currency),
        }
        for expense in expenses
    ]


def balance_rows(balances: list[AgentBalance], currency: str) -> list[dict[str, str]]:
    return [
        {
            "Agent": balance.agent_name,
            "Starting": format_money(balance.starting_minor, currency),
            "Spent": format_money(balance.spent_minor, currency),
            "Remaining": format_money(balance.remaining_minor, currency),
        }
        for balance in balances
    ]


def breakdown_rows(props: DashboardProps) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    """(by-agent rows, by-category rows) for the summary tables."""
    currency = props.filters.currency
    by_agent = [
        {
            "Agent": row.agent_name,
            "Total": format_money(row.total_expense_minor, currency),
        }
        for row in props.expense_summary.by_agent
    ]
    by_category = [
        {
            "Category": row.category,
            "Total": format_money(row.total_expense_minor, currency),
        }
        for row in props.expense_summary.by_category
    ]
    return by_agent, by_category
