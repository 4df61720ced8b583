"""
Relational (PostgreSQL) Ledger Provider

DESIGN DECISION: Aggregation is pushed down to SQL. `get_expenses` issues
four statements concurrently (rows, totals, by-agent, by-category), each on
its own connection and all built from the same predicate, so the summary
always describes exactly the returned rows.

Unlike the in-memory backend, recording an expense for an unknown agent
creates that agent (name = id, zero starting balance). The insert uses
ON CONFLICT DO NOTHING, so concurrent first writes for the same agent
produce exactly one agent row without an application lock.

TRADEOFFS:
- Auto-created agents start at zero, so their balance goes negative
- The four aggregate reads are not one snapshot; a write landing between
  them can make totals and rows disagree for that one call
"""

import asyncio
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, func, select

from agent_ledger.audit import AuditLogger, create_trace_id
from agent_ledger.db.client import LedgerDatabaseClient, to_database_error
from agent_ledger.db.schema import agents, expenses
from agent_ledger.ledger.aggregation import (
    build_balances,
    rank_by_total,
    sum_balance_totals,
    to_int,
)
from agent_ledger.ledger.dates import as_utc, end_of_day, start_of_day, utc_now
from agent_ledger.ledger.errors import (
    InvalidDateError,
    LedgerError,
    ProviderUnavailableError,
    error_code_of,
)
from agent_ledger.ledger.filters import require_positive_amount
from agent_ledger.models.ledger import (
    Agent,
    Expense,
    ExpenseByAgent,
    ExpenseByCategory,
    ExpensesSummary,
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    TrackExpenseInput,
    TrackExpenseResult,
)
from agent_ledger.providers.interface import LedgerProvider


class RelationalLedgerProvider(LedgerProvider):
    """SQL-backed implementation of the ledger contract."""

    name = "puzzle"
    display_name = "Puzzle"

    def __init__(
        self,
        client: Optional[LedgerDatabaseClient] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._client = client or LedgerDatabaseClient()
        self._audit = audit_logger or AuditLogger()

    @property
    def client(self) -> LedgerDatabaseClient:
        return self._client

    def _expense_predicate(self, filters: LedgerFilters):
        """Shared WHERE clause for every read over a filter set."""
        conditions = [
            expenses.c.occurred_at >= start_of_day(filters.date_from),
            expenses.c.occurred_at <= end_of_day(filters.date_to),
            expenses.c.currency == filters.currency,
        ]
        if filters.agent_id:
            conditions.append(expenses.c.agent_id == filters.agent_id)
        return and_(*conditions)

    async def _fetch_all(self, statement) -> list[Any]:
        async with self._client.engine.connect() as conn:
            result = await conn.execute(statement)
            return list(result.all())

    @staticmethod
    def _row_to_expense(row: Any, agent_name: str) -> Expense:
        return Expense(
            id=str(row.id),
            agent_id=row.agent_id,
            agent_name=agent_name,
            category=row.category,
            vendor=row.vendor,
            description=row.description,
            amount_minor=to_int(row.amount_minor),
            occurred_at=as_utc(row.occurred_at),
        )

    # =========================================================================
    # READS
    # =========================================================================

    async def get_expenses(self, filters: LedgerFilters) -> GetExpensesResult:
        self.assert_supported_currency(filters.currency)

        where_clause = self._expense_predicate(filters)
        total_expense = func.coalesce(func.sum(expenses.c.amount_minor), 0)
        joined = expenses.join(agents, expenses.c.agent_id == agents.c.id)

        rows_stmt = (
            select(
                expenses.c.id,
                expenses.c.agent_id,
                agents.c.name.label("agent_name"),
                expenses.c.category,
                expenses.c.vendor,
                expenses.c.description,
                expenses.c.amount_minor,
                expenses.c.occurred_at,
            )
            .select_from(joined)
            .where(where_clause)
            .order_by(expenses.c.occurred_at.desc())
        )
        totals_stmt = select(
            total_expense.label("total_expense_minor"),
            func.count().label("expense_count"),
        ).where(where_clause)
        by_agent_stmt = (
            select(
                expenses.c.agent_id,
                agents.c.name.label("agent_name"),
                total_expense.label("total_expense_minor"),
            )
            .select_from(joined)
            .where(where_clause)
            .group_by(expenses.c.agent_id, agents.c.name)
            .order_by(expenses.c.agent_id)
        )
        by_category_stmt = (
            select(
                expenses.c.category,
                total_expense.label("total_expense_minor"),
            )
            .where(where_clause)
            .group_by(expenses.c.category)
            .order_by(expenses.c.category)
        )

        try:
            expense_rows, totals_rows, by_agent_rows, by_category_rows = await asyncio.gather(
                self._fetch_all(rows_stmt),
                self._fetch_all(totals_stmt),
                self._fetch_all(by_agent_stmt),
                self._fetch_all(by_category_stmt),
            )
        except Exception as e:
            raise to_database_error(e, "Failed to fetch Puzzle expenses.")

        mapped_expenses = [
            self._row_to_expense(row, row.agent_name) for row in expense_rows
        ]
        by_agent = rank_by_total([
            ExpenseByAgent(
                agent_id=row.agent_id,
                agent_name=row.agent_name,
                total_expense_minor=to_int(row.total_expense_minor),
            )
            for row in by_agent_rows
        ])
        by_category = rank_by_total([
            ExpenseByCategory(
                category=row.category,
                total_expense_minor=to_int(row.total_expense_minor),
            )
            for row in by_category_rows
        ])

        totals = totals_rows[0] if totals_rows else None

        return GetExpensesResult(
            currency=filters.currency,
            date_from=filters.date_from,
            date_to=filters.date_to,
            expenses=mapped_expenses,
            summary=ExpensesSummary(
                total_expense_minor=to_int(totals.total_expense_minor) if totals else 0,
                expense_count=to_int(totals.expense_count) if totals else 0,
                by_agent=by_agent,
                by_category=by_category,
            ),
        )

    async def get_balance(self, filters: LedgerFilters) -> GetBalanceResult:
        self.assert_supported_currency(filters.currency)

        agents_stmt = select(agents.c.id, agents.c.name, agents.c.starting_minor)
        if filters.agent_id:
            agents_stmt = agents_stmt.where(agents.c.id == filters.agent_id)
        agents_stmt = agents_stmt.order_by(agents.c.id)

        spent_stmt = (
            select(
                expenses.c.agent_id,
                func.coalesce(func.sum(expenses.c.amount_minor), 0).label("spent_minor"),
            )
            .where(self._expense_predicate(filters))
            .group_by(expenses.c.agent_id)
        )

        try:
            async with self._client.engine.connect() as conn:
                agent_rows = (await conn.execute(agents_stmt)).all()
                spent_rows = (await conn.execute(spent_stmt)).all()
        except Exception as e:
            raise to_database_error(e, "Failed to fetch Puzzle balances.")

        selected_agents = [
            Agent(
                id=row.id,
                name=row.name,
                starting_minor=to_int(row.starting_minor),
            )
            for row in agent_rows
        ]
        spent = {row.agent_id: to_int(row.spent_minor) for row in spent_rows}

        balances = build_balances(selected_agents, spent)

        return GetBalanceResult(
            currency=filters.currency,
            as_of=utc_now(),
            balances=balances,
            totals=sum_balance_totals(balances),
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    async def track_expense(self, expense_input: TrackExpenseInput) -> TrackExpenseResult:
        """
        Record an expense, creating the agent if needed.

        Stages: connect-db, validate-occurredAt, validate-amount,
        upsert-agent, load-agent, insert-expense. Each completed stage and
        any failure is written to the audit log under one trace id.
        """
        self.assert_supported_currency(expense_input.currency)

        agent_id = expense_input.agent_id
        trace_id = create_trace_id(agent_id)
        stage = "start"

        await self._audit.log_track_expense_stage(
            trace_id,
            stage,
            agent_id,
            currency=expense_input.currency,
            amount_minor=expense_input.amount_minor,
            occurred_at=expense_input.to_wire()["occurredAt"],
        )

        try:
            stage = "connect-db"
            engine = self._client.engine

            stage = "validate-occurredAt"
            occurred_at = expense_input.occurred_at
            if not isinstance(occurred_at, datetime):
                raise InvalidDateError(
                    f"Invalid occurredAt timestamp: {occurred_at}. "
                    "Expected ISO-8601 date-time."
                )
            occurred_at = as_utc(occurred_at)

            stage = "validate-amount"
            amount_minor = require_positive_amount(expense_input.amount_minor)

            stage = "upsert-agent"
            upsert_stmt = (
                self._client.insert(agents)
                .values(
                    id=agent_id,
                    name=agent_id,
                    starting_minor=0,
                    currency="USD",
                )
                .on_conflict_do_nothing(index_elements=["id"])
                .returning(agents.c.id)
            )
            async with engine.begin() as conn:
                inserted_agents = (await conn.execute(upsert_stmt)).all()

            was_agent_created = len(inserted_agents) > 0
            await self._audit.log_track_expense_stage(
                trace_id,
                "agent-upserted",
                agent_id,
                was_agent_created=was_agent_created,
            )

            stage = "load-agent"
            async with engine.connect() as conn:
                agent = (
                    await conn.execute(
                        select(agents.c.id, agents.c.name)
                        .where(agents.c.id == agent_id)
                        .limit(1)
                    )
                ).first()

            if agent is None:
                raise ProviderUnavailableError(
                    f"Failed to load agent {agent_id} after upsert."
                )

            stage = "insert-expense"
            insert_stmt = (
                expenses.insert()
                .values(
                    agent_id=agent_id,
                    category=expense_input.category,
                    vendor=expense_input.vendor,
                    description=expense_input.description,
                    amount_minor=amount_minor,
                    currency=expense_input.currency,
                    occurred_at=occurred_at,
                )
                .returning(
                    expenses.c.id,
                    expenses.c.agent_id,
                    expenses.c.category,
                    expenses.c.vendor,
                    expenses.c.description,
                    expenses.c.amount_minor,
                    expenses.c.occurred_at,
                )
            )
            async with engine.begin() as conn:
                inserted = (await conn.execute(insert_stmt)).first()

            if inserted is None:
                raise ProviderUnavailableError("Failed to persist Puzzle expense.")

            expense = self._row_to_expense(inserted, agent.name)

            await self._audit.log_track_expense_stage(
                trace_id,
                "expense-inserted",
                agent_id,
                expense_id=expense.id,
                was_agent_created=was_agent_created,
            )

            return TrackExpenseResult(
                currency=expense_input.currency,
                expense=expense,
            )

        except Exception as e:
            await self._audit.log_track_expense_failed(
                trace_id=trace_id,
                stage=stage,
                agent_id=agent_id,
                error_code=error_code_of(e),
                error_message=str(e) or "Unexpected error",
            )

            if isinstance(e, LedgerError):
                raise
            raise to_database_error(e, "Failed to track Puzzle expense.")
