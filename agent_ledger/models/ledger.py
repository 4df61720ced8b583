"""
Core Data Models for Agent Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce integer minor units for every amount
2. Keep the external camelCase contract (agentId, amountMinor, ...)
3. Be serializable for the transport and the dashboard
4. Stay identical across every backend

DESIGN DECISION: Python attributes are snake_case, the wire format is camelCase.
`from`/`to` are reserved words, so they live on `date_from`/`date_to`.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from agent_ledger.ledger.dates import to_iso_timestamp


DEFAULT_CURRENCY = "USD"
SUPPORTED_CURRENCY = "USD"


class LedgerModel(BaseModel):
    """Base for every wire model: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict in the external camelCase shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# FILTERS
# =============================================================================

class LedgerFiltersInput(LedgerModel):
    """
    Raw, untrusted query input.

    Everything is optional; the normalizer decides defaults.
    """
    model_config = ConfigDict(extra="ignore")

    agent_id: Optional[str] = Field(
        default=None,
        description="Optional agent id to scope the query"
    )
    date_from: Optional[str] = Field(
        default=None,
        alias="from",
        description="Start date in YYYY-MM-DD format. Defaults to last 30 days."
    )
    date_to: Optional[str] = Field(
        default=None,
        alias="to",
        description="End date in YYYY-MM-DD format. Defaults to today."
    )
    currency: Optional[str] = Field(
        default=None,
        description="Currency code. Defaults to USD."
    )


class LedgerFilters(LedgerModel):
    """
    Canonical, validated filter set.

    Only the normalizer should build these.
    """
    model_config = ConfigDict(frozen=True)

    agent_id: Optional[str] = None
    date_from: str = Field(..., alias="from")
    date_to: str = Field(..., alias="to")
    currency: str = DEFAULT_CURRENCY


# =============================================================================
# AGENTS AND EXPENSES
# =============================================================================

class Agent(LedgerModel):
    """An economic actor with a starting balance."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    starting_minor: int = Field(
        ...,
        ge=0,
        description="Starting balance in minor units"
    )
    currency: str = SUPPORTED_CURRENCY


class Expense(LedgerModel):
    """
    A single recorded expense.

    Expenses are immutable once created.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    agent_name: str
    category: str
    vendor: str
    description: str
    amount_minor: int = Field(
        ...,
        gt=0,
        description="Amount in minor units (cents for USD)"
    )
    occurred_at: datetime = Field(
        ...,
        description="When the expense happened (UTC)"
    )

    @field_serializer("occurred_at", when_used="json")
    def _serialize_occurred_at(self, value: datetime) -> str:
        return to_iso_timestamp(value)


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class ExpenseByAgent(LedgerModel):
    agent_id: str
    agent_name: str
    total_expense_minor: int


class ExpenseByCategory(LedgerModel):
    category: str
    total_expense_minor: int


class ExpensesSummary(LedgerModel):
    total_expense_minor: int = 0
    expense_count: int = 0
    by_agent: list[ExpenseByAgent] = Field(default_factory=list)
    by_category: list[ExpenseByCategory] = Field(default_factory=list)


class GetExpensesResult(LedgerModel):
    """Result of listing expenses for a filter set."""

    currency: str
    date_from: str = Field(..., alias="from")
    date_to: str = Field(..., alias="to")
    expenses: list[Expense] = Field(default_factory=list)
    summary: ExpensesSummary = Field(default_factory=ExpensesSummary)


class AgentBalance(LedgerModel):
    """Balance for one agent: remaining = starting - spent."""

    agent_id: str
    agent_name: str
    starting_minor: int
    spent_minor: int
    remaining_minor: int


class BalanceTotals(LedgerModel):
    starting_minor: int = 0
    spent_minor: int = 0
    remaining_minor: int = 0


class GetBalanceResult(LedgerModel):
    """Result of computing balances for a filter set."""

    currency: str
    as_of: datetime = Field(
        ...,
        description="Wall-clock time the computation ran"
    )
    balances: list[AgentBalance] = Field(default_factory=list)
    totals: BalanceTotals = Field(default_factory=BalanceTotals)

    @field_serializer("as_of", when_used="json")
    def _serialize_as_of(self, value: datetime) -> str:
        return to_iso_timestamp(value)


# =============================================================================
# RECORDING EXPENSES
# =============================================================================

class TrackExpenseRequest(LedgerModel):
    """
    Raw record-expense input as received from a caller.

    Text fields are NOT trimmed here - the normalizer does that so it can
    report which field was empty.
    """
    model_config = ConfigDict(extra="ignore")

    agent_id: str = Field(..., description="Agent id that incurred the expense")
    category: str = Field(..., description="Expense category, e.g. software")
    vendor: str = Field(..., description="Vendor or payee name")
    description: str = Field(..., description="Human-readable description")
    amount_minor: int = Field(
        ...,
        description="Expense amount in minor units (for USD, cents)"
    )
    currency: Optional[str] = Field(
        default=None,
        description="Currency code. Defaults to USD."
    )
    occurred_at: Optional[str] = Field(
        default=None,
        description="Expense timestamp in ISO-8601 format. Defaults to now."
    )

    @field_validator("amount_minor", mode="before")
    @classmethod
    def reject_boolean_amount(cls, v: Any) -> Any:
        """JSON true/false must not pass as 1/0."""
        if isinstance(v, bool):
            raise ValueError("amountMinor must be an integer, not a boolean")
        return v


class TrackExpenseInput(LedgerModel):
    """Normalized record-expense input handed to a provider."""
    model_config = ConfigDict(frozen=True)

    agent_id: str
    category: str
    vendor: str
    description: str
    amount_minor: int
    currency: str = DEFAULT_CURRENCY
    occurred_at: datetime

    @field_serializer("occurred_at", when_used="json")
    def _serialize_occurred_at(self, value: datetime) -> str:
        return to_iso_timestamp(value)


class TrackExpenseResult(LedgerModel):
    currency: str
    expense: Expense


# =============================================================================
# PRESENTATION BOUNDARY
# =============================================================================

ToolName = Literal["getExpenses", "getBalance"]


class DashboardProps(LedgerModel):
    """
    Prop bundle consumed by the read-only dashboard.

    CRITICAL: This shape is a stable contract. Changing it requires a
    coordinated dashboard update.
    """

    active_tool: ToolName
    provider: str
    filters: LedgerFilters
    expenses: list[Expense]
    expense_summary: ExpensesSummary
    balances: list[AgentBalance]
    balance_totals: BalanceTotals
    as_of: datetime

    @field_serializer("as_of", when_used="json")
    def _serialize_as_of(self, value: datetime) -> str:
        return to_iso_timestamp(value)
