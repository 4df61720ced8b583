"""
Data Models Package

This package contains all Pydantic models used by the Agent Ledger.
All data crossing the provider and transport boundaries conforms to these schemas.
"""

from agent_ledger.models.ledger import (
    DEFAULT_CURRENCY,
    SUPPORTED_CURRENCY,
    Agent,
    AgentBalance,
    BalanceTotals,
    DashboardProps,
    Expense,
    ExpenseByAgent,
    ExpenseByCategory,
    ExpensesSummary,
    GetBalanceResult,
    GetExpensesResult,
    LedgerFilters,
    LedgerFiltersInput,
    TrackExpenseInput,
    TrackExpenseRequest,
    TrackExpenseResult,
)
from agent_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_CURRENCY",
    "SUPPORTED_CURRENCY",
    "Agent",
    "AgentBalance",
    "BalanceTotals",
    "DashboardProps",
    "Expense",
    "ExpenseByAgent",
    "ExpenseByCategory",
    "ExpensesSummary",
    "GetBalanceResult",
    "GetExpensesResult",
    "LedgerFilters",
    "LedgerFiltersInput",
    "TrackExpenseInput",
    "TrackExpenseRequest",
    "TrackExpenseResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
