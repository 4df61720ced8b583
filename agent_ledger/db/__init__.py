"""Relational storage for the ledger."""

from agent_ledger.db.client import LedgerDatabaseClient, to_database_error
from agent_ledger.db.schema import agents, expenses, metadata

__all__ = [
    "LedgerDatabaseClient",
    "to_database_error",
    "agents",
    "expenses",
    "metadata",
]
