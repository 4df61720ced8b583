"""Ledger backends."""

from agent_ledger.providers.factory import get_ledger_provider
from agent_ledger.providers.interface import LedgerProvider
from agent_ledger.providers.manufact import ManufactLedgerProvider
from agent_ledger.providers.memory import InMemoryLedgerStore, MemoryLedgerProvider
from agent_ledger.providers.relational import RelationalLedgerProvider

__all__ = [
    "get_ledger_provider",
    "LedgerProvider",
    "ManufactLedgerProvider",
    "InMemoryLedgerStore",
    "MemoryLedgerProvider",
    "RelationalLedgerProvider",
]
