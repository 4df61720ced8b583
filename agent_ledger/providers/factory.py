"""
Provider selection.

Maps LEDGER_PROVIDER to a backend. The set of backends is closed: an
unknown key fails immediately instead of falling back to the mock.
"""

from typing import Optional

from agent_ledger.audit import AuditLogger
from agent_ledger.config import SUPPORTED_PROVIDERS, Settings, get_settings
from agent_ledger.ledger.errors import InvalidProviderError
from agent_ledger.providers.interface import LedgerProvider
from agent_ledger.providers.manufact import ManufactLedgerProvider
from agent_ledger.providers.memory import MemoryLedgerProvider
from agent_ledger.providers.relational import RelationalLedgerProvider


def get_ledger_provider(
    settings: Optional[Settings] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerProvider:
    """
    Build the configured ledger backend.

    Backend-specific settings are NOT read here; each backend reads its own
    on first use, so a misconfigured backend still starts.

    Raises:
        InvalidProviderError: LEDGER_PROVIDER names an unknown backend
    """
    settings = settings or get_settings()
    # Only an unset variable defaults to mock; an empty value is rejected below
    selected = settings.ledger.normalized_provider

    if selected == "mock":
        return MemoryLedgerProvider()
    if selected == "puzzle":
        return RelationalLedgerProvider(audit_logger=audit_logger)
    if selected == "manufact":
        return ManufactLedgerProvider()

    raise InvalidProviderError(
        f"Unsupported LEDGER_PROVIDER value: {selected}. "
        f"Supported values: {', '.join(SUPPORTED_PROVIDERS)}."
    )
