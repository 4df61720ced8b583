"""
Tests for provider selection and the not-yet-implemented backend.
"""

import pytest

from agent_ledger.config import ManufactSettings, Settings
from agent_ledger.ledger.errors import (
    InvalidProviderError,
    LedgerErrorKind,
    NotImplementedLedgerError,
    ProviderNotConfiguredError,
)
from agent_ledger.providers import (
    ManufactLedgerProvider,
    MemoryLedgerProvider,
    RelationalLedgerProvider,
    get_ledger_provider,
)


@pytest.fixture
def manufact_env(monkeypatch):
    monkeypatch.setenv("MANUFACT_API_KEY", "test-key")
    monkeypatch.setenv("MANUFACT_BASE_URL", "https://manufact.example")


@pytest.fixture
def no_manufact_env(monkeypatch):
    monkeypatch.delenv("MANUFACT_API_KEY", raising=False)
    monkeypatch.delenv("MANUFACT_BASE_URL", raising=False)


class TestProviderFactory:
    """Tests for LEDGER_PROVIDER selection."""

    def test_defaults_to_mock(self, monkeypatch):
        monkeypatch.delenv("LEDGER_PROVIDER", raising=False)
        provider = get_ledger_provider(Settings())
        assert isinstance(provider, MemoryLedgerProvider)
        assert provider.name == "mock"

    @pytest.mark.parametrize(
        "value,provider_cls",
        [
            ("mock", MemoryLedgerProvider),
            ("puzzle", RelationalLedgerProvider),
            ("manufact", ManufactLedgerProvider),
            ("  PUZZLE ", RelationalLedgerProvider),
        ],
    )
    def test_selects_backend(self, monkeypatch, value, provider_cls):
        monkeypatch.setenv("LEDGER_PROVIDER", value)
        assert isinstance(get_ledger_provider(Settings()), provider_cls)

    def test_puzzle_selection_does_not_need_a_database_url(self, monkeypatch):
        """Configuration errors surface on first use, not at selection."""
        monkeypatch.setenv("LEDGER_PROVIDER", "puzzle")
        monkeypatch.delenv("PUZZLE_DATABASE_URL", raising=False)
        assert get_ledger_provider(Settings()).name == "puzzle"

    def test_unknown_backend_is_rejected(self, monkeypatch):
        monkeypatch.setenv("LEDGER_PROVIDER", "sheets")
        with pytest.raises(InvalidProviderError) as exc_info:
            get_ledger_provider(Settings())
        assert exc_info.value.kind == LedgerErrorKind.INVALID_PROVIDER
        assert exc_info.value.message == (
            "Unsupported LEDGER_PROVIDER value: sheets. "
            "Supported values: mock, puzzle, manufact."
        )

    @pytest.mark.parametrize("value", ["", "   "])
    def test_empty_backend_is_rejected(self, monkeypatch, value):
        """Set-but-empty is a misconfiguration, not a request for the default."""
        monkeypatch.setenv("LEDGER_PROVIDER", value)
        with pytest.raises(InvalidProviderError) as exc_info:
            get_ledger_provider(Settings())
        assert exc_info.value.kind == LedgerErrorKind.INVALID_PROVIDER


class TestManufactProvider:
    """Tests for the placeholder backend."""

    @pytest.mark.asyncio
    async def test_unconfigured_operations_fail(self, no_manufact_env, seed_window):
        provider = ManufactLedgerProvider()
        with pytest.raises(ProviderNotConfiguredError) as exc_info:
            await provider.get_expenses(seed_window)
        assert exc_info.value.message == (
            "Manufact provider requires MANUFACT_API_KEY and MANUFACT_BASE_URL."
        )

    @pytest.mark.asyncio
    async def test_partial_configuration_is_unconfigured(self, monkeypatch, no_manufact_env, seed_window):
        monkeypatch.setenv("MANUFACT_API_KEY", "test-key")
        with pytest.raises(ProviderNotConfiguredError):
            await ManufactLedgerProvider().get_balance(seed_window)

    @pytest.mark.asyncio
    async def test_configured_operations_are_not_implemented(self, manufact_env, seed_window):
        provider = ManufactLedgerProvider()

        with pytest.raises(NotImplementedLedgerError):
            await provider.get_expenses(seed_window)
        with pytest.raises(NotImplementedLedgerError):
            await provider.get_balance(seed_window)

    @pytest.mark.asyncio
    async def test_track_expense_is_not_implemented(self, seed_window):
        from datetime import datetime, timezone

        from agent_ledger.models.ledger import TrackExpenseInput

        provider = ManufactLedgerProvider(
            settings=ManufactSettings(api_key="key", base_url="https://manufact.example")
        )
        with pytest.raises(NotImplementedLedgerError) as exc_info:
            await provider.track_expense(TrackExpenseInput(
                agent_id="agent-atlas",
                category="software",
                vendor="OpenAI",
                description="Credits",
                amount_minor=100,
                occurred_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
            ))
        assert exc_info.value.kind == LedgerErrorKind.NOT_IMPLEMENTED
