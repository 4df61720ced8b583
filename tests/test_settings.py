"""
Tests for environment configuration.
"""

import pytest
from pydantic import ValidationError

from agent_ledger.config import (
    LedgerSettings,
    ManufactSettings,
    PuzzleSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "LEDGER_PROVIDER",
        "PUZZLE_DATABASE_URL",
        "PUZZLE_AUTO_PROVISION",
        "MANUFACT_API_KEY",
        "MANUFACT_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


class TestLedgerSettings:

    def test_default_provider(self, clean_env):
        assert LedgerSettings().normalized_provider == "mock"

    def test_provider_is_trimmed_and_lowered(self, clean_env):
        clean_env.setenv("LEDGER_PROVIDER", "  Puzzle ")
        assert LedgerSettings().normalized_provider == "puzzle"


class TestPuzzleSettings:

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgres://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            ("postgresql://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            ("postgresql+asyncpg://u:p@db/ledger", "postgresql+asyncpg://u:p@db/ledger"),
            (" sqlite+aiosqlite:///ledger.db ", "sqlite+aiosqlite:///ledger.db"),
        ],
    )
    def test_url_is_rewritten_for_asyncpg(self, clean_env, url, expected):
        clean_env.setenv("PUZZLE_DATABASE_URL", url)
        assert PuzzleSettings().database_url == expected

    def test_url_is_required(self, clean_env):
        with pytest.raises(ValidationError):
            PuzzleSettings()

    def test_blank_url_is_rejected(self, clean_env):
        clean_env.setenv("PUZZLE_DATABASE_URL", "   ")
        with pytest.raises(ValidationError):
            PuzzleSettings()

    def test_auto_provision_flag(self, clean_env):
        clean_env.setenv("PUZZLE_DATABASE_URL", "postgresql://db/ledger")
        clean_env.setenv("PUZZLE_AUTO_PROVISION", "false")
        assert PuzzleSettings().auto_provision is False


class TestManufactSettings:

    def test_both_values_required(self, clean_env):
        clean_env.setenv("MANUFACT_API_KEY", "key")
        with pytest.raises(ValidationError):
            ManufactSettings()

    def test_blank_key_is_rejected(self):
        with pytest.raises(ValidationError):
            ManufactSettings(api_key=" ", base_url="https://manufact.example")


class TestValidateAllSettings:

    def test_reports_missing_sections(self, clean_env):
        results = validate_all_settings()
        assert results["ledger"] is True
        assert results["app"] is True
        assert results["puzzle"] is False
        assert results["manufact"] is False
        assert "puzzle_error" in results

    def test_reports_configured_sections(self, clean_env):
        clean_env.setenv("PUZZLE_DATABASE_URL", "postgresql://db/ledger")
        assert validate_all_settings()["puzzle"] is True
