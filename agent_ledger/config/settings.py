"""
Configuration Management for Agent Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see which backends exist and what each one needs.
Backend sections are loaded lazily so an unused backend never has to be
configured.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_PROVIDERS = ("mock", "puzzle", "manufact")


class LedgerSettings(BaseSettings):
    """Backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    provider: str = Field(
        default="mock",
        description="Ledger backend: mock, puzzle or manufact"
    )

    @property
    def normalized_provider(self) -> str:
        """Provider key, lower-cased and trimmed."""
        return self.provider.lower().strip()


class PuzzleSettings(BaseSettings):
    """Relational (PostgreSQL) backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PUZZLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    database_url: str = Field(
        ...,
        description="SQLAlchemy async URL, e.g. postgresql+asyncpg://user:pw@host/db"
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements to the log"
    )
    auto_provision: bool = Field(
        default=True,
        description="Create the schema and seed agents on startup"
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject blank URLs and upgrade plain postgres URLs to the asyncpg driver."""
        v = v.strip()
        if not v:
            raise ValueError("database_url must not be empty")
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            v = "postgresql+asyncpg://" + v[len("postgresql://"):]
        return v


class ManufactSettings(BaseSettings):
    """Manufact API configuration (backend not implemented yet)."""

    model_config = SettingsConfigDict(
        env_prefix="MANUFACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Manufact API key"
    )
    base_url: str = Field(
        ...,
        description="Manufact API base URL"
    )

    @field_validator('api_key', 'base_url')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for the server process"
    )

    # HTTP transport
    server_host: str = Field(
        default="0.0.0.0",
        description="Interface the tool server binds to"
    )
    server_port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port the tool server listens on"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def puzzle(self) -> PuzzleSettings:
        return PuzzleSettings()

    @property
    def manufact(self) -> ManufactSettings:
        return ManufactSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `{name}_error` entries.
    Useful for startup checks and the dashboard status panel.
    """
    results = {}

    settings = get_settings()

    sections = {
        "ledger": lambda: settings.ledger,
        "puzzle": lambda: settings.puzzle,
        "manufact": lambda: settings.manufact,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
