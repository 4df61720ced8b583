"""
Relational Database Client

DESIGN DECISION: The engine is created lazily on first use, not at import
or at provider construction. This means:
1. Selecting the relational backend never crashes the server at startup
2. A missing PUZZLE_DATABASE_URL surfaces as PROVIDER_NOT_CONFIGURED on the
   first call, like every other backend failure
3. Tests can point a client at a temporary SQLite file

Provisioning (schema + seed agents) is retried with exponential back-off,
because a freshly started database container often refuses the first
connections.
"""

from typing import Any, Callable, Optional

from pydantic import ValidationError
from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from agent_ledger.config import PuzzleSettings
from agent_ledger.db.schema import agents, metadata
from agent_ledger.ledger.errors import (
    LedgerError,
    ProviderNotConfiguredError,
    ProviderUnavailableError,
)
from agent_ledger.ledger.seed import SEED_AGENTS


def to_database_error(err: BaseException, fallback_message: str) -> LedgerError:
    """
    Wrap a driver/engine failure as PROVIDER_UNAVAILABLE.

    Ledger errors pass through unchanged so their kind survives.
    """
    if isinstance(err, LedgerError):
        return err

    detail = str(err) or "Unexpected database error"
    return ProviderUnavailableError(f"{fallback_message} {detail}")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless this is set per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class LedgerDatabaseClient:
    """
    Owns the async engine for the relational backend.

    Pass `database_url` directly, or a `PuzzleSettings`; otherwise settings
    are read from the environment on first use.
    """

    def __init__(
        self,
        settings: Optional[PuzzleSettings] = None,
        database_url: Optional[str] = None,
    ):
        self._settings = settings
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = None

    def _resolve_settings(self) -> PuzzleSettings:
        if self._settings is None:
            try:
                if self._database_url is not None:
                    self._settings = PuzzleSettings(database_url=self._database_url)
                else:
                    self._settings = PuzzleSettings()
            except ValidationError:
                raise ProviderNotConfiguredError(
                    "Puzzle provider requires PUZZLE_DATABASE_URL."
                )
        return self._settings

    @property
    def engine(self) -> AsyncEngine:
        """
        Get the engine, creating it on first access.

        Raises:
            ProviderNotConfiguredError: No usable database URL
            ProviderUnavailableError: The engine could not be created
        """
        if self._engine is None:
            settings = self._resolve_settings()
            try:
                engine = create_async_engine(
                    settings.database_url,
                    echo=settings.echo_sql,
                    pool_pre_ping=True,
                )
            except Exception as e:
                raise to_database_error(
                    e, "Failed to initialize Puzzle database client."
                )

            if engine.dialect.name == "sqlite":
                event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            self._engine = engine

        return self._engine

    @property
    def auto_provision(self) -> bool:
        return self._resolve_settings().auto_provision

    def insert(self, table) -> Any:
        """
        Dialect-specific INSERT supporting ON CONFLICT DO NOTHING.

        Both PostgreSQL and SQLite accept the same `on_conflict_do_nothing`
        and `returning` calls.
        """
        dialect_name = self.engine.dialect.name
        builders: dict[str, Callable] = {
            "postgresql": postgresql.insert,
            "sqlite": sqlite.insert,
        }
        if dialect_name not in builders:
            raise ProviderUnavailableError(
                f"Unsupported database dialect for Puzzle provider: {dialect_name}"
            )
        return builders[dialect_name](table)

    @retry(
        retry=retry_if_not_exception_type(LedgerError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def provision(self) -> int:
        """
        Create the schema and seed the agent roster.

        Idempotent: existing tables are kept and existing agents are not
        overwritten.

        Returns:
            Number of roster agents ensured
        """
        engine = self.engine

        async with engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

            statement = self.insert(agents).values([
                {
                    "id": agent.id,
                    "name": agent.name,
                    "starting_minor": agent.starting_minor,
                    "currency": agent.currency,
                }
                for agent in SEED_AGENTS
            ])
            await conn.execute(statement.on_conflict_do_nothing(index_elements=["id"]))

        return len(SEED_AGENTS)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
