"""
Tool Orchestrator for Agent Ledger

This module ties together normalization, the selected backend, output
shaping and logging for the three ledger tools:
1. getExpenses (raw filters → normalize → read both views → expenses + props)
2. getBalance  (raw filters → normalize → read both views → balances + props)
3. trackExpense (raw input → normalize → record → stored expense)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Raw input never reaches a backend without normalization
- Every failure leaves as a `{kind, message}` pair, never a raw exception
- Every tool call produces exactly one result log line

A transport (HTTP server, dashboard) only calls into `LedgerToolService`
and maps the response; it never talks to a backend directly.
"""

import asyncio
import time
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

import structlog
from pydantic import BaseModel, ValidationError

from agent_ledger.audit import AuditLogger
from agent_ledger.config import Settings
from agent_ledger.dashboard import build_dashboard_props
from agent_ledger.ledger.dates import utc_now
from agent_ledger.ledger.errors import (
    LedgerError,
    LedgerErrorKind,
    error_code_of,
    to_ledger_error,
)
from agent_ledger.ledger.filters import (
    build_track_expense_log_filters,
    normalize_filters,
    normalize_track_expense_input,
    safe_normalize_filters,
)
from agent_ledger.models.ledger import (
    LedgerFilters,
    LedgerFiltersInput,
    ToolName,
    TrackExpenseRequest,
)
from agent_ledger.providers import LedgerProvider, RelationalLedgerProvider, get_ledger_provider

logger = structlog.get_logger("agent_ledger.orchestrator")


TOOL_DESCRIPTIONS = {
    "getExpenses": "Return agent expenses for a date range and render dashboard UI.",
    "getBalance": "Return agent balances for a date range and render dashboard UI.",
    "trackExpense": "Record an expense entry for an agent.",
}

# Wire field name -> error kind for malformed raw input
FIELD_ERROR_KINDS = {
    "agentId": LedgerErrorKind.INVALID_AGENT,
    "from": LedgerErrorKind.INVALID_DATE,
    "to": LedgerErrorKind.INVALID_DATE,
    "occurredAt": LedgerErrorKind.INVALID_DATE,
    "category": LedgerErrorKind.INVALID_CATEGORY,
    "vendor": LedgerErrorKind.INVALID_VENDOR,
    "description": LedgerErrorKind.INVALID_DESCRIPTION,
    "amountMinor": LedgerErrorKind.INVALID_AMOUNT,
    "currency": LedgerErrorKind.UNSUPPORTED_CURRENCY,
}


class ToolResponse(BaseModel):
    """Outcome of one tool call: either `output` or `error` is set."""

    tool: str
    output: Optional[dict[str, Any]] = None
    error: Optional[dict[str, str]] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validation_error_to_ledger_error(err: ValidationError) -> LedgerError:
    """
    Map a pydantic failure on raw input to the kind of the first bad field.

    Fields without a dedicated kind become INTERNAL_ERROR.
    """
    first = err.errors()[0] if err.errors() else {}
    location = first.get("loc") or ("input",)
    field_name = str(location[0])

    kind = FIELD_ERROR_KINDS.get(field_name, LedgerErrorKind.INTERNAL_ERROR)

    if first.get("type") == "missing":
        message = f"{field_name} is required."
    else:
        message = f"Invalid {field_name}: {first.get('msg', 'invalid value')}."

    return LedgerError(message, kind)


def _parse(model: type[BaseModel], raw: Optional[Mapping[str, Any]]):
    try:
        return model.model_validate(dict(raw or {}))
    except ValidationError as e:
        raise validation_error_to_ledger_error(e)


class LedgerToolService:
    """
    Orchestrates the three ledger tools over one backend.

    The backend is fixed for the lifetime of the service. `clock` is only
    overridden in tests to pin "today" for the default date window.
    """

    def __init__(
        self,
        provider: LedgerProvider,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._provider = provider
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or utc_now

    @property
    def provider(self) -> LedgerProvider:
        return self._provider

    @property
    def provider_name(self) -> str:
        return self._provider.name

    async def provision(self) -> None:
        """
        Create the relational schema and seed agents when the backend wants it.

        Failures are logged and swallowed; an unusable database surfaces
        again as a typed error on the first tool call.
        """
        provider = self._provider
        if not isinstance(provider, RelationalLedgerProvider):
            return

        try:
            if not provider.client.auto_provision:
                return
            seeded_agents = await provider.client.provision()
        except LedgerError as e:
            logger.warning("database_provisioning_skipped", error_code=e.code, error=e.message)
            return
        except Exception as e:
            logger.error("database_provisioning_failed", error=str(e))
            return

        await self._audit_logger.log_database_provisioned(seeded_agents)

    async def close(self) -> None:
        """Release pooled database connections, if any."""
        if isinstance(self._provider, RelationalLedgerProvider):
            await self._provider.client.dispose()

    def describe_tools(self) -> list[dict[str, Any]]:
        """Tool names, descriptions and input JSON schemas."""
        schemas = {
            "getExpenses": LedgerFiltersInput.model_json_schema(by_alias=True),
            "getBalance": LedgerFiltersInput.model_json_schema(by_alias=True),
            "trackExpense": TrackExpenseRequest.model_json_schema(by_alias=True),
        }
        return [
            {
                "name": name,
                "description": description,
                "inputSchema": schemas[name],
            }
            for name, description in TOOL_DESCRIPTIONS.items()
        ]

    def _filters_for_log(self, raw: Optional[Mapping[str, Any]]) -> LedgerFilters:
        try:
            request = LedgerFiltersInput.model_validate(dict(raw or {}))
        except ValidationError:
            request = LedgerFiltersInput()
        return safe_normalize_filters(request, now=self._clock())

    @staticmethod
    def _elapsed_ms(started_at: float) -> int:
        return int((time.perf_counter() - started_at) * 1000)

    async def _run_read_tool(
        self,
        tool_name: ToolName,
        raw: Optional[Mapping[str, Any]],
    ) -> ToolResponse:
        """
        Shared flow for getExpenses and getBalance.

        FLOW:
        1. Normalize raw filters
        2. Read expenses and balances concurrently (either failing fails both)
        3. Merge the tool's own result with the dashboard props
        """
        started_at = time.perf_counter()
        filters_for_log = self._filters_for_log(raw)

        try:
            request = _parse(LedgerFiltersInput, raw)
            filters = normalize_filters(request, now=self._clock())
            filters_for_log = filters

            expenses_result, balance_result = await asyncio.gather(
                self._provider.get_expenses(filters),
                self._provider.get_balance(filters),
            )

            props = build_dashboard_props(
                tool_name,
                self.provider_name,
                filters,
                expenses_result,
                balance_result,
            )
            own_result = expenses_result if tool_name == "getExpenses" else balance_result
            output = {**own_result.to_wire(), **props.to_wire()}

        except Exception as e:
            await self._audit_logger.log_tool_result(
                tool_name=tool_name,
                provider_name=self.provider_name,
                filters=filters_for_log,
                duration_ms=self._elapsed_ms(started_at),
                status="error",
            )
            return ToolResponse(tool=tool_name, error=to_ledger_error(e).to_dict())

        await self._audit_logger.log_tool_result(
            tool_name=tool_name,
            provider_name=self.provider_name,
            filters=filters,
            duration_ms=self._elapsed_ms(started_at),
            status="ok",
        )
        return ToolResponse(tool=tool_name, output=output)

    async def get_expenses(self, raw: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        return await self._run_read_tool("getExpenses", raw)

    async def get_balance(self, raw: Optional[Mapping[str, Any]] = None) -> ToolResponse:
        return await self._run_read_tool("getBalance", raw)

    async def track_expense(self, raw: Optional[Mapping[str, Any]]) -> ToolResponse:
        """
        Record one expense.

        On failure both a tool-error line (with the raw input) and the usual
        tool result line are logged.
        """
        tool_name = "trackExpense"
        started_at = time.perf_counter()
        raw = dict(raw or {})

        filters_for_log = self._filters_for_log({
            "agentId": raw.get("agentId"),
            "currency": raw.get("currency"),
        })

        try:
            request = _parse(TrackExpenseRequest, raw)
            expense_input = normalize_track_expense_input(request, now=self._clock())

            result = await self._provider.track_expense(expense_input)
            filters_for_log = build_track_expense_log_filters(expense_input)
            output = result.to_wire()

        except Exception as e:
            await self._audit_logger.log_track_expense_tool_error(
                provider_name=self.provider_name,
                agent_id=str(raw.get("agentId") or ""),
                currency=raw.get("currency"),
                amount_minor=raw.get("amountMinor"),
                occurred_at=raw.get("occurredAt"),
                error_code=error_code_of(e),
                error_message=str(e) or "Unexpected error",
            )
            await self._audit_logger.log_tool_result(
                tool_name=tool_name,
                provider_name=self.provider_name,
                filters=filters_for_log,
                duration_ms=self._elapsed_ms(started_at),
                status="error",
            )
            return ToolResponse(tool=tool_name, error=to_ledger_error(e).to_dict())

        await self._audit_logger.log_tool_result(
            tool_name=tool_name,
            provider_name=self.provider_name,
            filters=filters_for_log,
            duration_ms=self._elapsed_ms(started_at),
            status="ok",
        )
        return ToolResponse(tool=tool_name, output=output)


def create_ledger_service(
    settings: Optional[Settings] = None,
    provider: Optional[LedgerProvider] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> LedgerToolService:
    """
    Factory function to create the tool service.

    Args:
        settings: Settings to select the backend from (defaults to env)
        provider: Use this backend instead of the configured one (tests)
        audit_logger: Logger shared by the service and the backend

    Raises:
        InvalidProviderError: LEDGER_PROVIDER names an unknown backend
    """
    audit_logger = audit_logger or AuditLogger()
    provider = provider or get_ledger_provider(settings, audit_logger=audit_logger)

    return LedgerToolService(provider=provider, audit_logger=audit_logger)
