"""
Audit Logger

DESIGN DECISION: Every tool call and every record-expense stage is logged.
This provides:
1. Traceability of each write through its stages
2. Debugging capability when a backend misbehaves
3. One structured line per tool invocation

The audit logger:
- Is async so providers can await it inline
- Gracefully handles failures (doesn't break the call if logging fails)
- Supports trace ids to correlate the stages of one call
"""

import random
import string
import time
from typing import Optional

import structlog

from agent_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from agent_ledger.models.ledger import LedgerFilters


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def create_trace_id(agent_id: str) -> str:
    """
    Create a per-call trace id for one record-expense invocation.

    Format: `{agent_id}-{epoch ms in base36}-{6 random base36 chars}`.
    Generate it once at the start of the call and pass it to every stage.
    """
    normalized_agent_id = agent_id.strip() or "unknown-agent"
    millis = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36_ALPHABET, k=6))
    return f"{normalized_agent_id}-{millis}-{suffix}"


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log. Subclass and override `log`
    to send events elsewhere.
    """

    def __init__(self, logger_name: str = "agent_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never break a ledger call
            return False

        return True

    async def log_tool_result(
        self,
        tool_name: str,
        provider_name: str,
        filters: LedgerFilters,
        duration_ms: int,
        status: str,
    ) -> None:
        """Log one line per tool invocation."""
        event = AuditEventBuilder.tool_result(
            tool_name=tool_name,
            provider_name=provider_name,
            filters=filters,
            duration_ms=duration_ms,
            status=status,
        )
        await self.log(event)

    async def log_track_expense_stage(
        self,
        trace_id: str,
        stage: str,
        agent_id: str,
        **details,
    ) -> None:
        """Log a successful record-expense stage."""
        event = AuditEventBuilder.track_expense_stage(
            trace_id,
            stage,
            agent_id,
            **details,
        )
        await self.log(event)

    async def log_track_expense_failed(
        self,
        trace_id: str,
        stage: str,
        agent_id: str,
        error_code: str,
        error_message: str,
    ) -> None:
        """Log the stage at which a record-expense call failed."""
        event = AuditEventBuilder.track_expense_failed(
            trace_id=trace_id,
            stage=stage,
            agent_id=agent_id,
            error_code=error_code,
            error_message=error_message,
        )
        await self.log(event)

    async def log_track_expense_tool_error(
        self,
        provider_name: str,
        agent_id: str,
        currency: Optional[str],
        amount_minor,
        occurred_at: Optional[str],
        error_code: str,
        error_message: str,
    ) -> None:
        """Log a failed trackExpense tool call with its raw input."""
        event = AuditEventBuilder.track_expense_tool_error(
            provider_name=provider_name,
            agent_id=agent_id,
            currency=currency,
            amount_minor=amount_minor,
            occurred_at=occurred_at,
            error_code=error_code,
            error_message=error_message,
        )
        await self.log(event)

    async def log_provider_selected(self, provider_name: str) -> None:
        await self.log(AuditEventBuilder.provider_selected(provider_name))

    async def log_database_provisioned(self, seeded_agents: int) -> None:
        await self.log(AuditEventBuilder.database_provisioned(seeded_agents))
