"""
Audit Models for Agent Ledger

Every tool call and every stage of a recorded expense produces an audit event.
This provides:
1. Traceability of each write through its stages
2. Debugging information when a backend fails
3. A stable, structured log line per tool invocation

DESIGN DECISION: Audit events are append-only structured log records.
Filters are logged as a short hash, never in full.
"""

import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from agent_ledger.ledger.dates import to_iso_timestamp, utc_now
from agent_ledger.models.ledger import LedgerFilters


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Tool dispatch
    TOOL_COMPLETED = "tool_completed"
    TOOL_FAILED = "tool_failed"
    TRACK_EXPENSE_TOOL_ERROR = "track_expense_tool_error"

    # Record-expense trace
    TRACK_EXPENSE_STAGE = "track_expense_stage"
    TRACK_EXPENSE_FAILED = "track_expense_failed"

    # System events
    PROVIDER_SELECTED = "provider_selected"
    DATABASE_PROVISIONED = "database_provisioned"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    `trace_id` correlates all stage records of one record-expense call.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    trace_id: Optional[str] = Field(
        default=None,
        description="Per-call correlation token"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": to_iso_timestamp(self.timestamp),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "trace_id": self.trace_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


def hash_filters(filters: LedgerFilters) -> str:
    """Short, stable fingerprint of a filter set for log lines."""
    payload = json.dumps(filters.to_wire(), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:12]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.tool_result("getExpenses", "mock", filters, 12, "ok")
        event = AuditEventBuilder.track_expense_stage(trace_id, "agent-upserted", agent_id)
    """

    @staticmethod
    def tool_result(
        tool_name: str,
        provider_name: str,
        filters: LedgerFilters,
        duration_ms: int,
        status: str,
    ) -> AuditEvent:
        ok = status == "ok"
        return AuditEvent(
            event_type=AuditEventType.TOOL_COMPLETED if ok else AuditEventType.TOOL_FAILED,
            severity=AuditSeverity.INFO if ok else AuditSeverity.WARNING,
            description=f"tool={tool_name} provider={provider_name} status={status}",
            details={
                "tool": tool_name,
                "provider": provider_name,
                "filters": hash_filters(filters),
                "duration_ms": duration_ms,
                "status": status,
            },
        )

    @staticmethod
    def track_expense_stage(
        trace_id: str,
        stage: str,
        agent_id: str,
        **details: Any,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRACK_EXPENSE_STAGE,
            trace_id=trace_id,
            description=f"track-expense stage {stage}",
            details={
                "stage": stage,
                "status": "ok",
                "agent_id": agent_id,
                **details,
            },
        )

    @staticmethod
    def track_expense_failed(
        trace_id: str,
        stage: str,
        agent_id: str,
        error_code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRACK_EXPENSE_FAILED,
            severity=AuditSeverity.ERROR,
            trace_id=trace_id,
            description=f"track-expense failed at stage {stage}",
            details={
                "stage": stage,
                "status": "error",
                "agent_id": agent_id,
            },
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def track_expense_tool_error(
        provider_name: str,
        agent_id: str,
        currency: Optional[str],
        amount_minor: Any,
        occurred_at: Optional[str],
        error_code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRACK_EXPENSE_TOOL_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"trackExpense failed for agent {agent_id}",
            details={
                "provider": provider_name,
                "agent_id": agent_id,
                "currency": currency or "USD",
                "amount_minor": amount_minor,
                "occurred_at": occurred_at or "<default-now>",
            },
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def provider_selected(provider_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_SELECTED,
            description=f"Ledger provider selected: {provider_name}",
            details={"provider": provider_name},
        )

    @staticmethod
    def database_provisioned(seeded_agents: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATABASE_PROVISIONED,
            description="Ledger schema provisioned",
            details={"seeded_agents": seeded_agents},
        )
