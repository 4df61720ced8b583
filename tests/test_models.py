"""
Tests for Agent Ledger models

Test strategy:
1. Unit tests for individual components (models, builders)
2. Flow tests against the in-memory and SQLite-backed providers
3. No real database server in tests
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from agent_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    hash_filters,
)
from agent_ledger.models.ledger import (
    Agent,
    Expense,
    GetBalanceResult,
    LedgerFilters,
    LedgerFiltersInput,
    TrackExpenseRequest,
)


def make_expense(**overrides) -> Expense:
    values = {
        "id": "exp-001",
        "agent_id": "agent-atlas",
        "agent_name": "Atlas",
        "category": "software",
        "vendor": "OpenAI",
        "description": "Model usage credits",
        "amount_minor": 18400,
        "occurred_at": datetime(2026, 2, 20, 16, 12, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return Expense(**values)


class TestLedgerModels:
    """Tests for ledger Pydantic models."""

    def test_filters_input_reads_wire_names(self):
        """Test that from/to/agentId map onto snake_case attributes."""
        raw = LedgerFiltersInput.model_validate({
            "agentId": "agent-atlas",
            "from": "2026-02-01",
            "to": "2026-02-28",
        })
        assert raw.agent_id == "agent-atlas"
        assert raw.date_from == "2026-02-01"
        assert raw.date_to == "2026-02-28"
        assert raw.currency is None

    def test_filters_input_ignores_unknown_fields(self):
        raw = LedgerFiltersInput.model_validate({"page": 2})
        assert raw.agent_id is None

    def test_filters_are_frozen(self):
        filters = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        with pytest.raises(ValidationError):
            filters.currency = "EUR"

    def test_filters_wire_shape(self):
        filters = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        assert filters.to_wire() == {
            "from": "2026-02-01",
            "to": "2026-02-28",
            "currency": "USD",
        }

    def test_expense_wire_shape(self):
        """Test camelCase keys and millisecond Z timestamps."""
        wire = make_expense().to_wire()
        assert wire == {
            "id": "exp-001",
            "agentId": "agent-atlas",
            "agentName": "Atlas",
            "category": "software",
            "vendor": "OpenAI",
            "description": "Model usage credits",
            "amountMinor": 18400,
            "occurredAt": "2026-02-20T16:12:00.000Z",
        }

    def test_expense_timestamp_is_serialized_in_utc(self):
        offset = timezone(timedelta(hours=5, minutes=30))
        expense = make_expense(occurred_at=datetime(2026, 2, 20, 21, 42, 0, 250000, tzinfo=offset))
        assert expense.to_wire()["occurredAt"] == "2026-02-20T16:12:00.250Z"

    @pytest.mark.parametrize("amount", [0, -1])
    def test_expense_rejects_non_positive_amount(self, amount):
        with pytest.raises(ValidationError):
            make_expense(amount_minor=amount)

    def test_agent_rejects_negative_starting_balance(self):
        with pytest.raises(ValidationError):
            Agent(id="agent-x", name="X", starting_minor=-1)

    def test_balance_result_serializes_as_of(self):
        result = GetBalanceResult(
            currency="USD",
            as_of=datetime(2026, 2, 28, 12, 0, tzinfo=timezone.utc),
        )
        wire = result.to_wire()
        assert wire["asOf"] == "2026-02-28T12:00:00.000Z"
        assert wire["totals"] == {"startingMinor": 0, "spentMinor": 0, "remainingMinor": 0}
        assert wire["balances"] == []

    def test_track_request_requires_core_fields(self):
        with pytest.raises(ValidationError):
            TrackExpenseRequest.model_validate({"agentId": "agent-atlas"})

    @pytest.mark.parametrize("flag", [True, False])
    def test_track_request_rejects_boolean_amount(self, flag):
        with pytest.raises(ValidationError):
            TrackExpenseRequest.model_validate({
                "agentId": "agent-atlas",
                "category": "software",
                "vendor": "OpenAI",
                "description": "Credits",
                "amountMinor": flag,
            })

    def test_track_request_optional_fields(self):
        request = TrackExpenseRequest.model_validate({
            "agentId": " agent-atlas ",
            "category": "software",
            "vendor": "OpenAI",
            "description": "Credits",
            "amountMinor": 100,
        })
        # Trimming is the normalizer's job
        assert request.agent_id == " agent-atlas "
        assert request.currency is None
        assert request.occurred_at is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.PROVIDER_SELECTED,
            description="Ledger provider selected: mock",
        )
        assert event.event_type == AuditEventType.PROVIDER_SELECTED
        assert event.severity == AuditSeverity.INFO
        assert event.trace_id is None

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.track_expense_failed(
            trace_id="agent-atlas-abc-123456",
            stage="insert-expense",
            agent_id="agent-atlas",
            error_code="PROVIDER_UNAVAILABLE",
            error_message="Failed to persist Puzzle expense.",
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "track_expense_failed"
        assert log_dict["severity"] == "error"
        assert log_dict["trace_id"] == "agent-atlas-abc-123456"
        assert log_dict["details"]["stage"] == "insert-expense"
        assert log_dict["timestamp"].endswith("Z")

    def test_tool_result_hashes_filters(self):
        filters = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        event = AuditEventBuilder.tool_result("getExpenses", "mock", filters, 12, "ok")

        assert event.event_type == AuditEventType.TOOL_COMPLETED
        assert event.details == {
            "tool": "getExpenses",
            "provider": "mock",
            "filters": hash_filters(filters),
            "duration_ms": 12,
            "status": "ok",
        }

    def test_failed_tool_result_is_a_warning(self):
        filters = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        event = AuditEventBuilder.tool_result("getBalance", "puzzle", filters, 3, "error")
        assert event.event_type == AuditEventType.TOOL_FAILED
        assert event.severity == AuditSeverity.WARNING

    def test_filter_hash_is_stable_and_short(self):
        first = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        second = LedgerFilters(date_from="2026-02-01", date_to="2026-02-28")
        other = first.model_copy(update={"agent_id": "agent-atlas"})

        assert hash_filters(first) == hash_filters(second)
        assert hash_filters(first) != hash_filters(other)
        assert len(hash_filters(first)) == 12

    def test_tool_error_defaults_missing_input(self):
        event = AuditEventBuilder.track_expense_tool_error(
            provider_name="mock",
            agent_id="agent-atlas",
            currency=None,
            amount_minor=None,
            occurred_at=None,
            error_code="INVALID_AMOUNT",
            error_message="amountMinor is required.",
        )
        assert event.details["currency"] == "USD"
        assert event.details["occurred_at"] == "<default-now>"
        assert event.error_code == "INVALID_AMOUNT"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
