"""Audit logging package."""

from agent_ledger.audit.logger import AuditLogger, create_trace_id

__all__ = ["AuditLogger", "create_trace_id"]
