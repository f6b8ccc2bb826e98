"""Audit logging package."""

from expense_taxonomy.audit.logger import (
    AuditLogger,
    AuditSink,
    configure_logging,
    create_correlation_id,
)

__all__ = ["AuditLogger", "AuditSink", "configure_logging", "create_correlation_id"]
