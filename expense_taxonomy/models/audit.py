"""
Audit Models for Expense Taxonomy

Every time the taxonomy overrules a proposed label, an event is recorded.
This provides:
1. Traceability of what the model proposed versus what was stored
2. Evidence of how often the model invents categories
3. Debugging information when the vocabulary looks wrong

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Vocabulary lifecycle
    HIERARCHY_REBUILT = "hierarchy_rebuilt"
    INVARIANT_VIOLATION = "invariant_violation"

    # Candidate handling
    CANDIDATE_ACCEPTED = "candidate_accepted"
    TAXONOMY_COERCED = "taxonomy_coerced"
    PAYLOAD_REJECTED = "payload_rejected"
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'hierarchy', 'payload')"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all expenses from one utterance)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.hierarchy_rebuilt(row_count, version)
        event = AuditEventBuilder.taxonomy_coerced(original, resolved, correlation_id)
    """

    @staticmethod
    def hierarchy_rebuilt(
        row_count: int,
        version: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HIERARCHY_REBUILT,
            entity_type="hierarchy",
            description=f"Hierarchy lookup rebuilt from {row_count} rows",
            details={
                "row_count": row_count,
                "version": version,
            },
        )

    @staticmethod
    def invariant_violation(
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVARIANT_VIOLATION,
            severity=AuditSeverity.CRITICAL,
            entity_type="hierarchy",
            description="Hierarchy lookup invariant violated",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def candidate_accepted(
        triple: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CANDIDATE_ACCEPTED,
            severity=AuditSeverity.DEBUG,
            entity_type="expense",
            correlation_id=correlation_id,
            description="Proposed triple accepted",
            details={
                "triple": triple,
            },
        )

    @staticmethod
    def taxonomy_coerced(
        original: str,
        resolved: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAXONOMY_COERCED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description="Proposed triple not in vocabulary, replaced",
            details={
                "original": original,
                "resolved": resolved,
            },
        )

    @staticmethod
    def payload_rejected(
        error_message: str,
        preview: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYLOAD_REJECTED,
            severity=AuditSeverity.ERROR,
            entity_type="payload",
            correlation_id=correlation_id,
            description="Model response could not be decoded",
            error_message=error_message,
            details={
                "preview": preview,
            },
        )

    @staticmethod
    def validation_failed(
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )
