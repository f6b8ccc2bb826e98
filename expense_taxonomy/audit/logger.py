"""
Audit Logger

DESIGN DECISION: Every time the taxonomy overrules the model, it is logged.
This provides:
1. Complete traceability from proposed label to stored label
2. A measure of how often the model invents categories
3. Debugging capability when the vocabulary drifts

The audit logger:
- Is synchronous, like the engine it observes
- Gracefully handles failures (a broken sink never breaks the caller)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Callable, Optional
from uuid import UUID, uuid4

import structlog

from expense_taxonomy.config import get_settings
from expense_taxonomy.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set up the stdlib handler structlog writes through.

    Uses the configured log level unless one is given.
    """
    name = (level or get_settings().app.log_level).upper()
    numeric = getattr(logging, name, logging.INFO)
    logging.basicConfig(level=numeric, format="%(message)s")
    logging.getLogger("expense_taxonomy").setLevel(numeric)


AuditSink = Callable[[AuditEvent], None]


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional sink (for persistence by the caller)
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Callable receiving every event.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Forwards to the sink if available.

        Returns True if the sink accepted the event (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_hierarchy_rebuilt(self, row_count: int, version: int) -> None:
        """Log a lookup rebuild."""
        self.log(AuditEventBuilder.hierarchy_rebuilt(row_count=row_count, version=version))

    def log_invariant_violation(
        self,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a lookup built without its default triple."""
        self.log(AuditEventBuilder.invariant_violation(
            error_message=error_message,
            details=details,
        ))

    def log_candidate_accepted(
        self,
        triple: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a proposed triple that was already in the vocabulary."""
        self.log(AuditEventBuilder.candidate_accepted(
            triple=triple,
            correlation_id=correlation_id,
        ))

    def log_taxonomy_coerced(
        self,
        original: str,
        resolved: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a proposed triple that was replaced."""
        self.log(AuditEventBuilder.taxonomy_coerced(
            original=original,
            resolved=resolved,
            correlation_id=correlation_id,
        ))

    def log_payload_rejected(
        self,
        error_message: str,
        preview: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a model response that was not valid JSON."""
        self.log(AuditEventBuilder.payload_rejected(
            error_message=error_message,
            preview=preview,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log validation failure."""
        self.log(AuditEventBuilder.validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., one spoken sentence).
    Pass it through all subsequent operations.
    """
    return uuid4()
