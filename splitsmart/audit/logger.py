"""
Audit Logger

DESIGN DECISION: Every significant action in a split session is logged.
This provides:
1. Traceability from a chat command to the ledger it produced
2. Debugging capability when a collaborator returns garbage
3. A trail the user can inspect at the end of the meal

The audit logger:
- Is async to match the collaborator flows
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from splitsmart.audit.sink import AuditSink
from splitsmart.models.audit import AuditEvent, AuditEventBuilder


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


def configure_logging(debug: bool = False) -> None:
    """Route structlog output through the root stdlib logger."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit sink (for the session's visible trail)
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Where events are kept.
                  If None, only logs locally.
        """
        self._sink = sink
        self._logger = structlog.get_logger("splitsmart.audit")

    @property
    def sink(self) -> Optional[AuditSink]:
        return self._sink

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Appends to the sink if one is configured.

        Returns True if the sink write succeeded (or no sink configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._sink is not None:
            try:
                return await self._sink.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_receipt_uploaded(
        self,
        upload_id: UUID,
        filename: Optional[str],
        file_size: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.receipt_uploaded(
            upload_id=upload_id,
            filename=filename,
            file_size=file_size,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_receipt_recognized(
        self,
        receipt_id: UUID,
        item_count: int,
        total: float,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.receipt_recognized(
            receipt_id=receipt_id,
            item_count=item_count,
            total=total,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_receipt_rejected(
        self,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.receipt_rejected(
            reason=reason,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_consistency_warning(
        self,
        receipt_id: UUID,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.consistency_warning(
            receipt_id=receipt_id,
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_reset(
        self,
        receipt_id: UUID,
        previous_entries: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.ledger_reset(
            receipt_id=receipt_id,
            previous_entries=previous_entries,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_command_received(
        self,
        command: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.command_received(
            command=command,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_command_interpreted(
        self,
        operation_count: int,
        reply: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.command_interpreted(
            operation_count=operation_count,
            reply=reply,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_command_failed(
        self,
        command: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.command_failed(
            command=command,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_operations_applied(
        self,
        receipt_id: Optional[UUID],
        applied: int,
        ignored: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.operations_applied(
            receipt_id=receipt_id,
            applied=applied,
            ignored=ignored,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a chat command).
    Pass it through all subsequent operations.
    """
    return uuid4()
