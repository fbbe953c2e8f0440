"""
Audit Models for SplitSmart

Every significant action in a split session is logged for audit purposes.
This provides:
1. Traceability of who was assigned what, and why
2. Debugging information when a collaborator misbehaves
3. Ability to reconstruct how a ledger reached its current state

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each step of the upload and command flows has its own event type.
    """
    # Receipt handling
    RECEIPT_UPLOADED = "receipt_uploaded"
    RECEIPT_RECOGNIZED = "receipt_recognized"
    RECEIPT_REJECTED = "receipt_rejected"
    CONSISTENCY_WARNING = "consistency_warning"
    LEDGER_RESET = "ledger_reset"

    # Commands
    COMMAND_RECEIVED = "command_received"
    COMMAND_INTERPRETED = "command_interpreted"
    COMMAND_FAILED = "command_failed"
    OPERATIONS_APPLIED = "operations_applied"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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
        description="Type of entity (e.g., 'receipt', 'upload', 'command')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one command)"
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

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

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
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.receipt_uploaded(upload_id, "dinner.jpg", 2048, cid)
        event = AuditEventBuilder.operations_applied(receipt_id, 3, 1, cid)
    """

    @staticmethod
    def receipt_uploaded(
        upload_id: UUID,
        filename: Optional[str],
        file_size: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPLOADED,
            entity_type="upload",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Receipt photo uploaded: {filename or 'unnamed'}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def receipt_recognized(
        receipt_id: UUID,
        item_count: int,
        total: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_RECOGNIZED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Receipt recognized with {item_count} items",
            details={
                "item_count": item_count,
                "total": total,
            },
        )

    @staticmethod
    def receipt_rejected(
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="upload",
            correlation_id=correlation_id,
            description="Receipt photo rejected before recognition",
            error_message=reason,
        )

    @staticmethod
    def consistency_warning(
        receipt_id: UUID,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONSISTENCY_WARNING,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Receipt numbers look inconsistent ({len(issues)} issues)",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def ledger_reset(
        receipt_id: UUID,
        previous_entries: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RESET,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description="Assignments cleared for new receipt",
            details={
                "previous_entries": previous_entries,
            },
        )

    @staticmethod
    def command_received(
        command: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_RECEIVED,
            entity_type="command",
            correlation_id=correlation_id,
            description="Split command received",
            details={
                "command": command,
            },
            is_user_action=True,
        )

    @staticmethod
    def command_interpreted(
        operation_count: int,
        reply: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_INTERPRETED,
            entity_type="command",
            correlation_id=correlation_id,
            description=f"Command interpreted into {operation_count} operations",
            details={
                "operation_count": operation_count,
                "reply": reply,
            },
        )

    @staticmethod
    def command_failed(
        command: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="command",
            correlation_id=correlation_id,
            description="Split command could not be interpreted",
            error_message=error_message,
            details={
                "command": command,
            },
        )

    @staticmethod
    def operations_applied(
        receipt_id: Optional[UUID],
        applied: int,
        ignored: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATIONS_APPLIED,
            entity_type="receipt",
            entity_id=receipt_id,
            correlation_id=correlation_id,
            description=f"Applied {applied} operations ({ignored} ignored)",
            details={
                "applied": applied,
                "ignored": ignored,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
