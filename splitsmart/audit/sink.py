"""
Audit Sinks

DESIGN DECISION: The audit logger writes through an abstract sink.
A session keeps its trail in memory (nothing outlives the process),
but the interface lets a durable backend be plugged in later without
touching the flows.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from splitsmart.models.audit import AuditEvent, AuditEventType


class AuditSink(ABC):
    """
    Abstract interface for audit event storage.

    Audit events are append-only.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if stored successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events sharing a correlation ID, oldest first."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 50,
    ) -> list[AuditEvent]:
        """Get the most recent events, newest first."""
        pass


class InMemoryAuditSink(AuditSink):
    """Keeps the session's audit trail in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 50,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def events_of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self._events if e.event_type == event_type]

    def __len__(self) -> int:
        return len(self._events)
