"""Audit logging package."""

from splitsmart.audit.logger import AuditLogger, configure_logging, create_correlation_id
from splitsmart.audit.sink import AuditSink, InMemoryAuditSink

__all__ = [
    "AuditLogger",
    "AuditSink",
    "InMemoryAuditSink",
    "configure_logging",
    "create_correlation_id",
]
