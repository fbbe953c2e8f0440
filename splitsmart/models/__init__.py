"""
Data Models Package

This package contains the Pydantic models and ledger types used in SplitSmart.
All data flowing between the collaborators and the engine conforms to these.
"""

from splitsmart.models.receipt import (
    AllocationOverview,
    ChatMessage,
    ChatRole,
    ImageUpload,
    PersonSummary,
    Receipt,
    ReceiptItem,
    ValidationIssue,
    ValidationResult,
)
from splitsmart.models.ledger import (
    CommandInterpretation,
    Ledger,
    LedgerOperation,
    OperationAction,
    copy_ledger,
    empty_ledger,
    people_for_item,
)
from splitsmart.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Receipt models
    "AllocationOverview",
    "ChatMessage",
    "ChatRole",
    "ImageUpload",
    "PersonSummary",
    "Receipt",
    "ReceiptItem",
    "ValidationIssue",
    "ValidationResult",
    # Ledger
    "CommandInterpretation",
    "Ledger",
    "LedgerOperation",
    "OperationAction",
    "copy_ledger",
    "empty_ledger",
    "people_for_item",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
