"""
Receipt and Summary Models for SplitSmart

These models define the shapes that flow between the recognizer,
the allocation engine and the UI.

DESIGN DECISION: Money is carried as float, not Decimal.
Shares are fractions like 1/3 that Decimal cannot represent exactly
either, and the proration arithmetic is compared with a tolerance.
Rounding to cents happens only at display time.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# RECEIPT - produced once by the normalizer, never edited
# =============================================================================

class ReceiptItem(BaseModel):
    """
    A single line item on a receipt.

    The id is assigned by the normalizer (``item-<index>``) and is the
    key used by the ledger.

    Prices are NOT checked for sign here. A negative line (a discount,
    a voided item) is reported by the consistency check instead.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Identifier unique within the receipt"
    )
    name: str = Field(
        ...,
        description="Item name as printed on the receipt"
    )
    price: float = Field(
        default=0.0,
        description="Line price"
    )


class Receipt(BaseModel):
    """
    A normalized receipt.

    CRITICAL: The engine trusts ``subtotal`` as printed. It never
    re-derives it from the items, because tax and tip are prorated
    against the restaurant's own subtotal.

    Item order is receipt order. It matters for display only.
    """
    model_config = ConfigDict(frozen=True)

    receipt_id: UUID = Field(
        default_factory=uuid4,
        description="Identifies this receipt in the audit trail"
    )
    items: tuple[ReceiptItem, ...] = Field(default_factory=tuple)
    subtotal: float = 0.0
    tax: float = 0.0
    tip: float = 0.0
    total: float = 0.0

    @property
    def item_ids(self) -> list[str]:
        return [item.id for item in self.items]

    @property
    def items_sum(self) -> float:
        """Sum of line prices (not used for proration)."""
        return sum(item.price for item in self.items)

    def get_item(self, item_id: str) -> Optional[ReceiptItem]:
        """Look up an item by id, or None for an unknown id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None


# =============================================================================
# SUMMARY MODELS - derived on every query, never stored
# =============================================================================

class PersonSummary(BaseModel):
    """What one person owes."""

    name: str
    items_total: float = 0.0
    tax_share: float = 0.0
    tip_share: float = 0.0
    total: float = 0.0

    @property
    def extras(self) -> float:
        """Tax and tip together, as shown in the summary footer."""
        return self.tax_share + self.tip_share


class AllocationOverview(BaseModel):
    """
    Summaries plus the amounts nobody has claimed yet.

    ``unassigned_amount`` is the value of the (partly) unassigned items.
    It is NOT spread over anybody; the UI shows it so the table can see
    what is still open.
    """

    people: list[PersonSummary] = Field(default_factory=list)
    assigned_items_total: float = 0.0
    unassigned_amount: float = 0.0
    allocated_total: float = 0.0
    unassigned_item_ids: list[str] = Field(default_factory=list)

    @property
    def is_fully_assigned(self) -> bool:
        return not self.unassigned_item_ids


# =============================================================================
# IMAGE UPLOAD
# =============================================================================

class ImageUpload(BaseModel):
    """Represents an uploaded receipt photo before recognition."""

    upload_id: UUID = Field(
        default_factory=uuid4,
        description="Unique upload identifier"
    )
    uploaded_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    original_filename: Optional[str] = None
    file_size_bytes: int = Field(ge=0)
    mime_type: str

    @field_validator('mime_type')
    @classmethod
    def normalize_mime_type(cls, v: str) -> str:
        return v.strip().lower()


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single consistency issue found on a receipt."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'subtotal_mismatch', 'negative_price')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the advisory receipt check.

    IMPORTANT: The check never blocks a split. A receipt whose numbers
    don't add up can still be split; the user just gets told.
    """

    receipt_id: UUID = Field(
        ...,
        description="ID of the receipt being checked"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    is_consistent: bool = Field(
        ...,
        description="True when no warning-level issue was found"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All issues found"
    )

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "warning")


# =============================================================================
# CHAT TRANSCRIPT
# =============================================================================

class ChatRole(str, Enum):
    """Who wrote a chat message."""
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """One line of the split assistant transcript."""

    id: UUID = Field(default_factory=uuid4)
    role: ChatRole
    text: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
