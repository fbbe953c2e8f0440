"""Split engine package: normalize, apply, allocate."""

from splitsmart.engine.allocation import (
    allocation_overview,
    items_totals,
    safe_subtotal,
    summarize,
    unassigned_items,
)
from splitsmart.engine.applier import (
    ApplyResult,
    apply_operations,
    apply_operations_with_stats,
    equal_shares,
)
from splitsmart.engine.normalizer import (
    normalize_receipt,
    receipt_from_payload,
)

__all__ = [
    "ApplyResult",
    "allocation_overview",
    "apply_operations",
    "apply_operations_with_stats",
    "equal_shares",
    "items_totals",
    "normalize_receipt",
    "receipt_from_payload",
    "safe_subtotal",
    "summarize",
    "unassigned_items",
]
