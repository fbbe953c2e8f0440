"""
Receipt Normalizer

Converts what the recognizer returned into a canonical Receipt:
- every item gets a stable id, ``item-<index>`` by input position
- missing or falsy subtotal/tax/tip/total become 0

IMPORTANT: Normalization does NOT validate. Negative prices and numbers
that don't add up pass straight through; the consistency check reports
them, it doesn't fix them.
"""

import math
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from splitsmart.models.receipt import Receipt, ReceiptItem


DEFAULT_ITEM_NAME = "Item"


def item_id_for(index: int) -> str:
    return f"item-{index}"


def _safe_float(value: Any) -> Optional[float]:
    """Read a number, or None if the value isn't one."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _amount(value: Any) -> float:
    """Receipt-level amounts: absent, falsy or unreadable means 0."""
    return _safe_float(value) or 0.0


def _item_name(value: Any) -> str:
    if value is None:
        return DEFAULT_ITEM_NAME
    name = str(value).strip()
    return name or DEFAULT_ITEM_NAME


def normalize_receipt(
    raw_items: Iterable[Mapping[str, Any]],
    subtotal: Any = None,
    tax: Any = None,
    tip: Any = None,
    total: Any = None,
) -> Receipt:
    """
    Build a Receipt from raw ``{name, price}`` items and optional totals.

    Ids follow input position, including positions whose entry had to
    be skipped, so an id never shifts once assigned.
    """
    items = []
    for index, raw in enumerate(raw_items or []):
        if not isinstance(raw, Mapping):
            continue
        items.append(ReceiptItem(
            id=item_id_for(index),
            name=_item_name(raw.get("name")),
            price=_amount(raw.get("price")),
        ))

    return Receipt(
        items=items,
        subtotal=_amount(subtotal),
        tax=_amount(tax),
        tip=_amount(tip),
        total=_amount(total),
    )


def receipt_from_payload(payload: Any) -> Receipt:
    """
    Normalize the recognizer's JSON object.

    Expected shape:
        {"items": [{"name": "Burger", "price": 10}], "subtotal": 10,
         "tax": 1, "tip": 0, "total": 11}
    """
    if not isinstance(payload, Mapping):
        return normalize_receipt([])

    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []

    return normalize_receipt(
        raw_items,
        subtotal=payload.get("subtotal"),
        tax=payload.get("tax"),
        tip=payload.get("tip"),
        total=payload.get("total"),
    )
