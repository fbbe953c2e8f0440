"""
Allocation Calculator

Turns a receipt and a ledger into what each person owes.

ALGORITHM:
1. Walk the items in receipt order and add price * share to each holder.
2. Prorate tax and tip by each person's items total over the receipt's
   stated subtotal (1 if the subtotal is zero).
3. Drop anybody whose items total is zero.
4. Sort by total, highest first. Ties keep first-seen order.

KNOWN SIMPLIFICATION (kept on purpose):
Tax and tip are prorated over the STATED subtotal, not over the sum of
assigned items. While items are still unassigned, their value stays in
the denominator but in nobody's numerator, so the people's totals add up
to less than the receipt total. Normalizing by the assigned sum instead
would change everybody's numbers.
"""

from collections.abc import Mapping

from splitsmart.models.receipt import (
    AllocationOverview,
    PersonSummary,
    Receipt,
    ReceiptItem,
)


def safe_subtotal(receipt: Receipt) -> float:
    """The receipt subtotal, or 1 when it is zero or missing."""
    return receipt.subtotal or 1.0


def items_totals(
    receipt: Receipt,
    ledger: Mapping[str, Mapping[str, float]],
) -> dict[str, float]:
    """
    Raw item cost per person, keyed in first-encountered order.

    Ledger entries for ids that aren't on the receipt are ignored.
    """
    totals: dict[str, float] = {}
    for item in receipt.items:
        for person, share in ledger.get(item.id, {}).items():
            totals[person] = totals.get(person, 0.0) + item.price * share
    return totals


def summarize(
    receipt: Receipt,
    ledger: Mapping[str, Mapping[str, float]],
) -> list[PersonSummary]:
    """
    Compute each person's share of the bill.

    Returns summaries sorted by total descending. People with nothing
    assigned (or only zero-priced items) are left out.
    """
    denominator = safe_subtotal(receipt)
    summaries = []

    for person, items_total in items_totals(receipt, ledger).items():
        if items_total == 0:
            continue
        ratio = items_total / denominator
        tax_share = receipt.tax * ratio
        tip_share = receipt.tip * ratio
        summaries.append(PersonSummary(
            name=person,
            items_total=items_total,
            tax_share=tax_share,
            tip_share=tip_share,
            total=items_total + tax_share + tip_share,
        ))

    # sorted() is stable, reverse=True included
    return sorted(summaries, key=lambda s: s.total, reverse=True)


def is_assigned(ledger: Mapping[str, Mapping[str, float]], item_id: str) -> bool:
    return bool(ledger.get(item_id))


def unassigned_items(
    receipt: Receipt,
    ledger: Mapping[str, Mapping[str, float]],
) -> list[ReceiptItem]:
    """Items nobody holds a share of, in receipt order."""
    return [item for item in receipt.items if not is_assigned(ledger, item.id)]


def allocation_overview(
    receipt: Receipt,
    ledger: Mapping[str, Mapping[str, float]],
) -> AllocationOverview:
    """
    Summaries plus the value still unclaimed.

    An item shared at less than 100% contributes its open remainder to
    ``unassigned_amount``.
    """
    people = summarize(receipt, ledger)

    unassigned_amount = 0.0
    for item in receipt.items:
        claimed = sum(ledger.get(item.id, {}).values())
        unassigned_amount += item.price * max(0.0, 1.0 - claimed)

    return AllocationOverview(
        people=people,
        assigned_items_total=sum(p.items_total for p in people),
        unassigned_amount=unassigned_amount,
        allocated_total=sum(p.total for p in people),
        unassigned_item_ids=[item.id for item in unassigned_items(receipt, ledger)],
    )
