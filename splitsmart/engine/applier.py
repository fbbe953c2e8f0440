"""
Operation Applier

DESIGN DECISION: Applying operations is DETERMINISTIC and TOTAL.
The command interpreter (an LLM) proposes operations.
This module folds them into a ledger snapshot.
It never raises, whatever the interpreter hands back.

Snapshot in, snapshot out:
- The input ledger is never modified.
- A brand-new ledger is returned, so callers can diff old vs. new.
- Operations apply strictly in order; the last one to touch an item wins.

Item ids are NOT checked against the receipt. A stale or invented id is
stored like any other and simply never matches an item when totals are
computed.
"""

from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

import structlog

from splitsmart.models.ledger import (
    Ledger,
    LedgerOperation,
    OperationAction,
    copy_ledger,
)


logger = structlog.get_logger(__name__)


class ApplyResult(NamedTuple):
    """New ledger plus how many operations took effect."""
    ledger: Ledger
    applied: int
    ignored: int


def equal_shares(people: list[str]) -> dict[str, float]:
    """Each listed person gets exactly 1/n of the item."""
    if not people:
        return {}
    share = 1.0 / len(people)
    return {person: share for person in people}


def apply_operations_with_stats(
    ledger: Mapping[str, Mapping[str, float]],
    operations: Iterable[Any],
) -> ApplyResult:
    """
    Apply a batch and report how many operations were applied or ignored.

    Each entry may be a LedgerOperation or a raw wire-shape mapping.
    Malformed entries are skipped one by one; the rest of the batch
    still applies.
    """
    new_ledger = copy_ledger(ledger)
    applied = 0
    ignored = 0

    for position, raw in enumerate(operations or []):
        op = LedgerOperation.from_raw(raw)
        if op is None:
            logger.debug("operation_ignored", position=position, reason="malformed")
            ignored += 1
            continue

        if op.action == OperationAction.CLEAR:
            new_ledger.pop(op.item_id, None)
            applied += 1
        elif op.action == OperationAction.ASSIGN:
            if not op.people:
                logger.debug(
                    "operation_ignored",
                    position=position,
                    item_id=op.item_id,
                    reason="no_people",
                )
                ignored += 1
                continue
            # Whole-item replacement, never a merge with earlier shares
            new_ledger[op.item_id] = equal_shares(op.people)
            applied += 1

    return ApplyResult(ledger=new_ledger, applied=applied, ignored=ignored)


def apply_operations(
    ledger: Mapping[str, Mapping[str, float]],
    operations: Iterable[Any],
) -> Ledger:
    """
    Apply a batch of assign/clear operations to a ledger snapshot.

    Returns a new ledger; ``ledger`` is left untouched.
    """
    return apply_operations_with_stats(ledger, operations).ledger
