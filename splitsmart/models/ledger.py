"""
Ledger and Operation Models

The ledger is the record of who had what:

    {"item-0": {"Tom": 1.0}, "item-1": {"Tom": 0.5, "Sam": 0.5}}

DESIGN DECISION: The ledger is a plain dict of dicts, not a model.
It is compared structurally and dumped to JSON for the interpreter
prompt as-is. Dict insertion order is kept for display only; no total
ever depends on it.

RULES:
- Every stored share is in (0, 1]. A zero share is never stored.
- Shares for an item may sum to less than 1. The rest is unassigned.
- A snapshot is never edited in place. The applier copies first.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)


Ledger = dict[str, dict[str, float]]


def empty_ledger() -> Ledger:
    """A fresh ledger with nothing assigned."""
    return {}


def copy_ledger(ledger: Mapping[str, Mapping[str, float]]) -> Ledger:
    """Deep copy a ledger snapshot so the copy can be edited safely."""
    return {item_id: dict(shares) for item_id, shares in ledger.items()}


def people_for_item(ledger: Mapping[str, Mapping[str, float]], item_id: str) -> list[str]:
    """Names holding a share of the item, in assignment order."""
    return list(ledger.get(item_id, {}))


class OperationAction(str, Enum):
    """The two ledger mutations the interpreter may ask for."""
    ASSIGN = "assign"
    CLEAR = "clear"


class LedgerOperation(BaseModel):
    """
    One ledger mutation.

    Wire shape (from the interpreter):
        {"itemId": "item-0", "people": ["Tom", "Sam"], "action": "assign"}

    ``people`` is an ordered set: blank names are dropped and repeated
    names collapse to their first occurrence, so each listed person
    gets exactly 1/n.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    action: OperationAction
    item_id: str = Field(
        ...,
        alias="itemId",
        min_length=1,
        description="Receipt item id (not checked against the receipt)"
    )
    people: list[str] = Field(
        default_factory=list,
        description="Complete new ownership set for an assign"
    )

    @field_validator('people', mode='before')
    @classmethod
    def none_means_nobody(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator('people')
    @classmethod
    def dedupe_people(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for name in v:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    @classmethod
    def assign(cls, item_id: str, people: list[str]) -> "LedgerOperation":
        return cls(action=OperationAction.ASSIGN, item_id=item_id, people=people)

    @classmethod
    def clear(cls, item_id: str) -> "LedgerOperation":
        return cls(action=OperationAction.CLEAR, item_id=item_id)

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["LedgerOperation"]:
        """
        Coerce interpreter output into an operation.

        Returns None for anything malformed (unknown action, missing
        item id, people that aren't strings). Never raises.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            return None
        try:
            return cls.model_validate(dict(raw))
        except ValidationError:
            return None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CommandInterpretation(BaseModel):
    """
    What the command interpreter hands back.

    ``operations`` stays in raw wire shape. Coercion happens in the
    applier so one bad entry never spoils the rest of the batch.
    """

    operations: list[Any] = Field(default_factory=list)
    reply: str
