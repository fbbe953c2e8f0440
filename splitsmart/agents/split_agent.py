"""
Split Command Agent

DESIGN DECISION: The LLM is a TRANSLATOR, not a CALCULATOR.
It turns "Alice and Bob shared the pizza" into operations:

    {"operations": [{"itemId": "item-2", "people": ["Alice", "Bob"], "action": "assign"}],
     "reply": "Got it, Alice and Bob split the pizza."}

CRITICAL BOUNDARIES:
- CAN: Match item names to ids, pick who had what, write a friendly reply
- CANNOT: Write shares or totals (the applier gives each person 1/n)
- CANNOT: Touch the ledger directly (it only proposes operations)

Asking for a list of operations instead of the full updated ledger
keeps the response schema fixed: a map keyed by item id has no static
schema, a list of {itemId, people, action} does.
"""

import json
from collections.abc import Mapping
from typing import Any

from tenacity import retry, stop_after_attempt, wait_exponential

from splitsmart.config import get_settings
from splitsmart.models.ledger import CommandInterpretation
from splitsmart.models.receipt import Receipt
from splitsmart.services.gemini import create_model, extract_json_object, response_text


SYSTEM_PROMPT = """You are a helpful bill splitting assistant.
You get a list of receipt items and the current assignments.
The user will send messages like "Tom had the burger" or "Alice and Bob shared the pizza".

Your goal is to turn the user's intent into a list of operations.

Rules:
1. Each operation is {"itemId": "<item id>", "people": ["Name", ...], "action": "assign" | "clear"}.
2. "assign" REPLACES everyone on that item with the listed people, who share it equally.
   If one person pays for an item, list only that person.
3. To add someone to an item that is already shared, list the existing people AND the new one.
4. If the user says "reset the burger" or "nobody had the fries", use "clear" for that item.
5. Only use item ids from the receipt items list.
6. Match items intelligently based on the name. If ambiguous, make your best guess,
   or ask for clarification in the reply (but try to guess first).
7. Always be friendly in your "reply".

Respond with ONLY a JSON object:
{"operations": [...], "reply": "..."}"""


class InterpretationError(Exception):
    """Base exception for command interpretation errors."""
    pass


class InterpretationFailedError(InterpretationError):
    """The interpreter gave no usable answer."""
    pass


def build_context(
    command: str,
    receipt: Receipt,
    ledger: Mapping[str, Mapping[str, float]],
) -> str:
    """The per-command message: items, current assignments, then the command."""
    items = [
        {"id": item.id, "name": item.name, "price": item.price}
        for item in receipt.items
    ]
    return (
        f"Current Receipt Items:\n{json.dumps(items)}\n\n"
        f"Current Assignments:\n{json.dumps(dict(ledger))}\n\n"
        f"User message: {command}"
    )


def parse_interpretation(text: str, default_reply: str = "Done.") -> CommandInterpretation:
    """
    Parse the interpreter's JSON answer.

    Only the envelope is checked here. Individual operations are left
    in raw form; the applier skips whichever ones are malformed.

    Raises:
        InterpretationFailedError: If there is no JSON object at all
    """
    data = extract_json_object(text)
    if data is None:
        raise InterpretationFailedError("Interpreter did not return a JSON object")

    operations = data.get("operations")
    if not isinstance(operations, list):
        operations = []

    reply = data.get("reply")
    if not isinstance(reply, str) or not reply.strip():
        reply = default_reply

    return CommandInterpretation(operations=operations, reply=reply.strip())


class SplitCommandAgent:
    """
    AI agent that interprets chat commands.

    BOUNDARIES:
    - NEVER mutates the ledger
    - NEVER computes money
    - Raises InterpretationError instead of guessing when the model fails
    """

    def __init__(self):
        self._settings = get_settings().gemini
        self._default_reply = get_settings().app.default_reply
        self._model = None

    def _get_model(self):
        if self._model is None:
            self._model = create_model(
                self._settings,
                system_instruction=SYSTEM_PROMPT,
                max_output_tokens=1024,
            )
        return self._model

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, contents: str) -> Any:
        return await self._get_model().generate_content_async(contents)

    async def interpret(
        self,
        command: str,
        receipt: Receipt,
        ledger: Mapping[str, Mapping[str, float]],
    ) -> CommandInterpretation:
        """
        Convert a free-text command into ledger operations and a reply.

        Raises:
            InterpretationFailedError: If the model call fails or returns
                nothing parsable
        """
        try:
            response = await self._generate(build_context(command, receipt, ledger))
        except Exception as e:
            raise InterpretationFailedError(f"Interpreter call failed: {e}") from e

        return parse_interpretation(response_text(response), self._default_reply)
