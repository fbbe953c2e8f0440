"""
Shared fixtures.

No test talks to Gemini. Collaborators are replaced by fakes that
return canned receipts and operations.
"""

import pytest

from splitsmart.config import get_settings
from splitsmart.engine import normalize_receipt
from splitsmart.models.ledger import CommandInterpretation


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def gemini_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def dinner_receipt():
    """Burger and fries, 10% tax, $2 tip."""
    return normalize_receipt(
        [
            {"name": "Burger", "price": 10},
            {"name": "Fries", "price": 4},
        ],
        subtotal=14,
        tax=1.4,
        tip=2,
        total=17.4,
    )


class FakeRecognizer:
    """Returns a fixed receipt, or raises the given error."""

    def __init__(self, receipt=None, error=None):
        self.receipt = receipt
        self.error = error
        self.calls = []

    async def recognize(self, image_bytes, mime_type, filename=None):
        self.calls.append((image_bytes, mime_type, filename))
        if self.error:
            raise self.error
        return self.receipt


class FakeInterpreter:
    """Replays scripted interpretations, one per command."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def interpret(self, command, receipt, ledger):
        self.calls.append((command, receipt, ledger))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, CommandInterpretation):
            return result
        return CommandInterpretation(**result)
