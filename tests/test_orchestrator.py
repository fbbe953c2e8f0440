"""
Integration tests for the split session flows, with fake collaborators.
"""

import asyncio

import pytest

from splitsmart.agents import InterpretationFailedError
from splitsmart.audit import AuditLogger, InMemoryAuditSink
from splitsmart.engine import normalize_receipt
from splitsmart.models.audit import AuditEventType
from splitsmart.models.ledger import LedgerOperation
from splitsmart.models.receipt import ChatRole
from splitsmart.orchestrator import SplitSession
from splitsmart.services.recognition import RecognitionFailedError, UnsupportedImageError

from conftest import FakeInterpreter, FakeRecognizer


@pytest.fixture
def sink():
    return InMemoryAuditSink()


def make_session(receipt=None, recognizer_error=None, interpretations=(), sink=None):
    return SplitSession(
        recognizer=FakeRecognizer(receipt=receipt, error=recognizer_error),
        interpreter=FakeInterpreter(*interpretations),
        audit_logger=AuditLogger(sink) if sink is not None else None,
    )


class TestReceiptFlow:

    @pytest.mark.asyncio
    async def test_upload_loads_receipt(self, dinner_receipt, sink):
        session = make_session(receipt=dinner_receipt, sink=sink)

        receipt, validation = await session.upload_receipt(b"img", "image/jpeg", "dinner.jpg")

        assert receipt is dinner_receipt
        assert session.receipt is dinner_receipt
        assert session.ledger == {}
        assert validation.is_consistent
        assert sink.events_of_type(AuditEventType.RECEIPT_RECOGNIZED)

    @pytest.mark.asyncio
    async def test_new_receipt_resets_ledger_and_transcript(self, dinner_receipt):
        session = make_session(
            receipt=dinner_receipt,
            interpretations=[{
                "operations": [{"itemId": "item-0", "people": ["Tom"], "action": "assign"}],
                "reply": "Done!",
            }],
        )
        await session.upload_receipt(b"img", "image/jpeg")
        await session.send_command("Tom had the burger")
        assert session.ledger == {"item-0": {"Tom": 1.0}}

        lunch = normalize_receipt([{"name": "Salad", "price": 9}], subtotal=9)
        await session.load_receipt(lunch)

        assert session.receipt is lunch
        assert session.ledger == {}
        assert session.messages == []
        assert session.summary() == []

    @pytest.mark.asyncio
    async def test_failed_upload_keeps_previous_state(self, dinner_receipt, sink):
        session = make_session(receipt=dinner_receipt, sink=sink)
        await session.upload_receipt(b"img", "image/jpeg")
        await session.apply_operations([LedgerOperation.assign("item-0", ["Tom"])])

        session._recognizer = FakeRecognizer(error=RecognitionFailedError("blurry"))
        with pytest.raises(RecognitionFailedError):
            await session.upload_receipt(b"img2", "image/jpeg")

        assert session.receipt is dinner_receipt
        assert session.ledger == {"item-0": {"Tom": 1.0}}
        assert sink.events_of_type(AuditEventType.EXTERNAL_SERVICE_ERROR)

    @pytest.mark.asyncio
    async def test_rejected_upload_is_audited(self, sink):
        session = make_session(recognizer_error=UnsupportedImageError("pdf"), sink=sink)
        with pytest.raises(UnsupportedImageError):
            await session.upload_receipt(b"%PDF", "application/pdf")
        assert session.receipt is None
        assert sink.events_of_type(AuditEventType.RECEIPT_REJECTED)

    @pytest.mark.asyncio
    async def test_inconsistent_receipt_still_loads(self, sink):
        odd = normalize_receipt([{"name": "Steak", "price": 30}], subtotal=45)
        session = make_session(receipt=odd, sink=sink)

        _, validation = await session.upload_receipt(b"img", "image/png")

        assert not validation.is_consistent
        assert session.receipt is odd
        assert sink.events_of_type(AuditEventType.CONSISTENCY_WARNING)


class TestCommandFlow:

    @pytest.mark.asyncio
    async def test_command_updates_ledger_and_transcript(self, dinner_receipt):
        session = make_session(interpretations=[{
            "operations": [
                {"itemId": "item-0", "people": ["Tom"], "action": "assign"},
                {"itemId": "item-1", "people": ["Tom", "Sam"], "action": "assign"},
            ],
            "reply": "Tom had the burger, and Tom and Sam shared the fries.",
        }])
        await session.load_receipt(dinner_receipt)

        reply = await session.send_command("  Tom had the burger, fries were shared with Sam ")

        assert reply.role == ChatRole.MODEL
        assert reply.text.startswith("Tom had the burger")
        assert session.ledger == {"item-0": {"Tom": 1.0}, "item-1": {"Tom": 0.5, "Sam": 0.5}}
        assert [m.role for m in session.messages] == [ChatRole.USER, ChatRole.MODEL]
        assert session.messages[0].text == "Tom had the burger, fries were shared with Sam"

        summary = session.summary()
        assert [p.name for p in summary] == ["Tom", "Sam"]
        assert summary[0].total == pytest.approx(14.914, abs=1e-3)

    @pytest.mark.asyncio
    async def test_interpreter_sees_current_ledger(self, dinner_receipt):
        session = make_session(interpretations=[
            {"operations": [{"itemId": "item-0", "people": ["Tom"], "action": "assign"}], "reply": "a"},
            {"operations": [], "reply": "b"},
        ])
        await session.load_receipt(dinner_receipt)
        await session.send_command("Tom had the burger")
        await session.send_command("who had what?")

        _, receipt, ledger = session._interpreter.calls[1]
        assert receipt is dinner_receipt
        assert ledger == {"item-0": {"Tom": 1.0}}

    @pytest.mark.asyncio
    async def test_command_without_receipt_is_ignored(self):
        session = make_session()
        assert await session.send_command("Tom had the burger") is None
        assert session.messages == []

    @pytest.mark.asyncio
    async def test_blank_command_is_ignored(self, dinner_receipt):
        session = make_session()
        await session.load_receipt(dinner_receipt)
        assert await session.send_command("   ") is None
        assert session._interpreter.calls == []

    @pytest.mark.asyncio
    async def test_interpreter_failure_gives_fallback_reply(self, dinner_receipt, sink):
        session = make_session(
            interpretations=[InterpretationFailedError("timeout")],
            sink=sink,
        )
        await session.load_receipt(dinner_receipt)
        await session.apply_operations([LedgerOperation.assign("item-1", ["Sam"])])

        reply = await session.send_command("Tom had the burger")

        assert reply.text == "Sorry, I had trouble processing that. Can you try again?"
        assert session.ledger == {"item-1": {"Sam": 1.0}}
        assert sink.events_of_type(AuditEventType.COMMAND_FAILED)

    @pytest.mark.asyncio
    async def test_unexpected_interpreter_error_is_also_absorbed(self, dinner_receipt, sink):
        session = make_session(interpretations=[RuntimeError("boom")], sink=sink)
        await session.load_receipt(dinner_receipt)

        reply = await session.send_command("Tom had the burger")

        assert reply.role == ChatRole.MODEL
        assert session.ledger == {}
        assert sink.events_of_type(AuditEventType.SYSTEM_ERROR)

    @pytest.mark.asyncio
    async def test_garbage_operations_apply_what_is_valid(self, dinner_receipt, sink):
        session = make_session(
            interpretations=[{
                "operations": [
                    {"itemId": "item-0", "action": "teleport"},
                    {"itemId": "item-9", "people": [], "action": "assign"},
                    {"itemId": "item-1", "people": ["Sam"], "action": "assign"},
                ],
                "reply": "Sam had the fries.",
            }],
            sink=sink,
        )
        await session.load_receipt(dinner_receipt)
        await session.send_command("Sam had the fries")

        assert session.ledger == {"item-1": {"Sam": 1.0}}
        applied = sink.events_of_type(AuditEventType.OPERATIONS_APPLIED)[-1]
        assert applied.details == {"applied": 1, "ignored": 2}

    @pytest.mark.asyncio
    async def test_concurrent_commands_are_serialized(self, dinner_receipt):
        class SlowInterpreter(FakeInterpreter):
            async def interpret(self, command, receipt, ledger):
                await asyncio.sleep(0.01)
                return await super().interpret(command, receipt, ledger)

        session = SplitSession(
            recognizer=FakeRecognizer(),
            interpreter=SlowInterpreter(
                {"operations": [{"itemId": "item-0", "people": ["Tom"], "action": "assign"}], "reply": "1"},
                {"operations": [{"itemId": "item-1", "people": ["Sam"], "action": "assign"}], "reply": "2"},
            ),
        )
        await session.load_receipt(dinner_receipt)

        await asyncio.gather(
            session.send_command("Tom had the burger"),
            session.send_command("Sam had the fries"),
        )

        assert session.ledger == {"item-0": {"Tom": 1.0}, "item-1": {"Sam": 1.0}}
        # Second call saw the first call's result
        assert session._interpreter.calls[1][2] == {"item-0": {"Tom": 1.0}}


class TestReadSide:

    @pytest.mark.asyncio
    async def test_ledger_property_is_a_copy(self, dinner_receipt):
        session = make_session()
        await session.load_receipt(dinner_receipt)
        await session.apply_operations([LedgerOperation.assign("item-0", ["Tom"])])

        snapshot = session.ledger
        snapshot["item-0"]["Sam"] = 1.0

        assert session.ledger == {"item-0": {"Tom": 1.0}}

    @pytest.mark.asyncio
    async def test_overview_and_unassigned(self, dinner_receipt):
        session = make_session()
        await session.load_receipt(dinner_receipt)
        await session.apply_operations([LedgerOperation.assign("item-0", ["Tom"])])

        assert [i.name for i in session.unassigned_items()] == ["Fries"]
        assert session.overview().unassigned_amount == pytest.approx(4.0)

    def test_no_receipt_read_side_is_empty(self):
        session = make_session()
        assert session.summary() == []
        assert session.unassigned_items() == []
        assert session.overview().people == []
