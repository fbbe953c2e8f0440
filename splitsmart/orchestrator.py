"""
Split Session Orchestrator

This module ties the collaborators to the engine and defines the
end-to-end flows for:
1. Receipt upload (photo → recognize → normalize → check → reset ledger)
2. Chat command (text → interpret → apply → reply)

DESIGN DECISION: The session owns the only mutable state in the system:
the current receipt, the current ledger snapshot and the transcript.
Everything it calls is snapshot in, snapshot out. The session swaps in
the new snapshot once a flow completes, so readers never see a half
applied batch.

Flows are serialized with a lock: a second command waits until the
first one has been applied before it reads the ledger. Nothing here is
persisted; a new session starts empty.
"""

import asyncio
from collections.abc import Iterable
from typing import Any, Optional
from uuid import UUID, uuid4

from splitsmart.agents import InterpretationError, SplitCommandAgent
from splitsmart.audit import AuditLogger, InMemoryAuditSink, create_correlation_id
from splitsmart.config import get_settings
from splitsmart.engine import (
    allocation_overview,
    apply_operations_with_stats,
    summarize,
    unassigned_items,
)
from splitsmart.models.ledger import Ledger, copy_ledger, empty_ledger
from splitsmart.models.receipt import (
    AllocationOverview,
    ChatMessage,
    ChatRole,
    PersonSummary,
    Receipt,
    ReceiptItem,
    ValidationResult,
)
from splitsmart.services.recognition import GeminiReceiptRecognizer, UnsupportedImageError
from splitsmart.validation import ReceiptValidator


class SplitSession:
    """
    One bill being split.

    Flow:
    1. Upload → recognizer returns a normalized Receipt
    2. Check → advisory consistency check (never blocks)
    3. Reset → ledger starts empty for the new receipt
    4. Command → interpreter proposes operations
    5. Apply → applier folds them into a new ledger
    6. Summary → recomputed from receipt + ledger on every call
    """

    def __init__(
        self,
        recognizer: Optional[GeminiReceiptRecognizer] = None,
        interpreter: Optional[SplitCommandAgent] = None,
        validator: Optional[ReceiptValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._recognizer = recognizer or GeminiReceiptRecognizer()
        self._interpreter = interpreter or SplitCommandAgent()
        self._validator = validator or ReceiptValidator()
        self._audit_logger = audit_logger
        self._app_settings = get_settings().app

        self._receipt: Optional[Receipt] = None
        self._ledger: Ledger = empty_ledger()
        self._messages: list[ChatMessage] = []
        self._validation: Optional[ValidationResult] = None
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def receipt(self) -> Optional[Receipt]:
        return self._receipt

    @property
    def ledger(self) -> Ledger:
        """A copy of the current ledger snapshot."""
        return copy_ledger(self._ledger)

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def validation(self) -> Optional[ValidationResult]:
        return self._validation

    @property
    def audit_logger(self) -> Optional[AuditLogger]:
        return self._audit_logger

    def summary(self) -> list[PersonSummary]:
        """What each person owes right now."""
        if self._receipt is None:
            return []
        return summarize(self._receipt, self._ledger)

    def overview(self) -> AllocationOverview:
        if self._receipt is None:
            return AllocationOverview()
        return allocation_overview(self._receipt, self._ledger)

    def unassigned_items(self) -> list[ReceiptItem]:
        if self._receipt is None:
            return []
        return unassigned_items(self._receipt, self._ledger)

    # ------------------------------------------------------------------
    # Receipt flow
    # ------------------------------------------------------------------

    async def upload_receipt(
        self,
        image_bytes: bytes,
        mime_type: str,
        filename: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Receipt, ValidationResult]:
        """
        Recognize a receipt photo and start a fresh split.

        On failure the previous receipt, ledger and transcript stay
        exactly as they were.

        Returns:
            (receipt, validation_result)

        Raises:
            UnsupportedImageError: If the upload was rejected
            RecognitionError: If recognition failed
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_receipt_uploaded(
                upload_id=uuid4(),
                filename=filename,
                file_size=len(image_bytes),
                correlation_id=correlation_id,
            )

        try:
            receipt = await self._recognizer.recognize(image_bytes, mime_type, filename)
        except UnsupportedImageError as e:
            if self._audit_logger:
                await self._audit_logger.log_receipt_rejected(
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="receipt_recognizer",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        validation = await self.load_receipt(receipt, correlation_id=correlation_id)
        return receipt, validation

    async def load_receipt(
        self,
        receipt: Receipt,
        correlation_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Replace the current receipt wholesale.

        The ledger is reset to empty and the transcript cleared: ids like
        ``item-0`` mean a different dish on a different receipt.
        """
        correlation_id = correlation_id or create_correlation_id()
        validation = self._validator.validate(receipt)

        async with self._lock:
            previous_entries = len(self._ledger)
            self._receipt = receipt
            self._ledger = empty_ledger()
            self._messages = []
            self._validation = validation

        if self._audit_logger:
            await self._audit_logger.log_receipt_recognized(
                receipt_id=receipt.receipt_id,
                item_count=len(receipt.items),
                total=receipt.total,
                correlation_id=correlation_id,
            )
            await self._audit_logger.log_ledger_reset(
                receipt_id=receipt.receipt_id,
                previous_entries=previous_entries,
                correlation_id=correlation_id,
            )
            if not validation.is_consistent:
                await self._audit_logger.log_consistency_warning(
                    receipt_id=receipt.receipt_id,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in validation.issues
                    ],
                    correlation_id=correlation_id,
                )

        return validation

    # ------------------------------------------------------------------
    # Command flow
    # ------------------------------------------------------------------

    async def send_command(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[ChatMessage]:
        """
        Run one chat command through the interpreter and the applier.

        Blank text, or a command sent before any receipt is loaded, is
        ignored and returns None. If the interpreter fails, the ledger is
        left as it was and the fallback reply is returned.

        Returns:
            The assistant's reply message
        """
        command = (text or "").strip()
        if not command or self._receipt is None:
            return None

        correlation_id = correlation_id or create_correlation_id()

        async with self._lock:
            self._messages.append(ChatMessage(role=ChatRole.USER, text=command))

            if self._audit_logger:
                await self._audit_logger.log_command_received(
                    command=command,
                    correlation_id=correlation_id,
                )

            try:
                interpretation = await self._interpreter.interpret(
                    command, self._receipt, copy_ledger(self._ledger)
                )
            except Exception as e:
                if self._audit_logger:
                    await self._audit_logger.log_command_failed(
                        command=command,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                    if not isinstance(e, InterpretationError):
                        await self._audit_logger.log_error(
                            error_type=type(e).__name__,
                            error_message=str(e),
                            correlation_id=correlation_id,
                        )
                return self._reply(self._app_settings.fallback_reply)

            if self._audit_logger:
                await self._audit_logger.log_command_interpreted(
                    operation_count=len(interpretation.operations),
                    reply=interpretation.reply,
                    correlation_id=correlation_id,
                )

            await self._apply_locked(interpretation.operations, correlation_id)
            return self._reply(interpretation.reply)

    async def apply_operations(
        self,
        operations: Iterable[Any],
        correlation_id: Optional[UUID] = None,
    ) -> Ledger:
        """
        Apply operations directly, without the interpreter.

        Used by the UI's per-item controls. Returns the new ledger.
        """
        correlation_id = correlation_id or create_correlation_id()
        async with self._lock:
            await self._apply_locked(operations, correlation_id)
            return copy_ledger(self._ledger)

    async def _apply_locked(
        self,
        operations: Iterable[Any],
        correlation_id: UUID,
    ) -> None:
        result = apply_operations_with_stats(self._ledger, operations)
        self._ledger = result.ledger

        if self._audit_logger:
            await self._audit_logger.log_operations_applied(
                receipt_id=self._receipt.receipt_id if self._receipt else None,
                applied=result.applied,
                ignored=result.ignored,
                correlation_id=correlation_id,
            )

    def _reply(self, text: str) -> ChatMessage:
        message = ChatMessage(role=ChatRole.MODEL, text=text)
        self._messages.append(message)
        return message


def create_session() -> SplitSession:
    """
    Factory function to create a Gemini-backed session.

    The audit trail is kept in memory for the life of the session.
    """
    audit_logger = AuditLogger(InMemoryAuditSink())
    return SplitSession(audit_logger=audit_logger)
