"""Receipt validation package."""

from splitsmart.validation.validator import ReceiptValidator

__all__ = ["ReceiptValidator"]
