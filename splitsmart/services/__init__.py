"""Services package."""

from splitsmart.services.recognition import (
    GeminiReceiptRecognizer,
    RecognitionError,
    RecognitionFailedError,
    UnsupportedImageError,
    parse_receipt_response,
)

__all__ = [
    "GeminiReceiptRecognizer",
    "RecognitionError",
    "RecognitionFailedError",
    "UnsupportedImageError",
    "parse_receipt_response",
]
