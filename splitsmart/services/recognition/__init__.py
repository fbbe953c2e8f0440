"""Receipt recognition services package."""

from splitsmart.services.recognition.gemini_service import (
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
