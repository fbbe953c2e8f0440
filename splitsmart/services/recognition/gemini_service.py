"""
Receipt Recognition using Gemini

DESIGN DECISION: We use a multimodal Gemini model because:
1. It reads itemized restaurant receipts without a template
2. It returns STRUCTURED JSON when asked for a JSON response type
3. The same credentials serve the command interpreter

This service handles:
1. Checking the upload (type and size) BEFORE any network call
2. Sending the photo with the extraction prompt
3. Parsing the JSON answer
4. Handing it to the normalizer for ids and defaults

CRITICAL: This service does NOT judge whether the numbers add up.
That is the consistency check's job, and it only advises.
"""

from typing import Any, Optional

from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from splitsmart.config import get_settings
from splitsmart.engine.normalizer import receipt_from_payload
from splitsmart.models.receipt import ImageUpload, Receipt
from splitsmart.services.gemini import create_model, extract_json_object, response_text


RECEIPT_PROMPT = """
Analyze this receipt image. Extract all line items with their individual prices.
Also extract the subtotal, tax, and total amount.
If there is a gratuity or tip included in the receipt, extract that too, otherwise set tip to 0.
Ignore payment info lines like "VISA ****".

Respond with ONLY a JSON object in this exact format:
{"items": [{"name": "Burger", "price": 12.5}], "subtotal": 12.5, "tax": 1.1, "tip": 0, "total": 13.6}
"""


class RecognitionError(Exception):
    """Base exception for receipt recognition errors."""
    pass


class UnsupportedImageError(RecognitionError):
    """The upload is not an image we accept."""
    pass


class RecognitionFailedError(RecognitionError):
    """The recognizer could not produce a usable receipt."""
    pass


def parse_receipt_response(text: str) -> Receipt:
    """
    Turn the recognizer's answer into a normalized Receipt.

    Raises:
        RecognitionFailedError: If no JSON object can be found
    """
    data = extract_json_object(text)
    if data is None:
        raise RecognitionFailedError("Recognizer did not return a JSON receipt")
    return receipt_from_payload(data)


class GeminiReceiptRecognizer:
    """
    Receipt recognizer backed by Gemini vision.

    IMPORTANT BOUNDARIES:
    1. This service ONLY extracts - item ids and defaults come from the normalizer
    2. Uploads of the wrong type or size are rejected loudly, before the API call
    """

    def __init__(self):
        self._settings = get_settings().gemini
        self._app_settings = get_settings().app
        self._model = None

    def _get_model(self):
        """Get or create the Gemini model."""
        if self._model is None:
            self._model = create_model(self._settings)
        return self._model

    def check_upload(
        self,
        image_bytes: bytes,
        mime_type: str,
        filename: Optional[str] = None,
    ) -> ImageUpload:
        """
        Validate an upload before recognition.

        Raises:
            UnsupportedImageError: If type or size is not acceptable
        """
        try:
            upload = ImageUpload(
                original_filename=filename,
                file_size_bytes=len(image_bytes),
                mime_type=mime_type or "",
            )
        except ValidationError as e:
            raise UnsupportedImageError(f"Invalid upload: {e}") from e

        allowed = self._app_settings.supported_image_types_list
        if upload.mime_type not in allowed:
            raise UnsupportedImageError(
                f"Unsupported image type: {upload.mime_type or 'unknown'}. "
                f"Allowed: {', '.join(allowed)}"
            )
        if upload.file_size_bytes == 0:
            raise UnsupportedImageError("The uploaded file is empty")
        if upload.file_size_bytes > self._app_settings.max_upload_size_bytes:
            raise UnsupportedImageError(
                f"Image is larger than {self._app_settings.max_upload_size_mb} MB"
            )
        return upload

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, image_bytes: bytes, mime_type: str) -> Any:
        model = self._get_model()
        return await model.generate_content_async([
            {"mime_type": mime_type, "data": image_bytes},
            RECEIPT_PROMPT,
        ])

    async def recognize(
        self,
        image_bytes: bytes,
        mime_type: str,
        filename: Optional[str] = None,
    ) -> Receipt:
        """
        Extract a receipt from a photo.

        Args:
            image_bytes: Raw image content
            mime_type: e.g. "image/jpeg"
            filename: Original filename, for error messages only

        Returns:
            A normalized Receipt

        Raises:
            UnsupportedImageError: If the upload is rejected
            RecognitionFailedError: If the model call or parsing fails
        """
        upload = self.check_upload(image_bytes, mime_type, filename)

        try:
            response = await self._generate(image_bytes, upload.mime_type)
        except Exception as e:
            raise RecognitionFailedError(f"Failed to read receipt: {e}") from e

        text = response_text(response)
        if not text:
            raise RecognitionFailedError("No text returned from Gemini")

        return parse_receipt_response(text)
