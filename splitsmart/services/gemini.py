"""
Shared Gemini plumbing for the recognizer and the interpreter.
"""

import json
from typing import Any, Optional

import google.generativeai as genai

from splitsmart.config.settings import GeminiSettings


def create_model(
    settings: GeminiSettings,
    system_instruction: Optional[str] = None,
    max_output_tokens: Optional[int] = None,
) -> genai.GenerativeModel:
    """Configure the client and build a JSON-answering model."""
    genai.configure(api_key=settings.api_key)
    return genai.GenerativeModel(
        model_name=settings.model_name,
        system_instruction=system_instruction,
        generation_config={
            "temperature": settings.temperature,
            "max_output_tokens": max_output_tokens or settings.max_tokens,
            "response_mime_type": "application/json",
        },
    )


def response_text(response: Any) -> str:
    """
    Text of a Gemini response, or "" if there is none.

    ``response.text`` raises ValueError when the candidate was blocked
    or carries no text part.
    """
    try:
        return (response.text or "").strip()
    except ValueError:
        return ""


def extract_json_object(text: str) -> Optional[dict]:
    """
    Find and parse the outermost JSON object in model output.

    Models sometimes wrap JSON in prose or code fences even when asked
    not to. Returns None if no object can be parsed.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        return None
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
