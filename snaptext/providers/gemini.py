"""Google Gemini ``generateContent`` protocol."""
from __future__ import annotations

from typing import Any, Mapping

from snaptext.errors import ErrorKind, OcrError
from snaptext.vision.screenshots import CroppedImage

from .base import ProviderClient, WireRequest, first_item, response_format_error

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

SAFETY_FINISH_REASONS = frozenset({"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"})

DEFAULT_PROMPT = """Recognize all of the text in the image. Requirements:
1. Extract every piece of visible text
2. Keep the original paragraph structure and line breaks
3. Output tables as Markdown tables
4. Output code as fenced code blocks
5. Output only the recognized content, without explanations or descriptions"""


class GeminiProvider(ProviderClient):
    """Inline base64 image part plus a text part; API key in the query string."""

    name = "gemini"
    display_name = "Google Gemini"
    key_label = "Gemini API Key"
    config_key = "gemini_api_key"
    default_model = "gemini-2.5-flash"
    default_prompt = DEFAULT_PROMPT
    error_messages = {
        **ProviderClient.error_messages,
        500: "Gemini hit an internal server error, please try again later",
        503: "Gemini is temporarily unavailable, please try again later",
    }

    def __init__(self, base_url: str = GEMINI_BASE_URL, *, temperature: float = 0.1, max_output_tokens: int = 8192) -> None:
        self._base_url = base_url.rstrip("/")
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens

    def encode(self, image: CroppedImage, prompt: str, model: str, api_key: str) -> WireRequest:
        return WireRequest(
            url=f"{self._base_url}/{model}:generateContent",
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json={
                "contents": [
                    {
                        "parts": [
                            {"inline_data": {"mime_type": image.mime_type, "data": image.to_base64()}},
                            {"text": prompt},
                        ]
                    }
                ],
                "generationConfig": {
                    "temperature": self._temperature,
                    "maxOutputTokens": self._max_output_tokens,
                },
            },
        )

    def decode(self, payload: Mapping[str, Any]) -> str:
        candidate = first_item(payload, "candidates")
        if candidate is None:
            feedback = payload.get("promptFeedback")
            if isinstance(feedback, Mapping) and feedback.get("blockReason"):
                raise OcrError(
                    ErrorKind.SAFETY_REJECTED,
                    "The request was blocked by the safety filter, please try another region",
                    data={"blockReason": feedback["blockReason"]},
                )
            raise response_format_error("API returned an empty result")

        if candidate.get("finishReason") in SAFETY_FINISH_REASONS:
            raise OcrError(
                ErrorKind.SAFETY_REJECTED,
                "The content was blocked by the safety filter, please try another region",
                data={"finishReason": candidate["finishReason"]},
            )

        content = candidate.get("content")
        parts = content.get("parts") if isinstance(content, Mapping) else None
        if not isinstance(parts, list) or not parts:
            raise response_format_error("API returned an unexpected response format")

        return "".join(str(part.get("text") or "") for part in parts if isinstance(part, Mapping))
