"""Alibaba Qwen-VL through DashScope's OpenAI-compatible chat endpoint."""
from __future__ import annotations

from typing import Any, Mapping

from snaptext.errors import ErrorKind, OcrError
from snaptext.text.normalize import normalize_output
from snaptext.vision.screenshots import CroppedImage

from .base import ProviderClient, WireRequest, first_item, response_format_error

QWEN_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"

# Pixel bounds DashScope uses when resampling the image for the OCR model.
MIN_PIXELS = 3072
MAX_PIXELS = 8388608

SAFETY_ERROR_CODES = frozenset({"data_inspection_failed"})

DEFAULT_PROMPT = """Recognize all of the text in the image and output it as plain text. Requirements:
1. Extract every piece of visible text
2. Keep the original paragraph structure and line breaks
3. Output tables as Markdown tables
4. Output code as fenced code blocks
5. Output only the recognized content, without explanations or descriptions
6. Do not wrap the output in HTML tags or a code block"""


class QwenProvider(ProviderClient):
    """Chat-completions payload with a data-URI image part; bearer-token auth."""

    name = "qwen"
    display_name = "Qwen (DashScope)"
    key_label = "DashScope API Key"
    config_key = "qwen_api_key"
    default_model = "qwen-vl-ocr-latest"
    default_prompt = DEFAULT_PROMPT
    error_messages = {
        **ProviderClient.error_messages,
        401: "The DashScope API key is invalid, please configure it again",
        500: "Qwen hit an internal server error, please try again later",
        503: "Qwen is temporarily unavailable, please try again later",
    }

    def __init__(self, base_url: str = QWEN_BASE_URL) -> None:
        self._url = base_url

    def encode(self, image: CroppedImage, prompt: str, model: str, api_key: str) -> WireRequest:
        return WireRequest(
            url=self._url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            json={
                "model": model,
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image_url",
                                "image_url": {"url": image.to_data_uri()},
                                "min_pixels": MIN_PIXELS,
                                "max_pixels": MAX_PIXELS,
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            },
        )

    def error_detail(self, body: Mapping[str, Any]) -> str:
        return super().error_detail(body) or str(body.get("message") or "")

    def map_error(self, status: int, body: Mapping[str, Any]) -> OcrError:
        error = body.get("error")
        code = error.get("code") if isinstance(error, Mapping) else body.get("code")
        if code in SAFETY_ERROR_CODES:
            return OcrError(
                ErrorKind.SAFETY_REJECTED,
                "The content was blocked by the safety filter, please try another region",
                status=status,
            )
        return super().map_error(status, body)

    def decode(self, payload: Mapping[str, Any]) -> str:
        choice = first_item(payload, "choices")
        if choice is None:
            raise response_format_error("API returned an empty result")

        if choice.get("finish_reason") == "content_filter":
            raise OcrError(
                ErrorKind.SAFETY_REJECTED,
                "The content was blocked by the safety filter, please try another region",
            )

        message = choice.get("message")
        content = message.get("content") if isinstance(message, Mapping) else None
        if content is None:
            raise response_format_error("API returned an unexpected response format")
        if isinstance(content, list):
            if not content:
                raise response_format_error("API returned an empty content array")
            return "".join(str(part.get("text") or "") for part in content if isinstance(part, Mapping))
        if not isinstance(content, str):
            raise response_format_error("API returned an unexpected response format")
        return content

    def normalize(self, text: str) -> str:
        return normalize_output(text)
