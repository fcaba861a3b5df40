"""Provider abstraction: one request/response wire protocol per subclass."""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Mapping, Optional

import httpx

from snaptext.errors import ErrorKind, OcrError
from snaptext.vision.screenshots import CroppedImage

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0
EMPTY_RESULT = "(No text recognized)"


@dataclass(frozen=True)
class ProviderConfig:
    """Read-only provider selection supplied by the settings layer."""

    provider: str
    api_key: str
    model: str
    prompt: str

    def __repr__(self) -> str:
        return (
            f"ProviderConfig(provider={self.provider!r}, api_key='***', "
            f"model={self.model!r}, prompt={self.prompt[:24]!r}...)"
        )


@dataclass(slots=True)
class WireRequest:
    """Everything needed to issue the provider's single POST."""

    url: str
    json: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


def _error_body(response: httpx.Response) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, Mapping) else {}


class ProviderClient(ABC):
    """Encodes an OCR request and decodes the answer for one remote service."""

    name: ClassVar[str]
    display_name: ClassVar[str]
    key_label: ClassVar[str]
    config_key: ClassVar[str]
    default_model: ClassVar[str]
    default_prompt: ClassVar[str]
    error_messages: ClassVar[Mapping[int, str]] = {
        400: "Bad request: {message}",
        401: "The API key is invalid, please configure it again",
        403: "The API key lacks permission or has been disabled",
        429: "Too many requests, please try again later",
        500: "The provider hit an internal error, please try again later",
        503: "The provider is temporarily unavailable, please try again later",
    }

    @abstractmethod
    def encode(self, image: CroppedImage, prompt: str, model: str, api_key: str) -> WireRequest:
        """Build the wire request carrying ``image`` and ``prompt``."""

    @abstractmethod
    def decode(self, payload: Mapping[str, Any]) -> str:
        """Extract the raw answer text from a successful response body."""

    def error_detail(self, body: Mapping[str, Any]) -> str:
        error = body.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        return ""

    def map_error(self, status: int, body: Mapping[str, Any]) -> OcrError:
        """Translate a non-success HTTP status into an ``ApiError``."""

        detail = self.error_detail(body)
        template = self.error_messages.get(status)
        if template is None:
            message = f"API request failed ({status}): {detail}".rstrip(": ")
        else:
            message = template.format(message=detail or "the image may be invalid")
        return OcrError(ErrorKind.API_ERROR, message, status=status, data={"body": dict(body)})

    def normalize(self, text: str) -> str:
        """Provider-specific cleanup of the decoded text; plain trimming by default."""

        return text.strip()

    def finalize(self, raw_text: str) -> str:
        """Trim and normalize the answer, substituting the empty-result sentinel."""

        trimmed = raw_text.strip()
        if not trimmed:
            return EMPTY_RESULT
        return self.normalize(trimmed) or EMPTY_RESULT

    async def recognize(
        self,
        image: CroppedImage,
        config: ProviderConfig,
        *,
        client: httpx.AsyncClient,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> str:
        """Send exactly one request and return the decoded (not yet normalized) text."""

        request = self.encode(image, config.prompt, config.model, config.api_key)
        logger.info(
            "Dispatching OCR request",
            extra={"provider": self.name, "model": config.model, "image_bytes": len(image.data)},
        )

        try:
            # wait_for cancels the in-flight request when the timer fires.
            response = await asyncio.wait_for(
                client.post(request.url, params=request.params, headers=request.headers, json=request.json),
                timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise OcrError(
                ErrorKind.NETWORK_TIMEOUT,
                f"Request timed out ({timeout:g} seconds), please check the network connection and retry",
            ) from exc
        except httpx.HTTPError as exc:
            raise OcrError(ErrorKind.API_ERROR, f"Network request failed: {exc}", status=0) from exc

        if not response.is_success:
            logger.warning("Provider returned an error", extra={"provider": self.name, "status": response.status_code})
            raise self.map_error(response.status_code, _error_body(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise OcrError(ErrorKind.RESPONSE_FORMAT, "Failed to parse the API response: body is not JSON") from exc
        if not isinstance(payload, Mapping):
            raise OcrError(ErrorKind.RESPONSE_FORMAT, "Failed to parse the API response: unexpected body")

        return self.decode(payload)


def response_format_error(message: str) -> OcrError:
    return OcrError(ErrorKind.RESPONSE_FORMAT, message)


def first_item(payload: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    """Return ``payload[key][0]`` when it is a mapping, otherwise ``None``."""

    items = payload.get(key)
    if not isinstance(items, list) or not items:
        return None
    first = items[0]
    return first if isinstance(first, Mapping) else None
