"""Capture-to-text pipeline run in the background context."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

import httpx

from .config import Settings, get_settings, resolve_provider_config
from .errors import ErrorKind, OcrError, OcrResult
from .providers import REQUEST_TIMEOUT_SECONDS, ProviderClient, ProviderConfig, get_provider
from .vision.geometry import SelectionRect
from .vision.screenshots import ScreenSource, crop_image_bytes

logger = logging.getLogger(__name__)

ConfigResolver = Callable[[], ProviderConfig]
ProviderFactory = Callable[[str], ProviderClient]


class CaptureCoordinator:
    """Capture, crop, configure, dispatch and normalize, strictly in that order.

    The first failing step ends the session with its :class:`OcrError`; nothing
    is retried here. Exactly one network request is made per successful crop.
    """

    def __init__(
        self,
        source: ScreenSource,
        *,
        config_resolver: Optional[ConfigResolver] = None,
        provider_factory: ProviderFactory = get_provider,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._source = source
        self._config_resolver = config_resolver or resolve_provider_config
        self._provider_factory = provider_factory
        self._http_client = http_client
        self._timeout = timeout

    @classmethod
    def from_settings(
        cls,
        source: ScreenSource,
        settings: Optional[Settings] = None,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
        **kwargs,
    ) -> "CaptureCoordinator":
        """Build a coordinator resolving its provider from ``settings`` plus ``overrides``."""

        settings = settings or get_settings()
        kwargs.setdefault("timeout", settings.request_timeout_seconds)
        return cls(source, config_resolver=lambda: resolve_provider_config(settings, overrides=overrides), **kwargs)

    async def handle(self, rect: SelectionRect, scale_factor: float) -> OcrResult:
        """Run the pipeline for one selection and return its terminal result."""

        try:
            text = await self._run(rect, scale_factor)
        except OcrError as exc:
            logger.warning("Capture session failed", extra={"kind": exc.kind.value, "reason": exc.message})
            return OcrResult.failure(exc)
        return OcrResult.success(text)

    async def _run(self, rect: SelectionRect, scale_factor: float) -> str:
        try:
            screenshot = await self._source.capture()
        except OcrError:
            raise
        except Exception as exc:
            logger.exception("Screenshot source failed")
            raise OcrError(ErrorKind.CAPTURE_FAILED, f"Screenshot failed: {exc}") from exc
        cropped = crop_image_bytes(screenshot, rect, scale_factor)
        del screenshot

        config = self._config_resolver()
        provider = self._provider_factory(config.provider)

        if self._http_client is not None:
            raw = await provider.recognize(cropped, config, client=self._http_client, timeout=self._timeout)
        else:
            # The request timeout is enforced by recognize(); httpx must not race it.
            async with httpx.AsyncClient(timeout=None) as client:
                raw = await provider.recognize(cropped, config, client=client, timeout=self._timeout)

        try:
            text = provider.finalize(raw)
        except Exception as exc:
            logger.exception("Normalization failed", extra={"provider": provider.name})
            raise OcrError(ErrorKind.RESPONSE_FORMAT, f"Failed to process the API response: {exc}") from exc

        logger.info("Recognized text", extra={"provider": provider.name, "characters": len(text)})
        return text
