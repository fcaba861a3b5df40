"""Request/reply messaging between the page context and the background context."""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Union

from .coordinator import CaptureCoordinator
from .errors import ErrorKind, OcrError, OcrResult
from .vision.geometry import SelectionRect

logger = logging.getLogger(__name__)

START_CAPTURE = "startCapture"
CAPTURE_AND_OCR = "captureAndOcr"

Reply = Dict[str, Any]
Handler = Callable[[Mapping[str, Any]], Union[Reply, Awaitable[Reply]]]


class MessageRouter:
    """Route ``{"action": ...}`` messages to handlers; every request gets one reply."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, action: str, handler: Handler) -> None:
        if action in self._handlers:
            raise ValueError(f"Handler already registered for {action!r}")
        self._handlers[action] = handler

    @property
    def actions(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, message: Mapping[str, Any]) -> Reply:
        action = message.get("action") if isinstance(message, Mapping) else None
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            return {"error": f"Unknown action: {action!r}"}

        logger.debug("Dispatching message", extra={"action": action})
        try:
            reply = handler(message)
            if inspect.isawaitable(reply):
                reply = await reply
        except Exception as exc:
            logger.exception("Message handler raised", extra={"action": action})
            return {"error": str(exc) or exc.__class__.__name__}
        return reply


def parse_capture_request(message: Mapping[str, Any]) -> tuple[SelectionRect, float]:
    """Extract the selection and scale factor from a ``captureAndOcr`` message."""

    rect_payload = message.get("rect")
    if not isinstance(rect_payload, Mapping):
        raise OcrError(ErrorKind.CROP_BOUNDS, "Capture request is missing its selection rectangle")
    try:
        rect = SelectionRect.from_mapping(rect_payload)
    except ValueError as exc:
        raise OcrError(ErrorKind.CROP_BOUNDS, f"Invalid selection rectangle: {exc}") from exc

    # "devicePixelRatio" is the key older page scripts send.
    raw_scale = message.get("scaleFactor", message.get("devicePixelRatio"))
    try:
        scale = float(raw_scale) if raw_scale is not None else 1.0
    except (TypeError, ValueError):
        scale = 1.0
    return rect, scale if scale > 0 else 1.0


class BackgroundService:
    """Background-context endpoint answering ``captureAndOcr`` requests."""

    def __init__(self, coordinator: CaptureCoordinator, router: MessageRouter | None = None) -> None:
        self._coordinator = coordinator
        self.router = router or MessageRouter()
        self.router.register(CAPTURE_AND_OCR, self.handle_capture)

    async def handle_capture(self, message: Mapping[str, Any]) -> Reply:
        try:
            rect, scale = parse_capture_request(message)
        except OcrError as exc:
            return OcrResult.failure(exc).to_message()
        result = await self._coordinator.handle(rect, scale)
        return result.to_message()

    async def send(self, message: Mapping[str, Any]) -> Reply:
        return await self.router.dispatch(message)
