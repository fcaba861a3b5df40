"""Drag-to-select state machine and the controller that drives the overlay."""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol

from playwright.async_api import Error as PlaywrightError

from snaptext.messaging import CAPTURE_AND_OCR
from snaptext.vision.geometry import SelectionRect, Viewport

from .presenter import ResultPresenter, calculate_panel_position

logger = logging.getLogger(__name__)

HINT_TEXT = "Drag to select the area to recognize  ·  Esc to cancel"

Send = Callable[[Mapping[str, Any]], Awaitable[Dict[str, Any]]]


class SelectionState(str, enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"
    DISPATCHED = "dispatched"
    CANCELLED = "cancelled"


@dataclass
class SelectionSession:
    """One activation's worth of selection state; discarded once it ends."""

    scale_factor: float = 1.0
    state: SelectionState = SelectionState.ARMED
    start_x: float = 0.0
    start_y: float = 0.0
    current_x: float = 0.0
    current_y: float = 0.0

    @property
    def rect(self) -> SelectionRect:
        return SelectionRect.from_points(self.start_x, self.start_y, self.current_x, self.current_y)

    @property
    def is_terminal(self) -> bool:
        return self.state in (SelectionState.DISPATCHED, SelectionState.CANCELLED)

    def press(self, x: float, y: float) -> bool:
        if self.state is not SelectionState.ARMED:
            return False
        self.start_x = self.current_x = x
        self.start_y = self.current_y = y
        self.state = SelectionState.DRAGGING
        return True

    def move(self, x: float, y: float) -> Optional[SelectionRect]:
        if self.state is not SelectionState.DRAGGING:
            return None
        self.current_x = x
        self.current_y = y
        return self.rect

    def release(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[SelectionRect]:
        """Finish the drag; returns the rectangle to dispatch, or ``None`` when cancelled."""

        if self.state is not SelectionState.DRAGGING:
            return None
        if x is not None and y is not None:
            self.current_x = x
            self.current_y = y
        rect = self.rect
        if rect.is_too_small():
            self.state = SelectionState.CANCELLED
            return None
        self.state = SelectionState.DISPATCHED
        return rect

    def cancel(self) -> bool:
        if self.is_terminal:
            return False
        self.state = SelectionState.CANCELLED
        return True


class OverlaySurface(Protocol):
    """Page-side drawing surface for the selection overlay."""

    async def viewport(self) -> Viewport:
        ...

    async def scale_factor(self) -> float:
        ...

    async def mount(self, hint: str) -> None:
        ...

    async def update_selection(self, rect: SelectionRect) -> None:
        ...

    async def hide(self) -> None:
        ...

    async def remove(self) -> None:
        ...


def size_label(rect: SelectionRect) -> str:
    return f"{round(rect.width)} × {round(rect.height)}"


class SelectionController:
    """Runs selection sessions in the page context.

    At most one session is live at a time: activating while a session is armed,
    dragging or awaiting its reply does nothing.
    """

    def __init__(self, overlay: OverlaySurface, presenter: ResultPresenter, send: Send) -> None:
        self._overlay = overlay
        self._presenter = presenter
        self._send = send
        self._session: Optional[SelectionSession] = None
        self._inflight: Optional[asyncio.Task[None]] = None
        self._finished: Optional[asyncio.Future[Optional[Dict[str, Any]]]] = None

    @property
    def session(self) -> Optional[SelectionSession]:
        return self._session

    @property
    def state(self) -> SelectionState:
        return self._session.state if self._session else SelectionState.IDLE

    @property
    def busy(self) -> bool:
        return self._session is not None

    async def activate(self) -> bool:
        """Arm a new session; returns ``False`` when one is already running."""

        if self.busy:
            logger.debug("Ignoring activation while a session is running", extra={"state": self.state.value})
            return False

        # Claimed before the first await so a concurrent activation sees it.
        session = self._session = SelectionSession()
        self._finished = asyncio.get_running_loop().create_future()
        session.scale_factor = await self._overlay.scale_factor()

        await self._overlay.remove()
        await self._presenter.close()
        await self._overlay.mount(HINT_TEXT)
        logger.info("Selection armed", extra={"scale_factor": session.scale_factor})
        return True

    async def handle_event(self, event: Mapping[str, Any]) -> None:
        """Entry point for events forwarded from the page."""

        kind = event.get("type")
        if kind == "down":
            await self.pointer_down(float(event["x"]), float(event["y"]), int(event.get("button", 0)))
        elif kind == "move":
            await self.pointer_move(float(event["x"]), float(event["y"]))
        elif kind == "up":
            await self.pointer_up(float(event["x"]), float(event["y"]))
        elif kind == "key":
            await self.key_down(str(event.get("key", "")))
        else:
            logger.debug("Ignoring unknown page event", extra={"event": dict(event)})

    async def pointer_down(self, x: float, y: float, button: int = 0) -> None:
        session = self._session
        if session is None or button != 0:
            return
        if session.press(x, y):
            await self._overlay.update_selection(session.rect)

    async def pointer_move(self, x: float, y: float) -> None:
        session = self._session
        if session is None:
            return
        rect = session.move(x, y)
        if rect is not None:
            await self._overlay.update_selection(rect)

    async def pointer_up(self, x: float, y: float) -> None:
        session = self._session
        if session is None or session.state is not SelectionState.DRAGGING:
            return
        rect = session.release(x, y)
        if rect is None:
            logger.info("Selection too small, cancelling")
            await self._teardown(None)
            return
        self._inflight = asyncio.create_task(self._dispatch(session, rect))

    async def key_down(self, key: str) -> None:
        if key != "Escape" or self._session is None:
            return
        if self._session.cancel():
            logger.info("Selection cancelled")
            await self._teardown(None)

    async def _dispatch(self, session: SelectionSession, rect: SelectionRect) -> None:
        reply: Optional[Dict[str, Any]] = None
        try:
            # Hidden rather than removed so the page does not flicker before the screenshot.
            await self._overlay.hide()
            viewport = await self._overlay.viewport()
            await self._presenter.show_loading(calculate_panel_position(rect, viewport), viewport)

            message = {
                "action": CAPTURE_AND_OCR,
                "rect": rect.to_dict(),
                "scaleFactor": session.scale_factor,
            }
            try:
                reply = await self._send(message)
            except Exception as exc:
                logger.exception("Capture request failed to reach the background context")
                reply = {"error": str(exc) or exc.__class__.__name__}

            await self._overlay.remove()
            await self._presenter.show_reply(reply)
        except PlaywrightError:
            logger.exception("Page went away while presenting the capture result")
        finally:
            self._finish(reply)

    async def _teardown(self, reply: Optional[Dict[str, Any]]) -> None:
        try:
            await self._overlay.remove()
            await self._presenter.close()
        finally:
            self._finish(reply)

    def abandon(self) -> None:
        """Drop the running session without touching the page, e.g. after it closed."""

        if self._session is not None:
            self._session.cancel()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._finish(None)

    def _finish(self, reply: Optional[Dict[str, Any]]) -> None:
        self._session = None
        self._inflight = None
        if self._finished is not None and not self._finished.done():
            self._finished.set_result(reply)

    async def wait_finished(self) -> Optional[Dict[str, Any]]:
        """Wait for the current session to end; ``None`` means it was cancelled."""

        if self._finished is None:
            return None
        return await self._finished
