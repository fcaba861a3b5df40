"""Floating result panel: placement, state and markup."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol

from snaptext.text.markdown import escape_html, render_markdown
from snaptext.vision.geometry import SelectionRect, Viewport

from .scripts import ERROR_ICON

logger = logging.getLogger(__name__)

PANEL_WIDTH = 420
PANEL_MAX_HEIGHT = 500
# Vertical room reserved around the panel when the viewport is short.
PANEL_VIEWPORT_PADDING = 64
PANEL_MARGIN = 16

PANEL_TITLE = "Recognized text"
LOADING_LABEL = "Recognizing…"


class PanelState(str, enum.Enum):
    LOADING = "loading"
    RESULT = "result"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class PanelPosition:
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class PanelView:
    """Everything the page needs to draw the panel in one state."""

    state: PanelState
    position: PanelPosition
    body_html: str
    max_height: float
    copy_text: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "x": self.position.x,
            "y": self.position.y,
            "maxHeight": self.max_height,
            "bodyHtml": self.body_html,
            "copyText": self.copy_text,
            "title": PANEL_TITLE,
        }


class PanelSurface(Protocol):
    async def show(self, view: PanelView) -> None:
        ...

    async def remove(self) -> None:
        ...


def panel_max_height(viewport: Viewport) -> float:
    return min(PANEL_MAX_HEIGHT, viewport.height - PANEL_VIEWPORT_PADDING)


def calculate_panel_position(rect: SelectionRect, viewport: Viewport) -> PanelPosition:
    """Place the panel beside the selection.

    Right of the selection first, then left of it; when neither fits the panel
    is centred horizontally below the selection. The result is finally clamped
    so the panel stays inside the viewport, never above the top margin.
    """

    max_height = panel_max_height(viewport)

    x = rect.x + rect.width + PANEL_MARGIN
    y = rect.y

    if x + PANEL_WIDTH > viewport.width - PANEL_MARGIN:
        x = rect.x - PANEL_WIDTH - PANEL_MARGIN

    if x < PANEL_MARGIN:
        x = max(PANEL_MARGIN, (viewport.width - PANEL_WIDTH) / 2)
        y = rect.y + rect.height + PANEL_MARGIN

    if y + max_height > viewport.height - PANEL_MARGIN:
        y = viewport.height - max_height - PANEL_MARGIN

    if y < PANEL_MARGIN:
        y = PANEL_MARGIN

    return PanelPosition(x=x, y=y)


def loading_markup() -> str:
    return f'<div id="snaptext-loading"><div class="snaptext-spinner"></div><span>{LOADING_LABEL}</span></div>'


def error_markup(message: str) -> str:
    return f'<div id="snaptext-error">{ERROR_ICON}<div id="snaptext-error-message">{escape_html(message)}</div></div>'


def result_markup(text: str) -> str:
    return f'<div id="snaptext-text-content">{render_markdown(text)}</div>'


class ResultPresenter:
    """Owns the :class:`PanelState` and pushes each state to the page."""

    def __init__(self, surface: PanelSurface) -> None:
        self._surface = surface
        self._view: Optional[PanelView] = None
        self._viewport = Viewport(width=0, height=0)

    @property
    def state(self) -> Optional[PanelState]:
        return self._view.state if self._view else None

    @property
    def copy_text(self) -> Optional[str]:
        """Raw text armed on the copy action; ``None`` unless a result is shown."""

        return self._view.copy_text if self._view else None

    @property
    def view(self) -> Optional[PanelView]:
        return self._view

    async def _show(self, view: PanelView) -> None:
        self._view = view
        logger.debug("Showing result panel", extra={"state": view.state.value})
        await self._surface.show(view)

    async def show_loading(self, position: PanelPosition, viewport: Viewport) -> None:
        self._viewport = viewport
        await self._show(
            PanelView(
                state=PanelState.LOADING,
                position=position,
                body_html=loading_markup(),
                max_height=panel_max_height(viewport),
            )
        )

    def _current_position(self) -> PanelPosition:
        return self._view.position if self._view else PanelPosition(PANEL_MARGIN, PANEL_MARGIN)

    async def show_result(self, text: str) -> None:
        await self._show(
            PanelView(
                state=PanelState.RESULT,
                position=self._current_position(),
                body_html=result_markup(text),
                max_height=panel_max_height(self._viewport),
                copy_text=text,
            )
        )

    async def show_error(self, message: str) -> None:
        await self._show(
            PanelView(
                state=PanelState.ERROR,
                position=self._current_position(),
                body_html=error_markup(message),
                max_height=panel_max_height(self._viewport),
            )
        )

    async def show_reply(self, reply: Mapping[str, Any]) -> None:
        """Render a ``captureAndOcr`` reply: ``{"text": ...}`` or ``{"error": ...}``."""

        if reply.get("error") or "text" not in reply:
            await self.show_error(str(reply.get("error") or "Unknown error"))
        else:
            await self.show_result(str(reply["text"]))

    async def close(self) -> None:
        self._view = None
        await self._surface.remove()
