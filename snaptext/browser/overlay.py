"""Playwright-backed overlay and panel surfaces, plus the page-side agent."""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from playwright.async_api import Error as PlaywrightError, Page

from snaptext.messaging import START_CAPTURE, BackgroundService, MessageRouter, Reply
from snaptext.vision.geometry import SelectionRect, Viewport
from snaptext.vision.screenshots import read_scale_factor

from . import scripts
from .presenter import PanelView, ResultPresenter
from .selection import SelectionController, size_label

logger = logging.getLogger(__name__)

COPY_CONFIRM_MS = 2000


def _bootstrap_config() -> Dict[str, Any]:
    return {
        "binding": scripts.BINDING_NAME,
        "style": scripts.STYLE,
        "ids": {
            "overlay": scripts.OVERLAY_ID,
            "hint": scripts.HINT_ID,
            "selection": scripts.SELECTION_ID,
            "panel": scripts.PANEL_ID,
        },
        "icons": {
            "copy": scripts.COPY_ICON,
            "check": scripts.CHECK_ICON,
            "close": scripts.CLOSE_ICON,
        },
        "labels": {"copy": "Copy", "copied": "Copied"},
        "copyConfirmMs": COPY_CONFIRM_MS,
    }


class PageScripts:
    """Thin wrapper calling into ``window.__snaptext`` on a page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    async def ensure_installed(self) -> None:
        # Navigation wipes window state, so this runs before every call.
        await self._page.evaluate(scripts.BOOTSTRAP_SCRIPT, _bootstrap_config())

    async def call(self, method: str, *args: Any) -> Any:
        await self.ensure_installed()
        return await self._page.evaluate(
            "([method, args]) => window.__snaptext[method](...args)",
            [method, list(args)],
        )


class PlaywrightOverlay:
    """Selection overlay drawn in the page."""

    def __init__(self, page_scripts: PageScripts) -> None:
        self._scripts = page_scripts

    async def viewport(self) -> Viewport:
        size = await self._scripts.call("viewport")
        return Viewport(width=float(size["width"]), height=float(size["height"]))

    async def scale_factor(self) -> float:
        return await read_scale_factor(self._scripts.page)

    async def mount(self, hint: str) -> None:
        await self._scripts.call("mountOverlay", hint)

    async def update_selection(self, rect: SelectionRect) -> None:
        await self._scripts.call("updateSelection", rect.to_dict(), size_label(rect))

    async def hide(self) -> None:
        await self._scripts.call("hideOverlay")

    async def remove(self) -> None:
        await self._scripts.call("removeOverlay")


class PlaywrightPanel:
    """Result panel drawn in the page."""

    def __init__(self, page_scripts: PageScripts) -> None:
        self._scripts = page_scripts

    async def show(self, view: PanelView) -> None:
        await self._scripts.call("showPanel", view.to_payload())

    async def remove(self) -> None:
        await self._scripts.call("removePanel")


class PageAgent:
    """Page-context endpoint: answers ``startCapture`` and owns the controller."""

    def __init__(self, controller: SelectionController, router: Optional[MessageRouter] = None) -> None:
        self.controller = controller
        self.router = router or MessageRouter()
        self.router.register(START_CAPTURE, self.handle_start)

    async def handle_start(self, message: Mapping[str, Any]) -> Reply:
        try:
            await self.controller.activate()
        except PlaywrightError:
            self.controller.abandon()
            raise
        return {"ok": True}

    async def send(self, message: Mapping[str, Any]) -> Reply:
        return await self.router.dispatch(message)

    @classmethod
    async def attach(cls, page: Page, background: BackgroundService) -> "PageAgent":
        """Wire a page to ``background`` and start forwarding its events."""

        page_scripts = PageScripts(page)
        presenter = ResultPresenter(PlaywrightPanel(page_scripts))
        controller = SelectionController(PlaywrightOverlay(page_scripts), presenter, background.send)
        agent = cls(controller)

        async def _on_event(source: Any, event: Mapping[str, Any]) -> None:
            await controller.handle_event(event)

        await page.expose_binding(scripts.BINDING_NAME, _on_event)
        page.on("close", lambda _: controller.abandon())
        logger.debug("Page agent attached", extra={"url": page.url})
        return agent
