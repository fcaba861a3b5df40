"""Wires a browser page, the page agent and the background service together."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from .browser import scripts
from .browser.automation import BrowserAutomation, BrowserConfig, BrowserSession
from .browser.overlay import PageAgent
from .config import Settings, get_settings
from .coordinator import CaptureCoordinator
from .messaging import START_CAPTURE, BackgroundService
from .vision.screenshots import PageScreenSource

logger = logging.getLogger(__name__)


@dataclass
class CaptureApp:
    """A page ready to run selection sessions against its own screenshots."""

    session: BrowserSession
    agent: PageAgent
    background: BackgroundService

    @classmethod
    async def attach(
        cls,
        session: BrowserSession,
        *,
        settings: Optional[Settings] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "CaptureApp":
        settings = settings or get_settings()
        coordinator = CaptureCoordinator.from_settings(
            PageScreenSource(session.page, scripts.CAPTURE_HIDDEN_SELECTORS),
            settings,
            overrides=overrides,
            http_client=http_client,
        )
        background = BackgroundService(coordinator)
        agent = await PageAgent.attach(session.page, background)
        return cls(session=session, agent=agent, background=background)

    async def start_capture(self) -> Dict[str, Any]:
        """Send the activation command, as the launcher UI would."""

        return await self.agent.send({"action": START_CAPTURE})

    async def capture_once(self) -> Optional[Dict[str, Any]]:
        """Arm a selection and wait for its reply; ``None`` when the user cancels."""

        await self.start_capture()
        return await self.agent.controller.wait_finished()


async def open_capture_app(
    automation: BrowserAutomation,
    url: str,
    *,
    settings: Optional[Settings] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> CaptureApp:
    settings = settings or get_settings()
    session = await automation.create_session(
        BrowserConfig(headless=settings.playwright_headless, browser_type=settings.playwright_browser)
    )
    await session.page.goto(url)
    logger.info("Opened page for capture", extra={"url": url})
    return await CaptureApp.attach(session, settings=settings, overrides=overrides)
