"""Playwright lifecycle for the browser a capture runs in."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, BrowserType, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")

# The copy button writes to the clipboard from the page.
CLIPBOARD_PERMISSIONS = ["clipboard-read", "clipboard-write"]


@dataclass
class BrowserConfig:
    """Launch and context options for a capture browser."""

    headless: bool = False
    browser_type: str = "chromium"
    viewport_width: int = 1440
    viewport_height: int = 900
    device_scale_factor: Optional[float] = None
    locale: Optional[str] = None
    slow_mo: int = 0
    timeout_ms: int = 30000
    extra_args: List[str] = field(default_factory=list)

    def launch_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"headless": self.headless, "slow_mo": self.slow_mo}
        if self.extra_args:
            options["args"] = list(self.extra_args)
        return options

    def context_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
        }
        if self.device_scale_factor:
            options["device_scale_factor"] = self.device_scale_factor
        if self.locale:
            options["locale"] = self.locale
        if self.browser_type == "chromium":
            options["permissions"] = list(CLIPBOARD_PERMISSIONS)
        return options


@dataclass
class BrowserSession:
    """One launched browser with the single page selections are made on."""

    browser: Browser
    context: BrowserContext
    page: Page
    config: BrowserConfig

    async def close(self) -> None:
        try:
            await self.context.close()
        finally:
            await self.browser.close()


class BrowserAutomation:
    """Async context manager owning Playwright and the sessions it launched."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._sessions: List[BrowserSession] = []

    async def __aenter__(self) -> "BrowserAutomation":
        self._playwright = await async_playwright().start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all_sessions()
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    def _launcher(self, browser_type: str) -> BrowserType:
        if self._playwright is None:
            raise RuntimeError("BrowserAutomation not started. Use async context manager.")
        if browser_type not in SUPPORTED_BROWSERS:
            raise ValueError(f"Unsupported browser type: {browser_type}")
        return getattr(self._playwright, browser_type)

    async def create_session(self, config: Optional[BrowserConfig] = None) -> BrowserSession:
        """Launch a browser and open the page captures will run against."""

        session_config = config or self.config
        browser = await self._launcher(session_config.browser_type).launch(**session_config.launch_options())
        context = await browser.new_context(**session_config.context_options())
        context.set_default_timeout(session_config.timeout_ms)
        page = await context.new_page()

        session = BrowserSession(browser=browser, context=context, page=page, config=session_config)
        self._sessions.append(session)
        logger.info(
            "Browser session started",
            extra={"browser": session_config.browser_type, "headless": session_config.headless},
        )
        return session

    async def close_session(self, session: BrowserSession) -> None:
        if session in self._sessions:
            self._sessions.remove(session)
        try:
            await session.close()
        except Exception:
            logger.exception("Error closing browser session")

    async def close_all_sessions(self) -> None:
        for session in list(self._sessions):
            await self.close_session(session)
