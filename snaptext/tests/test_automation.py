"""Tests for browser launch options."""
from __future__ import annotations

import pytest

from snaptext.browser.automation import BrowserAutomation, BrowserConfig


def test_chromium_context_grants_clipboard() -> None:
    options = BrowserConfig(device_scale_factor=2, locale="en-US").context_options()
    assert options["viewport"] == {"width": 1440, "height": 900}
    assert options["device_scale_factor"] == 2
    assert options["locale"] == "en-US"
    assert options["permissions"] == ["clipboard-read", "clipboard-write"]


def test_firefox_context_has_no_permissions() -> None:
    options = BrowserConfig(browser_type="firefox").context_options()
    assert "permissions" not in options
    assert "device_scale_factor" not in options


def test_launch_options_pass_extra_args() -> None:
    options = BrowserConfig(headless=True, extra_args=["--lang=en"]).launch_options()
    assert options == {"headless": True, "slow_mo": 0, "args": ["--lang=en"]}


@pytest.mark.asyncio
async def test_session_requires_started_playwright() -> None:
    with pytest.raises(RuntimeError):
        await BrowserAutomation().create_session()
