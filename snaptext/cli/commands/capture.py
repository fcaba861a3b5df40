"""Interactive region capture in a real browser."""
from __future__ import annotations

import asyncio
import sys
from dataclasses import replace
from typing import Any, Mapping, Optional

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from snaptext.browser.automation import BrowserAutomation
from snaptext.config import Settings, get_settings

console = Console()


@click.command(name="capture")
@click.argument("url")
@click.option("--headless/--headed", default=None, help="Override PLAYWRIGHT_HEADLESS")
@click.option("--provider", type=click.Choice(["gemini", "qwen"]), help="Override the configured provider")
@click.option("--keep-open", is_flag=True, help="Keep capturing until the browser is closed")
def capture_command(url: str, headless: Optional[bool], provider: Optional[str], keep_open: bool):
    """
    Open URL, drag a rectangle over it and recognize the text inside.

    Press Esc in the page to cancel a selection.

    Examples:

      snaptext capture https://example.com

      snaptext capture https://example.com --provider qwen --keep-open
    """
    settings = get_settings()
    if headless is not None:
        settings = replace(settings, playwright_headless=headless)
    exit_code = asyncio.run(_run_capture(url, keep_open, settings, {"provider": provider}))
    sys.exit(exit_code)


async def _run_capture(url: str, keep_open: bool, settings: Settings, overrides: Mapping[str, Any]) -> int:
    from snaptext.app import open_capture_app

    async with BrowserAutomation() as automation:
        app = await open_capture_app(automation, url, settings=settings, overrides=overrides)
        console.print(f"[green]✓[/green] Opened {url}")

        exit_code = 0
        while True:
            console.print("[dim]Drag over the page to select text, Esc to cancel[/dim]")
            reply = await app.capture_once()
            if reply is None:
                console.print("[yellow]Selection cancelled[/yellow]")
            elif reply.get("error"):
                console.print(Panel(f"[red]{reply['error']}[/red]", title="Error", border_style="red"))
                exit_code = 1
            else:
                console.print(Panel(Markdown(reply.get("text", "")), title="Recognized text", border_style="green"))
                exit_code = 0

            if not keep_open or app.session.page.is_closed():
                break
        return exit_code
