"""Recognize a region of a saved screenshot."""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from PIL import Image
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from snaptext.config import get_settings, resolve_provider_config
from snaptext.coordinator import CaptureCoordinator
from snaptext.errors import OcrResult
from snaptext.vision.geometry import SelectionRect
from snaptext.vision.screenshots import FileScreenSource

console = Console()


def parse_rect(value: str) -> SelectionRect:
    """Parse ``X,Y,W,H`` into a :class:`SelectionRect`."""

    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 4:
        raise click.BadParameter("expected X,Y,WIDTH,HEIGHT")
    try:
        x, y, width, height = (float(part) for part in parts)
        return SelectionRect.from_mapping({"x": x, "y": y, "width": width, "height": height})
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def print_result(result: OcrResult, *, raw: bool = False) -> None:
    if not result.ok:
        console.print(Panel(f"[red]{result.message}[/red]", title=f"[red]{result.error.value}[/red]", border_style="red"))
        return
    if raw:
        click.echo(result.text)
    else:
        console.print(Panel(Markdown(result.text or ""), title="Recognized text", border_style="green"))


@click.command(name="ocr")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--rect", "rect_value", help="Region as X,Y,WIDTH,HEIGHT in logical pixels (default: whole image)")
@click.option("--scale", type=float, default=1.0, show_default=True, help="Logical-to-physical pixel ratio")
@click.option("--provider", type=click.Choice(["gemini", "qwen"]), help="Override the configured provider")
@click.option("--raw", is_flag=True, help="Print plain text without formatting")
def ocr_command(image: Path, rect_value: Optional[str], scale: float, provider: Optional[str], raw: bool):
    """
    Recognize text in a saved screenshot.

    IMAGE: PNG or JPEG screenshot in physical pixels.

    Examples:

      snaptext ocr page.png --rect 100,50,200,150 --scale 2
    """
    if scale <= 0:
        raise click.BadParameter("must be positive", param_hint="--scale")
    rect = parse_rect(rect_value) if rect_value else _whole_image(image, scale)
    result = asyncio.run(_recognize(image, rect, scale, provider))
    print_result(result, raw=raw)
    if not result.ok:
        sys.exit(1)


def _whole_image(image: Path, scale: float) -> SelectionRect:
    with Image.open(image) as opened:
        width, height = opened.size
    return SelectionRect(x=0, y=0, width=width / scale, height=height / scale)


async def _recognize(image: Path, rect: SelectionRect, scale: float, provider: Optional[str]) -> OcrResult:
    settings = get_settings()
    coordinator = CaptureCoordinator(
        FileScreenSource(image),
        config_resolver=lambda: resolve_provider_config(settings, overrides={"provider": provider}),
        timeout=settings.request_timeout_seconds,
    )
    with console.status("[bold blue]Recognizing..."):
        return await coordinator.handle(rect, scale)
