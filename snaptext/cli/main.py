#!/usr/bin/env python3
"""Main CLI entry point for snaptext."""
from __future__ import annotations

import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from snaptext import __version__

from .commands import capture, config, ocr

console = Console()


def configure_logging(level: str) -> None:
    """Route library logging through rich on stderr."""

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
@click.option("--log-level", envvar="SNAPTEXT_LOG_LEVEL", default="WARNING", show_default=True, help="Logging level")
@click.version_option(version=__version__, prog_name="snaptext")
def cli(log_level: str):
    """
    snaptext - select a region of a web page and turn it into text.

    Drag a rectangle over any page, send it to a vision model and read the
    recognized text in a floating panel.
    """
    configure_logging(log_level)


cli.add_command(capture.capture_command)
cli.add_command(ocr.ocr_command)
cli.add_command(config.config_command)


def main():
    """Entry point for the CLI."""
    load_dotenv()
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
