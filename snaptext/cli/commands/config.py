"""Configuration management commands."""
from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from snaptext.config import (
    CONFIG_KEYS,
    get_settings,
    resolve_provider_config,
    save_config_file,
    validate_api_key,
)
from snaptext.errors import OcrError
from snaptext.providers import available_providers, get_provider

console = Console()

SECRET_KEYS = ("gemini_api_key", "qwen_api_key")


@click.group(name="config")
def config_command():
    """
    Manage snaptext configuration.

    Configure the provider, API keys, model and instruction prompt.
    """
    pass


@config_command.command(name="show")
def show_config():
    """Show current configuration."""
    settings = get_settings()
    stored = settings.stored()

    console.print(Panel("[bold cyan]Current Configuration[/bold cyan]", border_style="cyan"))
    console.print()

    table = Table(title="Stored Settings", border_style="blue")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="yellow")
    for key in CONFIG_KEYS:
        value = stored.get(key, "")
        if key in SECRET_KEYS:
            value = _mask_key(str(value))
        table.add_row(key, str(value) if value else "[dim]Not set[/dim]")
    console.print(table)
    console.print()

    try:
        resolved = resolve_provider_config(settings)
    except OcrError as exc:
        console.print(f"[yellow]![/yellow] {exc.message}")
        return

    effective = Table(title="Effective Provider", border_style="green")
    effective.add_column("Setting", style="cyan")
    effective.add_column("Value", style="yellow")
    effective.add_row("Provider", get_provider(resolved.provider).display_name)
    effective.add_row("API Key", _mask_key(resolved.api_key))
    effective.add_row("Model", resolved.model)
    effective.add_row("Timeout", f"{settings.request_timeout_seconds:g}s")
    console.print(effective)
    console.print(f"[dim]Configuration file: {settings.resolved_config_path()}[/dim]")


@config_command.command(name="set")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
@click.argument("value")
def set_config(key: str, value: str):
    """Set a configuration value."""
    settings = get_settings()
    config = settings.stored()
    value = value.strip()

    if key == "provider" and value not in available_providers():
        raise click.BadParameter(f"choose from {', '.join(available_providers())}", param_hint="value")
    if key in SECRET_KEYS:
        warning = validate_api_key(key.split("_", 1)[0], value)
        if warning:
            console.print(f"[yellow]![/yellow] {warning}")

    config[key] = value
    save_config_file(settings.resolved_config_path(), config)

    shown = _mask_key(value) if key in SECRET_KEYS else value
    console.print(f"[green]✓[/green] Set [cyan]{key}[/cyan] = [yellow]{shown}[/yellow]")


@config_command.command(name="get")
@click.argument("key", type=click.Choice(CONFIG_KEYS))
def get_config(key: str):
    """Get a configuration value."""
    config = get_settings().stored()

    if key in config:
        value = config[key]
        if key in SECRET_KEYS:
            value = _mask_key(str(value))
        console.print(f"[cyan]{key}[/cyan] = [yellow]{value}[/yellow]")
    else:
        console.print(f"[red]Error:[/red] Key '[cyan]{key}[/cyan]' not found in configuration")


@config_command.command(name="reset")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def reset_config(yes: bool):
    """Reset configuration to defaults."""
    if yes or Confirm.ask("[yellow]Are you sure you want to reset all configuration?[/yellow]"):
        save_config_file(get_settings().resolved_config_path(), {})
        console.print("[green]✓[/green] Configuration reset to defaults")
    else:
        console.print("[yellow]Cancelled[/yellow]")


def _mask_key(key: str) -> str:
    """Mask API key for display."""
    if not key:
        return "[dim]Not set[/dim]"

    if len(key) <= 8:
        return "****"

    return f"{key[:4]}...{key[-4:]}"
