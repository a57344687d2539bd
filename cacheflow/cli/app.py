"""
Defines the command-line interface for the library using Typer.
"""

import asyncio
import logging
import sqlite3
from datetime import timedelta
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from cacheflow import __version__
from cacheflow.exceptions import ConfigurationError
from cacheflow.models.config import CacheFlowConfig
from cacheflow.models.outcome import Failure
from cacheflow.session import DOWNLOADS_DIR_NAME, initialize
from cacheflow.storage.config_manager import ConfigManager
from cacheflow.storage.database import SqliteStore
from cacheflow.utils.path import get_config_dir, get_data_dir

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_outcome,
    print_stats_table,
    print_summary_panel,
)
from .progress import RichProgressListener

console = Console()

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("cacheflow")

app = typer.Typer(
    name="cacheflow",
    help=(
        "A caching HTTP client with TTL-based freshness and automatic file"
        " downloads. Use 'cacheflow <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"
DATA_DIR = get_data_dir()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """CacheFlow CLI"""
    if version:
        console.print(f"[bold]cacheflow[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("cacheflow").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]cacheflow init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        config_data = {"base_url": config_manager.get_base_url()}
        config_data.update(config_manager.get_config_as_dict())
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    base_url: str = typer.Argument(
        "", help="Base URL that relative request paths are resolved against."
    ),
    ttl: int = typer.Option(
        3600, "--ttl", help="Cache entry time-to-live, in seconds."
    ),
    offline: bool = typer.Option(
        True,
        "--offline/--no-offline",
        help="Serve a still-valid cached copy instead of the live response.",
    ),
    refresh: bool = typer.Option(
        True,
        "--refresh/--no-refresh",
        help="Call the server even when a valid cached copy exists.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
):
    """Initialize the configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        "ttl": timedelta(seconds=ttl),
        "offline_mode_enabled": offline,
        "refresh_on_cache_hit": refresh,
    }
    try:
        CacheFlowConfig(**settings)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    ConfigManager(CONFIG_FILE).save_new_config(settings, base_url=base_url)
    console.print(
        f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]"
    )
    console.print("Ready! Try: [cyan]cacheflow get <URL>[/cyan]")


@app.command(name="get")
def get_command(
    url: str = typer.Argument(..., help="Absolute URL, or a path under base_url."),
    output_json: bool = typer.Option(
        False, "--output-json", help="Print the payload as JSON."
    ),
    ttl: int | None = typer.Option(
        None, "--ttl", help="Override the configured time-to-live, in seconds."
    ),
):
    """Perform a cached GET request."""
    overrides = {"ttl": timedelta(seconds=ttl)} if ttl is not None else None
    config_manager = ConfigManager(CONFIG_FILE)
    config = config_manager.load_config(overrides)
    base_url = config_manager.get_base_url()

    async def _get_async() -> Failure | None:
        async with initialize(config, base_url=base_url, data_dir=DATA_DIR) as flow:
            description = f"GET {flow.transport.url_for(url)}"
            listener = RichProgressListener(console, description)
            outcome = None
            async for outcome in flow.fetch(url, listener):
                pass
            print_outcome(outcome, as_json=output_json)
            if log.isEnabledFor(logging.INFO):
                print_summary_panel(flow.stats)
            return outcome if isinstance(outcome, Failure) else None

    failure = asyncio.run(_get_async())
    if failure is not None:
        if failure.cause is not None:
            console.print(format_error_with_suggestions(failure.cause))
        raise typer.Exit(code=1)


@app.command(name="clear-cache")
def clear_cache(
    key: str | None = typer.Argument(
        None, help="Cache key (request URL) to remove. Omit to clear everything."
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Bypass the confirmation prompt.",
    ),
):
    """Remove one cache entry, or the entire cache."""
    if key is None and not force and not typer.confirm(
        "Are you sure you want to clear the entire cache? "
        "Every stored response will be discarded."
    ):
        console.print("[yellow]Operation cancelled.[/yellow]")
        raise typer.Abort()

    config = ConfigManager(CONFIG_FILE).load_config()

    async def _clear_async():
        console.print("[cyan]Clearing cache...[/cyan]")
        async with initialize(config, data_dir=DATA_DIR) as flow:
            return await flow.clear_cache(key)

    outcome = asyncio.run(_clear_async())
    if isinstance(outcome, Failure):
        console.print(f"[red]✗ Failed to clear cache: {outcome.message}[/red]")
        raise typer.Exit(code=1)
    target = f"entry '{key}'" if key is not None else "cache"
    console.print(f"[green]✓ Cleared {target} successfully.[/green]")


@app.command()
def stats():
    """Show statistics about the cache database."""

    async def _get_stats():
        store = SqliteStore(DATA_DIR)
        return await store.count(), store.db_path

    try:
        entry_count, db_path = asyncio.run(_get_stats())
    except sqlite3.Error as e:
        console.print(f"[red]Error accessing cache database: {e}[/red]")
        raise typer.Exit(code=1) from e
    downloads_dir: Path = DATA_DIR / DOWNLOADS_DIR_NAME
    downloads = (
        [p for p in downloads_dir.iterdir() if p.is_file()]
        if downloads_dir.is_dir()
        else []
    )
    print_stats_table(entry_count, db_path, downloads)


@app.command()
def vacuum():
    """Optimize the cache database."""

    async def _vacuum():
        console.print("[cyan]Optimizing cache database...[/cyan]")
        await SqliteStore(DATA_DIR).vacuum()

    asyncio.run(_vacuum())
    console.print("[green]✓ Database optimized.[/green]")
