"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text

from cacheflow.models.outcome import Failure, FileSuccess, Outcome, Success
from cacheflow.models.stats import CacheStats
from cacheflow.utils.formatting import format_duration, format_size, format_ttl

SUGGESTIONS_MAP = {
    "NetworkError": [
        "• Check that the base URL in the configuration is correct.",
        "• The server may be temporarily unavailable. Try again shortly.",
        "• With offline mode enabled, a cached copy is only served after a call.",
    ],
    "ParseError": [
        "• The server returned a body that could not be decoded.",
        "• Check the Content-Type header of the endpoint.",
        "• Run with -vv to see the raw response in the debug log.",
    ],
    "CacheError": [
        "• The cache database may be locked by another process.",
        "• Run `cacheflow vacuum` to rebuild it.",
        "• As a last resort, run `cacheflow clear-cache --force`.",
    ],
    "ConfigurationError": [
        "• Run `cacheflow init` to create a configuration file.",
        "• Run `cacheflow --show-config` to inspect the current values.",
    ],
    "ClientConnectorError": [
        "• Could not open a connection to the server.",
        "• Check your internet connection and the base URL.",
    ],
    "TimeoutError": [
        "• The request timed out.",
        "• Raise `request_timeout` in the configuration file.",
    ],
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = getattr(error, "message", None) or str(error)

    suggestions = SUGGESTIONS_MAP.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "ttl":
            value = f"{value} ({format_ttl(value)})"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_stats_table(entry_count: int, db_path: Path, downloads: list[Path]):
    """Displays cache database statistics."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    download_bytes = sum(p.stat().st_size for p in downloads)
    db_size = db_path.stat().st_size if db_path.is_file() else 0

    table.add_row("Cached Entries:", f"[green]{entry_count}[/green]")
    table.add_row("Database:", f"[dim]{db_path}[/dim] ({format_size(db_size)})")
    table.add_row(
        "Downloaded Files:", f"{len(downloads)} ({format_size(download_bytes)})"
    )

    console.print(
        Panel(table, title="[bold]Cache Statistics[/bold]", border_style="cyan")
    )


def print_outcome(outcome: Outcome, as_json: bool = False):
    """Prints the terminal outcome of a request."""
    console = Console()
    if isinstance(outcome, FileSuccess):
        console.print(f"[green]✓ Saved file to[/green] [cyan]{outcome.data}[/cyan]")
    elif isinstance(outcome, Success):
        if as_json:
            console.print_json(data=_jsonable(outcome.data))
        else:
            console.print(Pretty(outcome.data))
    elif isinstance(outcome, Failure):
        console.print(f"[bold red]✗ {outcome.message}[/bold red]")


def print_summary_panel(stats: CacheStats):
    """Displays the statistics of a finished session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Cache Hits:", f"[green]{stats.cache_hits}[/green]")
    stats_table.add_row("Cache Misses:", f"[yellow]{stats.cache_misses}[/yellow]")
    stats_table.add_row("Cache Writes:", str(stats.cache_writes))
    if stats.cache_write_failures > 0:
        stats_table.add_row(
            "Write Failures:", f"[red]{stats.cache_write_failures}[/red]"
        )
    if stats.requests_failed > 0:
        stats_table.add_row(
            "✗ Failed:", f"[bold red]{stats.requests_failed}[/bold red]"
        )

    if stats.files_downloaded > 0:
        stats_table.add_row("", "")
        stats_table.add_row("✓ Downloaded:", str(stats.files_downloaded))
        stats_table.add_row(
            "Total Size:",
            f"[cyan]{format_size(stats.total_bytes_downloaded)}[/cyan]",
        )

    stats_table.add_row(
        "Time Elapsed:", f"[blue]{format_duration(stats.elapsed_seconds)}[/blue]"
    )

    console.print()
    console.print(
        Panel(
            stats_table,
            title="[bold]Session Summary[/bold]",
            border_style="red" if stats.requests_failed else "green",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )


def _jsonable(data: Any) -> Any:
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
