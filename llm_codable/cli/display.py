"""
Rich terminal display utilities for CLI.

Provides formatted output using the Rich library for:
- Progress indicators
- Encoded values in panels
- Confidence meters
- Live tables of streamed partial results
"""

import json
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

console = Console()


def print_header(title: str) -> None:
    """Print a formatted header."""
    console.print()
    console.print(f"[bold cyan]{title}[/bold cyan]")
    console.print("=" * len(title))
    console.print()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    # Messages are plain text, not markup
    console.print(f"[red]✗[/red] {escape(message)}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_separator() -> None:
    console.print("[dim]" + "─" * 70 + "[/dim]")


def print_encoded(text: str, strategy: str, title: Optional[str] = None) -> None:
    """
    Print an encoded value, syntax-highlighted when it is JSON.

    Args:
        text: Encoded value
        strategy: Name of the strategy that produced it
        title: Optional panel title
    """
    if strategy == "json":
        body: Any = Syntax(text, "json", theme="monokai", line_numbers=False)
    elif strategy == "markdown":
        body = Syntax(text, "markdown", theme="monokai", line_numbers=False)
    else:
        body = Text(text)

    console.print(Panel(body, title=f"[bold]{title or strategy}[/bold]", border_style="cyan"))


def confidence_style(confidence: float) -> str:
    """Color for a confidence score: green >= 0.8, yellow >= 0.5, red below."""
    if confidence >= 0.8:
        return "green"
    if confidence >= 0.5:
        return "yellow"
    return "red"


def print_confidence(confidence: float, width: int = 30) -> None:
    """Print a confidence score as a bar."""
    style = confidence_style(confidence)
    filled = round(confidence * width)
    bar = Text("█" * filled, style=style) + Text("░" * (width - filled), style="dim")

    console.print(Text("Confidence ") + bar + Text(f" {confidence:.2f}", style=f"bold {style}"))


def snapshot_table(fields: Dict[str, Any], title: str, updates: int) -> Table:
    """
    Table for the latest partial snapshot; unfilled fields show as pending.

    Args:
        fields: Field name -> current value (None while not generated)
        title: Table title
        updates: Number of snapshots received so far
    """
    table = Table(title=f"{title} [dim](updates: {updates})[/dim]", show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan", width=22)
    table.add_column("Value", style="white")

    for name, value in fields.items():
        if value is None:
            table.add_row(name, Text("generating...", style="dim italic"))
        elif isinstance(value, (list, dict)):
            table.add_row(name, json.dumps(value, ensure_ascii=False))
        else:
            table.add_row(name, str(value))

    return table


def print_element(index: int, text: str, strategy: str) -> None:
    """Print one element of an element stream."""
    print_encoded(text, strategy, title=f"#{index}")


def print_settings(settings: Dict[str, Any], backends: List[str], devices: Dict[str, Any]) -> None:
    """Print the effective configuration and what can run on this machine."""
    table = Table(title="Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan", width=20)
    table.add_column("Value", style="white", width=50)

    for key, value in settings.items():
        table.add_row(key, "[dim]not set[/dim]" if value is None else str(value))

    table.add_row("available backends", ", ".join(backends) or "[red]none[/red]")
    table.add_row("optimal device", str(devices.get('optimal_device')))
    table.add_row("platform", f"{devices.get('platform')} ({devices.get('processor')})")

    console.print()
    console.print(table)
    console.print()


def create_progress_spinner() -> Progress:
    """Spinner for the duration of a model call."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def print_model_loading(model_id: str, backend: Optional[str]) -> None:
    console.print()
    print_info(f"Loading model: [bold]{model_id}[/bold]")
    print_info(f"Backend: [bold]{backend or 'auto'}[/bold]")
    console.print()
