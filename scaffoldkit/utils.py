"""Shared utility functions for scaffoldkit.

Provides JSON loading, name-case conversion, byte accounting, duration
formatting, and Rich-based console output.  The generator core never prints;
only the reporter and the CLI use the console helpers.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed dictionary.  A non-object top level is wrapped as
        ``{"_root": data}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


def slugify(text: str) -> str:
    """Convert text to a URL/filename-safe slug (hyphenated)."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower().strip())
    return slug.strip("-")


def to_kebab(name: str) -> str:
    """Convert ``EventBus`` or ``Event Bus`` to ``event-bus``.

    Acronym runs stay together: ``HTTPServer`` -> ``http-server``.
    """
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1-\2", name.strip())
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", s1)
    return re.sub(r"[\s_-]+", "-", s2).strip("-").lower()


def to_snake(name: str) -> str:
    """Convert ``EventBus`` or ``event-bus`` to ``event_bus``."""
    return to_kebab(name).replace("-", "_")


def to_pascal(name: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``.

    Words that are already mixed-case keep their inner capitals.
    """
    parts = re.split(r"[-_\s]+", name)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def to_camel(name: str) -> str:
    """Convert ``EventBus`` or ``event-bus`` to ``eventBus``."""
    pascal = to_pascal(name)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def byte_length(content: str, encoding: str = "utf-8") -> int:
    """Number of bytes *content* occupies once encoded."""
    return len(content.encode(encoding))


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.0042) -> "4ms"
        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


def format_bytes(size: int) -> str:
    """Format a byte count: ``512 B``, ``1.5 KB``, ``2.0 MB``."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, Any], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
