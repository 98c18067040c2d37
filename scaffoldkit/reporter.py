"""Rich console reporting for generation runs.

``ConsoleReporter`` subscribes to an orchestrator's events and renders them:
one line per finished step, yellow warnings for conflicts, red errors, and a
summary table once the manifest is complete.  The generator itself never
prints; this is the only place run output reaches the terminal.
"""

from __future__ import annotations

from collections.abc import Callable

from rich.console import Console
from rich.table import Table

from scaffoldkit.events import (
    CompleteEvent,
    ConflictEvent,
    ErrorEvent,
    FileCreatedEvent,
    StepCompleteEvent,
)
from scaffoldkit.generator.engine import GenerationOrchestrator
from scaffoldkit.models import ConflictStrategy, GeneratedManifest
from scaffoldkit.utils import console as default_console
from scaffoldkit.utils import format_bytes, format_duration

_CONFLICT_VERBS = {
    ConflictStrategy.SKIP: "skipped",
    ConflictStrategy.OVERWRITE: "overwritten",
    ConflictStrategy.MERGE: "merged",
}


class ConsoleReporter:
    """Prints orchestrator events to a Rich console.

    Args:
        console: Target console.  Defaults to the shared scaffoldkit console.
        verbose: Also print one line per created file.
    """

    def __init__(self, console: Console | None = None, *, verbose: bool = False) -> None:
        self.console = console or default_console
        self.verbose = verbose
        self._unsubscribers: list[Callable[[], None]] = []
        self.files_created = 0
        self.conflicts = 0
        self.errors = 0

    def attach(self, orchestrator: GenerationOrchestrator) -> "ConsoleReporter":
        """Subscribe to *orchestrator*; returns ``self`` for chaining."""
        self._unsubscribers.extend(
            [
                orchestrator.on(StepCompleteEvent, self.on_step_complete),
                orchestrator.on(FileCreatedEvent, self.on_file_created),
                orchestrator.on(ConflictEvent, self.on_conflict),
                orchestrator.on(ErrorEvent, self.on_error),
                orchestrator.on(CompleteEvent, self.on_complete),
            ]
        )
        return self

    def detach(self) -> None:
        """Remove every subscription made by :meth:`attach`."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # -- Handlers ----------------------------------------------------------

    def on_step_complete(self, event: StepCompleteEvent) -> None:
        self.console.print(f"  [green]✓[/green] {event.step}")

    def on_file_created(self, event: FileCreatedEvent) -> None:
        self.files_created += 1
        if self.verbose:
            self.console.print(
                f"    [dim]{event.path} ({format_bytes(event.size)})[/dim]"
            )

    def on_conflict(self, event: ConflictEvent) -> None:
        self.conflicts += 1
        verb = _CONFLICT_VERBS.get(event.strategy, str(event.strategy))
        self.console.print(
            f"  [bold yellow]Conflict:[/bold yellow] {event.path} already exists ({verb})"
        )

    def on_error(self, event: ErrorEvent) -> None:
        self.errors += 1
        where = f" during '{event.step}'" if event.step else ""
        self.console.print(f"  [bold red]Error{where}:[/bold red] {event.error}")

    def on_complete(self, event: CompleteEvent) -> None:
        self.console.print(self.summary_table(event.manifest))

    # -- Rendering ---------------------------------------------------------

    @staticmethod
    def summary_table(manifest: GeneratedManifest) -> Table:
        """Key/value table describing *manifest*."""
        title = "Dry run" if manifest.dry_run else "Generated project"
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="dim", no_wrap=True)
        table.add_column("Value")

        table.add_row("Name", manifest.name)
        table.add_row("Output", manifest.output_path)
        table.add_row("Files", str(manifest.total_files))
        table.add_row("Directories", str(len(manifest.directories)))
        table.add_row("Size", format_bytes(manifest.total_bytes))
        table.add_row("Duration", format_duration(manifest.duration_ms / 1000))
        return table
