"""Step tracking for generation runs.

The total number of steps is fixed before the first step starts, so the
percentage is meaningful from the very first ``progress`` event.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from scaffoldkit.events import EventEmitter, ProgressEvent, StepCompleteEvent, StepStartEvent
from scaffoldkit.models import GenerationProgress, GenerationStatus


def compute_percentage(completed: int, total: int) -> int:
    """Half-up rounded completion percentage.

    Only a fully completed plan reads 100; anything short of it is capped at
    99 so the 100% reading happens exactly once.
    """
    if total <= 0:
        return 0
    if completed >= total:
        return 100
    return min(99, (completed * 200 + total) // (total * 2))


class StepTracker:
    """Runs named steps and keeps the single mutable ``GenerationProgress``."""

    def __init__(self, emitter: EventEmitter | None = None) -> None:
        self.emitter = emitter or EventEmitter()
        self._progress = GenerationProgress()

    def reset(self) -> None:
        """Return to the idle state."""
        self._progress = GenerationProgress()

    def begin(self, total_steps: int) -> None:
        """Start a run of *total_steps* steps."""
        if total_steps < 0:
            raise ValueError("total_steps must be >= 0")
        self._progress = GenerationProgress(
            total_steps=total_steps,
            status=GenerationStatus.RUNNING,
        )

    async def step(self, label: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run *fn* as one step labelled *label*.

        Exceptions from *fn* propagate unchanged; the step is then not counted.
        """
        self._progress.current_step_label = label
        self.emitter.emit(StepStartEvent(step=label))

        result = await fn()

        self._progress.completed_steps += 1
        self._progress.percentage = compute_percentage(
            self._progress.completed_steps, self._progress.total_steps
        )
        self.emitter.emit(StepCompleteEvent(step=label))
        self.emitter.emit(ProgressEvent(progress=self.snapshot()))
        return result

    def mark_running(self) -> None:
        self._progress.status = GenerationStatus.RUNNING

    def mark_completed(self) -> None:
        self._progress.status = GenerationStatus.COMPLETED
        self._progress.percentage = 100

    def mark_failed(self) -> None:
        self._progress.status = GenerationStatus.FAILED

    @property
    def status(self) -> GenerationStatus:
        return self._progress.status

    @property
    def current_step_label(self) -> str:
        return self._progress.current_step_label

    def snapshot(self) -> GenerationProgress:
        """Independent copy of the current progress."""
        return self._progress.model_copy()
