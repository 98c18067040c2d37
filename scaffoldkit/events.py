"""Typed lifecycle events and the listener registry that dispatches them.

Each event is a frozen dataclass carrying a class-level ``name`` (the
subscription key).  ``EventEmitter`` delivers events synchronously to every
listener registered for that name.  Listener exceptions are contained: a
misbehaving observer can never abort a generation run.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from scaffoldkit.models import ConflictStrategy, GeneratedManifest, GenerationProgress


@dataclass(frozen=True)
class StepStartEvent:
    name: ClassVar[str] = "step:start"
    step: str


@dataclass(frozen=True)
class StepCompleteEvent:
    name: ClassVar[str] = "step:complete"
    step: str


@dataclass(frozen=True)
class ProgressEvent:
    name: ClassVar[str] = "progress"
    progress: GenerationProgress


@dataclass(frozen=True)
class FileCreatedEvent:
    name: ClassVar[str] = "file:created"
    path: str
    size: int


@dataclass(frozen=True)
class ConflictEvent:
    """A generated path already existed; ``strategy`` is what was applied."""

    name: ClassVar[str] = "conflict"
    path: str
    strategy: ConflictStrategy


@dataclass(frozen=True)
class ErrorEvent:
    name: ClassVar[str] = "error"
    error: BaseException
    step: str


@dataclass(frozen=True)
class CompleteEvent:
    name: ClassVar[str] = "complete"
    manifest: GeneratedManifest


GenerationEvent = Union[
    StepStartEvent,
    StepCompleteEvent,
    ProgressEvent,
    FileCreatedEvent,
    ConflictEvent,
    ErrorEvent,
    CompleteEvent,
]

EVENT_TYPES: dict[str, type] = {
    cls.name: cls
    for cls in (
        StepStartEvent,
        StepCompleteEvent,
        ProgressEvent,
        FileCreatedEvent,
        ConflictEvent,
        ErrorEvent,
        CompleteEvent,
    )
}

Listener = Callable[[Any], Any]


class EventEmitter:
    """Registry of listeners keyed by event name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str | type, listener: Listener) -> Callable[[], None]:
        """Subscribe *listener* to *event* (a name or an event class).

        Returns:
            A zero-argument function that removes the subscription.  Calling
            it more than once is harmless.

        Raises:
            ValueError: If *event* is not a known event name.
        """
        key = _event_key(event)
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def emit(self, event: GenerationEvent) -> None:
        """Deliver *event* to its listeners, swallowing listener exceptions."""
        # Copy so listeners may unsubscribe while being notified.
        for listener in list(self._listeners.get(event.name, ())):
            try:
                listener(event)
            except Exception:
                # Observer failures are never fatal to the run.
                continue


def _event_key(event: str | type) -> str:
    key = event if isinstance(event, str) else getattr(event, "name", None)
    if key not in EVENT_TYPES:
        raise ValueError(
            f"Unknown event {event!r}. Available: {', '.join(sorted(EVENT_TYPES))}"
        )
    return key
