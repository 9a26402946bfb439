"""User-facing notices and the observer channel the engine emits on."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar
from uuid import UUID, uuid4

from dashgrid.config import GRID_RULES


log = logging.getLogger(__name__)


# Localisation keys shown by the UI layer.
MSG_NO_SPACE = "WidgetOrganizer.AddWidget.Warning.NoSpace"
MSG_NO_SPACE_FOR_SIZE = "WidgetOrganizer.AddWidget.Warning.NoDropSpaceForSize"
MSG_NO_DROP_SPACE = "WidgetOrganizer.AddWidget.Warning.NoDropSpace"

NO_SPACE_CONTEXTS = ("add", "resize", "move")


@dataclass(frozen=True)
class NoSpaceNotice:
    """Emitted when add / resize / move finds no legal position."""

    context: str                        # "add" | "resize" | "move"
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.context not in NO_SPACE_CONTEXTS:
            raise ValueError(f"Unknown notice context '{self.context}'")


@dataclass(frozen=True)
class Toast:
    """Transient message; the UI hides it after *duration* seconds."""

    message: str
    duration: float = GRID_RULES.toast_duration_s
    id: UUID = field(default_factory=uuid4)


T = TypeVar("T")


class Channel(Generic[T]):
    """Minimal observer list.

    Listener errors are logged and never reach the emitter, so a broken
    renderer cannot undo a committed layout change.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._listeners: list[Callable[[T], None]] = []

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, payload: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(payload)
            except Exception:
                log.exception("Listener on %s channel failed", self.name)

    def __len__(self) -> int:
        return len(self._listeners)
