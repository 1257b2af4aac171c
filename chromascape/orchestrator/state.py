"""Process-wide script state with a single change listener.

Two broadcasters are kept: the *semantic* state (what the script is
doing right now, shown as a coloured badge) and the *run* state
(whether a script worker is alive).  Each holds one current value and
notifies its listener only when the value actually changes.
"""

from __future__ import annotations

import enum
import threading
from typing import Callable, Generic, TypeVar

from chromascape.utils.logger import ChromaLogger

_log = ChromaLogger("State")


class SemanticState(enum.Enum):
    """``(label, style)`` pairs; the style is a dashboard badge class."""

    SEARCHING = ("Searching", "primary")
    ACTING = ("Acting", "success")
    WAITING = ("Waiting", "warning")
    ERROR = ("Error", "danger")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def style(self) -> str:
        return self.value[1]


class RunState(enum.Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


S = TypeVar("S", bound=enum.Enum)


class StateBroadcaster(Generic[S]):
    """Single current value plus a single listener, notified on change only."""

    def __init__(self, initial: S, name: str = "state") -> None:
        self._state = initial
        self._listener: Callable[[S], None] = lambda _state: None
        self._lock = threading.Lock()
        self._name = name

    @property
    def state(self) -> S:
        return self._state

    def set_listener(self, listener: Callable[[S], None] | None) -> None:
        self._listener = listener or (lambda _state: None)

    def set_state(self, new_state: S) -> bool:
        """Swap the value; returns ``True`` if the listener was notified."""
        with self._lock:
            if new_state is self._state:
                return False
            self._state = new_state
            listener = self._listener
        try:
            listener(new_state)
        except Exception as exc:
            # Listeners are dashboard sinks; a failing one never stops the script.
            _log.warn(f"{self._name} listener failed: {exc}")
        return True


semantic_state: StateBroadcaster[SemanticState] = StateBroadcaster(SemanticState.WAITING, "semantic")
run_state: StateBroadcaster[RunState] = StateBroadcaster(RunState.STOPPED, "run")
