"""hotkey_listener.py — Global key-chord that pauses the running script.

Holding both chord keys (default ``=`` and ``-``) at the same time calls
the ``on_chord`` callback, which the controller wires to ``pause()``.

Usage::

    from chromascape.agent.hotkey_listener import HotkeyListener

    listener = HotkeyListener(on_chord=controller.pause)
    listener.start()        # installs a process-wide keyboard hook
    ...
    listener.stop()

Environment variables
---------------------
``CHROMA_HOTKEY_CHORD``
    Comma-separated chord keys (e.g. ``"f9,f10"``).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

from chromascape.utils.config import HotkeyConfig
from chromascape.utils.errors import InvalidArgument

_log = logging.getLogger("HotkeyListener")

# Optional: keyboard module for the global hook
try:
    import keyboard as _keyboard  # type: ignore[import-untyped]
except ImportError:
    _keyboard = None


class ChordDetector:
    """Tracks one held flag per chord key and fires when all are down.

    The callback fires on the press that completes the chord; keeping
    the keys held (auto-repeat) does not fire it again until one of
    them is released.
    """

    def __init__(self, keys: Iterable[str], on_chord: Callable[[], None]) -> None:
        names = [str(key).strip().lower() for key in keys]
        if not all(names):
            raise InvalidArgument(f"blank key name in chord {names!r}")
        self._held = dict.fromkeys(names, False)
        if len(self._held) < 2:
            raise InvalidArgument("a chord needs at least two distinct keys")
        self._on_chord = on_chord
        self._fired = False
        self._lock = threading.Lock()

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(self._held)

    def press(self, key: str) -> bool:
        """Record a key-down; returns ``True`` if this completed the chord."""
        key = key.lower()
        with self._lock:
            if key not in self._held:
                return False
            self._held[key] = True
            complete = all(self._held.values()) and not self._fired
            if complete:
                self._fired = True
        if complete:
            try:
                self._on_chord()
            except Exception as exc:
                _log.error(f"chord callback failed: {exc}")
        return complete

    def release(self, key: str) -> None:
        key = key.lower()
        with self._lock:
            if key in self._held:
                self._held[key] = False
                self._fired = False


class HotkeyListener:
    """Process-wide keyboard hook feeding a :class:`ChordDetector`.

    Parameters
    ----------
    on_chord:
        Called (on the hook thread) when the chord is completed.
    config:
        Chord configuration; defaults from ``config.yaml``.
    backend:
        Object exposing ``hook(callback)`` and ``unhook(handle)``;
        defaults to the ``keyboard`` module.
    """

    def __init__(
        self,
        on_chord: Callable[[], None],
        config: HotkeyConfig | None = None,
        backend=None,
    ) -> None:
        self.config = config or HotkeyConfig()
        self.detector = ChordDetector(self.config.chord, on_chord)
        self._backend = backend if backend is not None else _keyboard
        self._handle = None

    @property
    def is_registered(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Register the hook (non-blocking)."""
        if self._backend is None:
            _log.warning(
                "keyboard module not available — hotkey disabled. "
                "Install with: pip install keyboard"
            )
            return
        if self._handle is not None:
            return
        try:
            self._handle = self._backend.hook(self._on_event)
            _log.info(f"Hotkey chord [{' + '.join(self.detector.keys)}] registered")
        except Exception as exc:
            _log.error(f"Failed to register hotkey hook: {exc}")

    def stop(self) -> None:
        """Unregister the hook; failures are logged, never raised."""
        if self._backend is None or self._handle is None:
            return
        try:
            self._backend.unhook(self._handle)
        except Exception as exc:
            _log.warning(f"Failed to unregister hotkey hook: {exc}")
        self._handle = None

    def _on_event(self, event) -> None:
        name = (getattr(event, "name", None) or "").lower()
        if not name:
            return
        if event.event_type == "down":
            if self.detector.press(name):
                _log.info("Hotkey chord pressed — pausing")
        elif event.event_type == "up":
            self.detector.release(name)
