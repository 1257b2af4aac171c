"""Event injector — client end of the out-of-process input channel.

The host module (``KInputCtrl64.dll`` + ``KInput64.dll``) is attached to
the game's Java process and re-posts AWT events on its canvas, so the
real OS cursor and keyboard focus are never taken from the user.

Thread-safety: every public operation holds one re-entrant lock, so
events issued by a script thread arrive in program order.
"""

from __future__ import annotations

import ctypes
import os
import random
import threading
import time
from pathlib import Path
from typing import Protocol

from chromascape.utils.config import InjectorConfig
from chromascape.utils.errors import InjectorError
from chromascape.utils.interrupts import check_interrupted
from chromascape.utils.logger import ChromaLogger

# ── AWT event ids ────────────────────────────────────────────────
FOCUS_GAINED = 1004
FOCUS_LOST = 1005

KEY_TYPED = 400
KEY_PRESSED = 401
KEY_RELEASED = 402

MOUSE_CLICKED = 500
MOUSE_PRESSED = 501
MOUSE_RELEASED = 502
MOUSE_MOVED = 503
MOUSE_ENTERED = 504
MOUSE_EXITED = 505
MOUSE_DRAGGED = 506
MOUSE_WHEEL = 507

BUTTON_NONE = 0
BUTTON_LEFT = 1
BUTTON_MIDDLE = 2
BUTTON_RIGHT = 3

WHEEL_UNIT_SCROLL = 0


class InjectorChannel(Protocol):
    """Native channel contract; every call returns a success flag."""

    def create(self, pid: int) -> bool: ...

    def delete(self, pid: int) -> bool: ...

    def focus_event(self, pid: int, event_id: int) -> bool: ...

    def key_event(
        self, pid: int, event_id: int, when: int, modifiers: int,
        key_code: int, key_char: int, key_location: int,
    ) -> bool: ...

    def mouse_event(
        self, pid: int, event_id: int, when: int, modifiers: int,
        x: int, y: int, click_count: int, popup_trigger: bool, button: int,
    ) -> bool: ...

    def mouse_wheel_event(
        self, pid: int, event_id: int, when: int, modifiers: int,
        x: int, y: int, click_count: int, popup_trigger: bool,
        scroll_type: int, scroll_amount: int, wheel_rotation: int,
    ) -> bool: ...


class NativeInjectorChannel:
    """``ctypes`` binding of the KInput control module."""

    def __init__(self, config: InjectorConfig | None = None) -> None:
        self.config = config or InjectorConfig()
        missing = [str(p) for p in self.config.module_paths() if not p.exists()]
        if missing:
            raise InjectorError(f"injection modules not found: {', '.join(missing)}")
        library = Path(self.config.library_dir).resolve() / self.config.control_library
        try:
            self._dll = ctypes.CDLL(str(library))
        except OSError as exc:
            raise InjectorError(f"failed to load {library}: {exc}") from exc
        self._bind()

    def _bind(self) -> None:
        c_int, c_bool, c_short, c_long64 = ctypes.c_int, ctypes.c_bool, ctypes.c_short, ctypes.c_longlong
        signatures = {
            "KInput_Create": [c_int],
            "KInput_Delete": [c_int],
            "KInput_FocusEvent": [c_int, c_int],
            "KInput_KeyEvent": [c_int, c_int, c_long64, c_int, c_int, c_short, c_int],
            "KInput_MouseEvent": [c_int, c_int, c_long64, c_int, c_int, c_int, c_int, c_bool, c_int],
            "KInput_MouseWheelEvent": [
                c_int, c_int, c_long64, c_int, c_int, c_int, c_int, c_bool, c_int, c_int, c_int,
            ],
        }
        for name, argtypes in signatures.items():
            fn = getattr(self._dll, name)
            fn.argtypes = argtypes
            fn.restype = c_bool

    def create(self, pid: int) -> bool:
        return bool(self._dll.KInput_Create(pid))

    def delete(self, pid: int) -> bool:
        return bool(self._dll.KInput_Delete(pid))

    def focus_event(self, pid: int, event_id: int) -> bool:
        return bool(self._dll.KInput_FocusEvent(pid, event_id))

    def key_event(self, pid, event_id, when, modifiers, key_code, key_char, key_location) -> bool:
        return bool(self._dll.KInput_KeyEvent(pid, event_id, when, modifiers, key_code, key_char, key_location))

    def mouse_event(self, pid, event_id, when, modifiers, x, y, click_count, popup_trigger, button) -> bool:
        return bool(self._dll.KInput_MouseEvent(
            pid, event_id, when, modifiers, x, y, click_count, popup_trigger, button
        ))

    def mouse_wheel_event(
        self, pid, event_id, when, modifiers, x, y, click_count, popup_trigger,
        scroll_type, scroll_amount, wheel_rotation,
    ) -> bool:
        return bool(self._dll.KInput_MouseWheelEvent(
            pid, event_id, when, modifiers, x, y, click_count, popup_trigger,
            scroll_type, scroll_amount, wheel_rotation,
        ))


class RecordingChannel:
    """In-memory channel that records every call as a tuple.

    Used for ``--dry-run`` sessions and tests.  Set ``fail_on`` to a
    method name to make that call report failure.
    """

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail_on = fail_on
        self._lock = threading.Lock()

    def _record(self, name: str, *args) -> bool:
        with self._lock:
            self.calls.append((name, *args))
        return name != self.fail_on

    def create(self, pid):
        return self._record("create", pid)

    def delete(self, pid):
        return self._record("delete", pid)

    def focus_event(self, pid, event_id):
        return self._record("focus", pid, event_id)

    def key_event(self, pid, event_id, when, modifiers, key_code, key_char, key_location):
        return self._record("key", pid, event_id, modifiers, key_code, key_char, key_location)

    def mouse_event(self, pid, event_id, when, modifiers, x, y, click_count, popup_trigger, button):
        return self._record("mouse", pid, event_id, modifiers, x, y, click_count, popup_trigger, button)

    def mouse_wheel_event(
        self, pid, event_id, when, modifiers, x, y, click_count, popup_trigger,
        scroll_type, scroll_amount, wheel_rotation,
    ):
        return self._record(
            "wheel", pid, event_id, modifiers, x, y, click_count, popup_trigger,
            scroll_type, scroll_amount, wheel_rotation,
        )

    def named(self, name: str) -> list[tuple]:
        with self._lock:
            return [c for c in self.calls if c[0] == name]


def _now_ms() -> int:
    return int(time.time() * 1000)


class EventInjector:
    """Serialized, focus-gated event sender for one target process.

    Args:
        pid: Target process id.
        channel: Native (or recording) channel.
        rng: Random source for click hold times.
    """

    def __init__(self, pid: int, channel: InjectorChannel, rng: random.Random | None = None) -> None:
        self.pid = int(pid)
        self._channel = channel
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._destroyed = False
        self._log = ChromaLogger("Injector")
        if not channel.create(self.pid):
            raise InjectorError(f"failed to create injector for pid {self.pid}")
        self._log.info(f"attached to pid {self.pid}")

    # ── Lifecycle ─────────────────────────────────────────────────

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Detach from the target; repeated calls are no-ops."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            if not self._channel.delete(self.pid):
                raise InjectorError(f"failed to delete injector for pid {self.pid}")
            self._log.info(f"detached from pid {self.pid}")

    # ── Internal ──────────────────────────────────────────────────

    @staticmethod
    def _gate(check: bool) -> None:
        if check:
            check_interrupted()

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise InjectorError("injector already destroyed")

    def _focus(self) -> None:
        self._ensure_alive()
        if not self._channel.focus_event(self.pid, FOCUS_GAINED):
            raise InjectorError(f"focus event failed for pid {self.pid}")

    def _mouse(self, event_id: int, modifiers: int, x: int, y: int, clicks: int, button: int, what: str) -> None:
        if not self._channel.mouse_event(self.pid, event_id, _now_ms(), modifiers, x, y, clicks, False, button):
            raise InjectorError(f"{what} failed at ({x}, {y})")

    def _hold(self) -> None:
        time.sleep(self._rng.randrange(50, 80) / 1000.0)

    # ── Mouse ─────────────────────────────────────────────────────

    def click_left(self, x: int, y: int, check: bool = True) -> None:
        self._gate(check)
        with self._lock:
            self._focus()
            self._mouse(MOUSE_PRESSED, 1, x, y, 1, BUTTON_LEFT, "left press")
            self._hold()
            self._mouse(MOUSE_RELEASED, 1, x, y, 1, BUTTON_LEFT, "left release")
        # The press/release pair is never split; a stop raised mid-click lands after it.
        self._gate(check)

    def click_right(self, x: int, y: int, check: bool = True) -> None:
        self._gate(check)
        with self._lock:
            self._focus()
            self._mouse(MOUSE_PRESSED, 0, x, y, 1, BUTTON_RIGHT, "right press")
            self._hold()
            self._mouse(MOUSE_RELEASED, 0, x, y, 1, BUTTON_RIGHT, "right release")
        self._gate(check)

    def middle(self, x: int, y: int, event_id: int, check: bool = True) -> None:
        """Single middle-button event (``MOUSE_PRESSED`` or ``MOUSE_RELEASED``).

        Pass ``check=False`` for a cleanup release after a stop request.
        """
        self._gate(check)
        with self._lock:
            self._focus()
            self._mouse(event_id, 1, x, y, 1, BUTTON_MIDDLE, "middle event")

    def move(self, x: int, y: int, check: bool = True) -> None:
        self._gate(check)
        with self._lock:
            self._focus()
            self._mouse(MOUSE_ENTERED, 0, x, y, 0, BUTTON_NONE, "mouse enter")
            self._mouse(MOUSE_MOVED, 0, x, y, 0, BUTTON_NONE, "mouse move")

    def wheel(self, x: int, y: int, rotation: int, check: bool = True) -> None:
        """Scroll by *rotation* notches (negative is away from the user)."""
        self._gate(check)
        with self._lock:
            self._focus()
            ok = self._channel.mouse_wheel_event(
                self.pid, MOUSE_WHEEL, _now_ms(), 0, x, y, 0, False,
                WHEEL_UNIT_SCROLL, 3, int(rotation),
            )
            if not ok:
                raise InjectorError(f"wheel event failed at ({x}, {y})")

    # ── Keyboard ──────────────────────────────────────────────────

    def key_event(self, event_id: int, char: str, check: bool = True) -> None:
        self._gate(check)
        with self._lock:
            self._focus()
            if not self._channel.key_event(self.pid, event_id, _now_ms(), 0, 0, ord(char), 0):
                raise InjectorError(f"key event failed for {char!r}")

    def modifier(self, event_id: int, key_name: str, key_id: int, check: bool = True) -> None:
        """Named key by id; ``check=False`` lets a key-up through after a stop."""
        self._gate(check)
        with self._lock:
            self._focus()
            if not self._channel.key_event(self.pid, event_id, _now_ms(), 0, key_id, 0, 0):
                raise InjectorError(f"modifier key event failed for {key_name!r}")

    def arrow(self, event_id: int, key_name: str, key_id: int, check: bool = True) -> None:
        self._gate(check)
        with self._lock:
            self._focus()
            if not self._channel.key_event(self.pid, event_id, _now_ms(), 0, key_id, 0, 0):
                raise InjectorError(f"arrow key event failed for {key_name!r}")


def build_channel(config: InjectorConfig | None = None, dry_run: bool = False) -> InjectorChannel:
    """Native channel on Windows, recording channel for dry runs."""
    if dry_run:
        return RecordingChannel()
    if os.name != "nt":
        raise InjectorError("the native injection module is only available on Windows")
    return NativeInjectorChannel(config)
