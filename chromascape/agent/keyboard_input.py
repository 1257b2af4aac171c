"""Virtual keyboard — named-key and character input through the injector."""

from __future__ import annotations

import random

from chromascape.agent.event_injector import KEY_PRESSED, KEY_RELEASED, KEY_TYPED, EventInjector
from chromascape.utils.errors import InvalidArgument
from chromascape.utils.interrupts import interruptible_sleep

MODIFIER_KEYS: dict[str, int] = {
    "shift": 16,
    "enter": 10,
    "alt": 18,
    "ctrl": 17,
    "esc": 27,
    "space": 32,
}

ARROW_KEYS: dict[str, int] = {
    "left": 37,
    "right": 39,
    "up": 38,
    "down": 40,
}


def _lookup(table: dict[str, int], name: str, kind: str) -> int:
    try:
        return table[name.strip().lower()]
    except KeyError:
        raise InvalidArgument(f"unknown {kind} key: {name!r}") from None


class VirtualKeyboard:
    """Keyboard controller bound to one :class:`EventInjector`."""

    def __init__(self, injector: EventInjector, rng: random.Random | None = None) -> None:
        self._injector = injector
        self._rng = rng or random.Random()

    def send_char(self, char: str) -> None:
        """Type one character (``KEY_TYPED``)."""
        if len(char) != 1:
            raise InvalidArgument(f"expected a single character, got {char!r}")
        self._injector.key_event(KEY_TYPED, char)

    def send_modifier(self, event_id: int, name: str, check: bool = True) -> None:
        """Press/release a modifier; ``check=False`` for cleanup key-ups."""
        key_id = _lookup(MODIFIER_KEYS, name, "modifier")
        self._injector.modifier(event_id, name, key_id, check=check)

    def send_arrow(self, event_id: int, name: str) -> None:
        key_id = _lookup(ARROW_KEYS, name, "arrow")
        self._injector.arrow(event_id, name, key_id)

    # ── Convenience ───────────────────────────────────────────────

    def press_modifier(self, name: str, hold_ms: tuple[int, int] = (40, 90)) -> None:
        """Press and release a modifier with a short human hold."""
        self.send_modifier(KEY_PRESSED, name)
        interruptible_sleep(self._rng.randrange(*hold_ms))
        self.send_modifier(KEY_RELEASED, name)

    def type_text(self, text: str, lo_ms: int = 30, hi_ms: int = 90) -> None:
        """Type *text* one character at a time with random gaps."""
        for char in text:
            self.send_char(char)
            interruptible_sleep(self._rng.randrange(lo_ms, hi_ms))
