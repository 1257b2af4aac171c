"""Shift-click every inventory slot to drop its item."""

from __future__ import annotations

import enum
import random

from chromascape.agent.event_injector import KEY_PRESSED, KEY_RELEASED
from chromascape.tools.click_distribution import generate_random_point
from chromascape.utils.interrupts import interruptible_sleep
from chromascape.utils.logger import ChromaLogger

INVENTORY_SIZE = 28

_log = ChromaLogger("ItemDropper")


class DropPattern(enum.Enum):
    STANDARD = "standard"
    ZIGZAG = "zigzag"


def slot_order(pattern: DropPattern = DropPattern.ZIGZAG) -> list[int]:
    """Slot indices in drop order.

    ``ZIGZAG`` walks rows in vertical pairs (0, 4, 1, 5, ...), which keeps
    the pointer travel short, then finishes the last row left to right.
    """
    if pattern is DropPattern.STANDARD:
        return list(range(INVENTORY_SIZE))
    order: list[int] = []
    for base in (0, 8, 16):
        for col in range(4):
            order.extend((base + col, base + col + 4))
    order.extend(range(24, INVENTORY_SIZE))
    return order


def drop_all(controller, pattern: DropPattern = DropPattern.ZIGZAG, rng: random.Random | None = None) -> int:
    """Hold shift and click every slot; returns the number of clicks."""
    rng = rng or random.Random()
    keyboard = controller.keyboard()
    mouse = controller.mouse()
    slots = controller.zones().inventory_slots
    _log.info(f"dropping all items ({pattern.value})")

    clicked = 0
    keyboard.send_modifier(KEY_PRESSED, "shift")
    try:
        interruptible_sleep(rng.randint(100, 250))
        for index in slot_order(pattern):
            if index >= len(slots):
                continue
            mouse.move_to(generate_random_point(slots[index]), "fast")
            mouse.left_click()
            clicked += 1
            interruptible_sleep(rng.randint(40, 90))
    finally:
        try:
            interruptible_sleep(rng.randint(100, 200))
        finally:
            # Shift must come back up even when the script is being stopped.
            keyboard.send_modifier(KEY_RELEASED, "shift", check=False)
    return clicked
