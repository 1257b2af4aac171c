"""Deadline-polled waits for scripts."""

from __future__ import annotations

import time
from typing import Callable

from chromascape.utils.interrupts import interruptible_sleep


def wait_until(
    condition: Callable[[], bool],
    timeout_s: float,
    poll_ms: int = 300,
    waiter: Callable[[float], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll *condition* until it holds or *timeout_s* elapses.

    Returns ``True`` as soon as the condition is met.  *waiter* sleeps
    between polls; pass a script's ``wait_millis`` to stay interruptible
    through the script's own flag.
    """
    wait = waiter or interruptible_sleep
    deadline = clock() + timeout_s
    while True:
        if condition():
            return True
        if clock() >= deadline:
            return False
        wait(poll_ms)
