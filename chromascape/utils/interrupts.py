"""Cooperative cancellation primitives.

A script worker binds its :class:`InterruptFlag` to the thread it runs
on; input and vision code deep in the call stack then call
:func:`check_interrupted` at every suspension point without needing a
reference to the script.  Sleeps go through :func:`interruptible_sleep`
so ``stop()`` wakes them immediately.
"""

from __future__ import annotations

import threading
import time

from chromascape.utils.errors import Interrupted

_local = threading.local()


class InterruptFlag:
    """Thread-safe "please stop" flag backed by :class:`threading.Event`."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; returns ``True`` if the flag was raised."""
        return self._event.wait(max(0.0, seconds))


def bind(flag: InterruptFlag | None) -> None:
    """Attach *flag* to the calling thread (``None`` detaches)."""
    _local.flag = flag


def current_flag() -> InterruptFlag | None:
    return getattr(_local, "flag", None)


def check_interrupted() -> None:
    """Raise :class:`Interrupted` if the calling thread's flag is set."""
    flag = current_flag()
    if flag is not None and flag.is_set():
        raise Interrupted("script interrupted")


def interruptible_sleep(millis: float) -> None:
    """Sleep *millis* ms, waking early and raising if interrupted."""
    flag = current_flag()
    if flag is None:
        time.sleep(max(0.0, millis) / 1000.0)
        return
    if flag.wait(millis / 1000.0):
        raise Interrupted("script interrupted")
