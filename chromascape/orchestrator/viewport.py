"""Viewport — live PNG feed of what the script last captured.

``FrameGrabber`` pushes every full frame into a :class:`Viewport`.  The
encoder keeps only the most recent frame: while it is busy encoding,
newer frames overwrite the pending one and older ones are dropped.
"""

from __future__ import annotations

import threading
from typing import Callable, Protocol

import numpy as np

from chromascape.utils.imaging import encode_png
from chromascape.utils.logger import ChromaLogger


class Viewport(Protocol):
    def update(self, frame: np.ndarray) -> None: ...


class NullViewport:
    def update(self, frame: np.ndarray) -> None:
        pass


class ViewportEncoder:
    """Single worker thread that PNG-encodes the latest frame.

    Args:
        publish: Receives each encoded PNG (e.g. a websocket broadcast).
    """

    def __init__(self, publish: Callable[[bytes], None]) -> None:
        self._publish = publish
        self._pending: np.ndarray | None = None
        self._cond = threading.Condition()
        self._running = False
        self._thread: threading.Thread | None = None
        self.dropped = 0
        self._log = ChromaLogger("Viewport")

    def start(self) -> None:
        with self._cond:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(target=self._worker, daemon=True, name="ViewportEncoder")
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        with self._cond:
            self._running = False
            self._pending = None
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def update(self, frame: np.ndarray) -> None:
        with self._cond:
            if self._pending is not None:
                self.dropped += 1
            self._pending = frame
            self._cond.notify()

    def _worker(self) -> None:
        while True:
            with self._cond:
                while self._running and self._pending is None:
                    self._cond.wait()
                if not self._running:
                    return
                frame, self._pending = self._pending, None
            try:
                self._publish(encode_png(frame))
            except Exception as exc:
                # Publisher is a transient collaborator; the next frame retries.
                self._log.warn(f"viewport frame dropped: {exc}")
