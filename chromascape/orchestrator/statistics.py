"""Run statistics — cycles, inputs and objects seen by the active script."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    elapsed_ms: int
    cycles: int
    inputs: int
    objects_detected: int
    running: bool

    @property
    def duration(self) -> str:
        """``HH:MM:SS`` of the elapsed time."""
        seconds = self.elapsed_ms // 1000
        return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"

    def as_dict(self) -> dict[str, object]:
        return {
            "time": self.duration,
            "cycles": self.cycles,
            "inputs": self.inputs,
            "objects": self.objects_detected,
        }


class Statistics:
    """Thread-safe counters; a snapshot is not atomic across fields."""

    def __init__(self, clock=_now_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._start = 0
        self._end = 0
        self._running = False
        self._cycles = 0
        self._inputs = 0
        self._objects = 0

    def reset(self) -> None:
        """Zero the counters and start the clock."""
        with self._lock:
            self._start = self._clock()
            self._end = 0
            self._running = True
            self._cycles = 0
            self._inputs = 0
            self._objects = 0

    def stop(self) -> None:
        """Freeze the elapsed time; later stops keep the first end time."""
        with self._lock:
            if not self._running:
                return
            self._end = self._clock()
            self._running = False

    def increment_cycles(self) -> None:
        with self._lock:
            self._cycles += 1

    def increment_inputs(self) -> None:
        with self._lock:
            self._inputs += 1

    def increment_objects_detected(self, count: int = 1) -> None:
        with self._lock:
            self._objects += count

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def inputs(self) -> int:
        return self._inputs

    @property
    def objects_detected(self) -> int:
        return self._objects

    def elapsed_ms(self) -> int:
        if self._start == 0:
            return 0
        end = self._clock() if self._running else self._end
        return max(0, end - self._start)

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(
            elapsed_ms=self.elapsed_ms(),
            cycles=self._cycles,
            inputs=self._inputs,
            objects_detected=self._objects,
            running=self._running,
        )


stats = Statistics()
