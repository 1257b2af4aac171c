"""Script core — the cooperative loop every bot script runs in.

A script subclasses :class:`BaseScript` and implements :meth:`cycle`.
:meth:`BaseScript.run` brings the controller up, then loops::

    check interrupt → SEARCHING → cycle() → cycles += 1
    → run-duration cap? → sleep 100–300 ms → repeat

and always shuts the controller down on the way out.  ``stop()`` (from
any thread, e.g. the hotkey hook) raises the interrupt flag, which wakes
the worker from whatever sleep it is in; the next suspension point then
raises :class:`Interrupted` and the loop unwinds cleanly.

Config (``config.yaml`` → ``script``)
-------------------------------------
``min_cycle_delay_ms`` / ``max_cycle_delay_ms``  Pause between cycles.
``max_runtime_seconds``                          Stop after this long (0 = never).
"""

from __future__ import annotations

import abc
import random
import threading
import time

from chromascape.orchestrator.state import (
    RunState,
    SemanticState,
    StateBroadcaster,
    run_state as default_run_state,
    semantic_state as default_semantic_state,
)
from chromascape.orchestrator.statistics import Statistics, stats as default_stats
from chromascape.utils import interrupts
from chromascape.utils.config import ScriptConfig
from chromascape.utils.errors import InjectorError, Interrupted
from chromascape.utils.interrupts import InterruptFlag, check_interrupted
from chromascape.utils.logger import ChromaLogger

__all__ = ["BaseScript", "ScriptRunner", "check_interrupted"]


class BaseScript(abc.ABC):
    """Base class for bot scripts.

    Args:
        controller: Lifecycle controller (``init``/``shutdown``/``abort``).
        state: Semantic-state broadcaster (process default if omitted).
        stats: Statistics sink (process default if omitted).
        run_state: Run-state broadcaster (process default if omitted).
        config: Loop pacing.
        rng: Random source for the waits.
    """

    name = "Script"

    def __init__(
        self,
        controller,
        state: StateBroadcaster[SemanticState] | None = None,
        stats: Statistics | None = None,
        run_state: StateBroadcaster[RunState] | None = None,
        config: ScriptConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._controller = controller
        self.state = state or default_semantic_state
        self.stats = stats or default_stats
        self.run_state = run_state or default_run_state
        self.config = config or ScriptConfig()
        self.rng = rng or random.Random()
        self._flag = InterruptFlag()
        self._log = ChromaLogger(self.name)

    @property
    def controller(self):
        return self._controller

    @abc.abstractmethod
    def cycle(self) -> None:
        """One iteration of the script's work."""

    # ── Lifecycle ─────────────────────────────────────────────────

    def run(self) -> None:
        """Run until stopped, capped, or failed.  Never raises."""
        interrupts.bind(self._flag)
        self.run_state.set_state(RunState.RUNNING)
        self.stats.reset()
        self._log.highlight(f"starting {self.name}")
        try:
            self._controller.active_script = self
            if not self._controller.is_running:
                self._controller.init()
            self._loop()
        except Interrupted:
            self._log.info(f"{self.name} interrupted")
        except InjectorError as exc:
            self._log.error(f"injector failure: {exc}")
            self.state.set_state(SemanticState.ERROR)
            self._controller.abort()
        except Exception as exc:
            self._log.error(f"{self.name} crashed: {type(exc).__name__}: {exc}")
            self.state.set_state(SemanticState.ERROR)
        finally:
            self.stats.stop()
            self._release_controller()
            interrupts.bind(None)
            self.run_state.set_state(RunState.STOPPED)
            self._log.info(f"{self.name} finished after {self.stats.cycles} cycles")

    def _loop(self) -> None:
        cap = self.config.max_runtime_seconds
        started = time.monotonic()
        while True:
            self.check_interrupted()
            self.state.set_state(SemanticState.SEARCHING)
            self.cycle()
            self.stats.increment_cycles()
            if cap > 0 and time.monotonic() - started >= cap:
                self._log.info(f"run-duration cap of {cap:g}s reached")
                return
            self.wait_random_millis(self.config.min_cycle_delay_ms, self.config.max_cycle_delay_ms)

    def _release_controller(self) -> None:
        if self._controller.active_script is self:
            self._controller.active_script = None
        if self._controller.is_running:
            try:
                self._controller.shutdown()
            except InjectorError as exc:
                self._log.error(f"shutdown failed: {exc}")
                self._controller.abort()

    def stop(self) -> None:
        """Ask the worker to finish; safe from any thread."""
        self._flag.set()
        self.state.set_state(SemanticState.WAITING)
        self.stats.stop()

    # ── Cooperative primitives ────────────────────────────────────

    def is_interrupted(self) -> bool:
        return self._flag.is_set()

    def check_interrupted(self) -> None:
        if self._flag.is_set():
            raise Interrupted(f"{self.name} interrupted")

    def wait_millis(self, millis: float) -> None:
        """Sleep, waking (and raising :class:`Interrupted`) on ``stop()``."""
        if self._flag.wait(millis / 1000.0):
            raise Interrupted(f"{self.name} interrupted")

    def wait_random_millis(self, low: int, high: int) -> None:
        """Sleep a uniform random ``[low, high]`` ms."""
        self.wait_millis(self.rng.randint(low, high))


class ScriptRunner:
    """Runs one script on its own worker thread."""

    def __init__(self, script: BaseScript) -> None:
        self.script = script
        self._thread: threading.Thread | None = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_alive:
            return
        self._thread = threading.Thread(target=self.script.run, daemon=True, name=f"script-{self.script.name}")
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def stop(self, join_timeout: float = 5.0) -> None:
        self.script.stop()
        self.join(join_timeout)
