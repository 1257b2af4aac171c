"""Ghost Mouse — virtual pointer driven through the event injector.

The pointer never touches the OS cursor: it owns its own coordinate,
walks it along planner paths (Bézier or wind physics), and only tells
the target process where it is when a click or hover event is sent.

Humanising behaviour
--------------------
* **Curved paths** — see :mod:`chromascape.tools.motion_planner`.
* **Pause** — stop at 85–95 % of the way, 50–70 px off the line, then
  finish at ``medium`` speed.
* **Overshoot** — go 4–10 % past the target, then correct at ``medium``.
* **Micro-jitter** — half of all clicks are followed by a tiny drift.

Coordinates are screen coordinates; the injector receives them relative
to the canvas origin.
"""

from __future__ import annotations

import random
from typing import Callable, Protocol

from chromascape.agent.event_injector import EventInjector, MOUSE_PRESSED, MOUSE_RELEASED
from chromascape.tools.geometry import Point, Rectangle
from chromascape.tools.motion_planner import BezierPlanner, WindPlanner, precise_sleep
from chromascape.tools.mouse_protocol import MotionModel, PointerState
from chromascape.utils.errors import InvalidArgument
from chromascape.utils.interrupts import check_interrupted, interruptible_sleep
from chromascape.utils.logger import ChromaLogger


class PointerOverlay(Protocol):
    """Receives pointer snapshots for display; must not block."""

    def set_point(self, x: int, y: int) -> None: ...

    def erase(self) -> None: ...


class NullOverlay:
    def set_point(self, x: int, y: int) -> None:
        pass

    def erase(self) -> None:
        pass


class GhostMouse:
    """Pointer controller composed of planners, injector and overlay.

    Args:
        injector: Event sender for the target process.
        bounds: Canvas bounds in screen coordinates (path clamp + origin).
        overlay: Optional repaint collaborator.
        on_input: Called once per click (statistics hook).
        rng: Random source.
        step_delay_ms: Sleep after each Bézier step.
    """

    def __init__(
        self,
        injector: EventInjector,
        bounds: Rectangle,
        overlay: PointerOverlay | None = None,
        on_input: Callable[[], None] | None = None,
        rng: random.Random | None = None,
        step_delay_ms: float = 1.0,
    ) -> None:
        self._injector = injector
        self.bounds = bounds
        self._overlay = overlay or NullOverlay()
        self._on_input = on_input
        self._rng = rng or random.Random()
        self.step_delay_ms = step_delay_ms
        self.bezier = BezierPlanner(bounds, self._rng)
        self.wind = WindPlanner(self._rng, sleeper=lambda ms: precise_sleep(ms, check_interrupted))
        self.state = PointerState(bounds.x, bounds.y)
        self._log = ChromaLogger("GhostMouse")

    # ── State ─────────────────────────────────────────────────────

    @property
    def position(self) -> Point:
        return Point(self.state.x, self.state.y)

    def _client(self, point: Point) -> tuple[int, int]:
        return point.x - self.bounds.x, point.y - self.bounds.y

    def _repaint(self) -> None:
        x, y = self.state.snapshot()
        try:
            self._overlay.set_point(x - self.bounds.x, y - self.bounds.y)
        except Exception as exc:
            # Overlay is a transient collaborator; drop the frame.
            self._log.status(f"overlay repaint dropped: {exc}")

    # ── Movement ──────────────────────────────────────────────────

    def move_to(self, target: Point, speed: str = "medium", model: MotionModel = MotionModel.BEZIER) -> None:
        """Walk the pointer to *target*; a no-op when already there."""
        start = self.position
        if start == target:
            return
        if model is MotionModel.WIND:
            steps = self.wind.path(start, target, speed)
        else:
            steps = self.bezier.path(start, target, speed)
        for point in steps:
            check_interrupted()
            self.state.set(point.x, point.y)
            self._repaint()
            if model is MotionModel.BEZIER:
                interruptible_sleep(self.step_delay_ms)
        # Wind paths end on the target; this guards a timed-out stage.
        if self.position != target:
            self.state.set(target.x, target.y)
            self._repaint()

    def move_to_pause(self, target: Point, speed: str = "medium") -> None:
        """Stop short of *target* off the line, hesitate 10–20 ms, then finish."""
        if self.position == target:
            return
        direction = 1 if self._rng.random() < 0.5 else -1
        pause = self.bezier.point_along_path(
            self.position, target, 0.85, 0.95, self._rng.randrange(50, 70), direction
        )
        self.move_to(pause, speed)
        interruptible_sleep(self._rng.randrange(10, 20))
        self.move_to(target, "medium")

    def move_to_overshoot(self, target: Point, speed: str = "medium") -> None:
        """Go slightly past *target*, then correct back at ``medium``."""
        if self.position == target:
            return
        direction = 1 if self._rng.random() < 0.5 else -1
        beyond = self.bezier.point_along_path(
            self.position, target, 1.04, 1.10, self._rng.randrange(50, 70), direction
        )
        self.move_to(beyond, speed)
        self.move_to(target, "medium")

    # ── Clicks ────────────────────────────────────────────────────

    def left_click(self) -> None:
        check_interrupted()
        x, y = self._client(self.position)
        self._injector.click_left(x, y)
        self._injector.move(x, y)
        self._count_input()
        self.micro_jitter()

    def right_click(self) -> None:
        check_interrupted()
        x, y = self._client(self.position)
        self._injector.click_right(x, y)
        self._injector.move(x, y)
        self._count_input()
        self.micro_jitter()

    def middle(self, event_id: int) -> None:
        """Press (501) or release (502) the middle button in place."""
        if event_id not in (MOUSE_PRESSED, MOUSE_RELEASED):
            raise InvalidArgument(f"middle button event must be 501 or 502, got {event_id}")
        check_interrupted()
        x, y = self._client(self.position)
        self._injector.middle(x, y, event_id)

    def hover(self) -> None:
        """Announce the current position to the target (mouse-over text)."""
        check_interrupted()
        self._injector.move(*self._client(self.position))

    def scroll(self, rotation: int) -> None:
        check_interrupted()
        x, y = self._client(self.position)
        self._injector.wheel(x, y, rotation)
        self._count_input()

    def micro_jitter(self) -> None:
        """50 % chance of a small drift (x in [-1, 1], y in [-1, 3])."""
        if self._rng.random() >= 0.5:
            return
        dx = self._rng.randrange(-1, 2)
        dy = self._rng.randrange(-1, 4)
        self.state.set(self.state.x + dx, self.state.y + dy)
        self._repaint()
        check_interrupted()
        self._injector.move(*self._client(self.position))

    def _count_input(self) -> None:
        if self._on_input is not None:
            self._on_input()
