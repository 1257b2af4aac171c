"""Motion planner — human-like pointer trajectories.

Two models are available:

* **Cubic Bézier** — two perpendicular-offset control points, an ease-out
  reparameterisation whose exponent grows with distance, integer pixels
  with consecutive duplicates removed.
* **Wind physics** — velocity and wind vectors integrated every step with
  gravity pulling toward the target, friction inside a target radius and a
  random step cap.  Optionally traversed in two stages through a random
  intermediate waypoint.

Both planners return *lazy* generators of :class:`Point`.  The Bézier
generator does no pacing; the wind generator paces itself with
:func:`precise_sleep` between steps (pass ``sleeper`` to override).
"""

from __future__ import annotations

import math
import random
import time
from typing import Callable, Iterator

from chromascape.tools.geometry import Point, Rectangle
from chromascape.tools.mouse_protocol import WindProfile, speed_scale, wind_profile

Sleeper = Callable[[float], None]

_SQRT2 = math.sqrt(2.0)
_SQRT3 = math.sqrt(3.0)
_SQRT5 = math.sqrt(5.0)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

def precise_sleep(
    millis: float,
    check: Callable[[], None] | None = None,
) -> None:
    """Hybrid sleep: park for most of the duration, spin the final millisecond.

    ``time.sleep`` alone can be ~15 ms coarse on Windows; pure spinning
    burns a core.  *check* is invoked after every wake so an interrupt
    flag is honoured at this suspension point.
    """
    end = time.perf_counter() + millis / 1000.0
    remaining = end - time.perf_counter()
    while remaining > 0.002:
        time.sleep(remaining - 0.001)
        if check is not None:
            check()
        remaining = end - time.perf_counter()
    while time.perf_counter() < end:
        pass
    if check is not None:
        check()


# ---------------------------------------------------------------------------
# Bézier model
# ---------------------------------------------------------------------------

def _offset_band(distance: int) -> tuple[int, int]:
    if distance >= 600:
        return 160, 220
    if distance >= 300:
        return 50, 80
    if distance >= 200:
        return 10, 30
    return 0, 10


def _easing_exponent(distance: int) -> float:
    if distance >= 1200:
        return 16.0
    if distance >= 1000:
        return 12.0
    if distance >= 800:
        return 10.0
    if distance >= 600:
        return 8.0
    if distance >= 400:
        return 6.0
    if distance >= 200:
        return 5.0
    return 4.0


def ease_out(t: float, exponent: float) -> float:
    """``1 - (1 - t)^k``: fast start, soft landing."""
    return 1.0 - (1.0 - t) ** exponent


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounded up (builtin ``round`` rounds half to even)."""
    return math.floor(value + 0.5)


def pixel_distance(p0: Point, p3: Point) -> int:
    return round_half_up(math.hypot(p3.x - p0.x, p3.y - p0.y))


def step_count(distance: int, speed: str) -> int:
    """Points along the path; more steps means a slower move."""
    return max(1, round_half_up(distance / speed_scale(speed)))


def _cubic(t: float, a: float, b: float, c: float, d: float) -> float:
    u = 1.0 - t
    return u * u * u * a + 3.0 * u * u * t * b + 3.0 * u * t * t * c + t * t * t * d


class BezierPlanner:
    """Cubic Bézier path generator clamped to *bounds*.

    Args:
        bounds: Screen area the control points must stay inside.
        rng: Random source (seed it in tests).
    """

    def __init__(self, bounds: Rectangle, rng: random.Random | None = None) -> None:
        self.bounds = bounds
        self._rng = rng or random.Random()

    def _clamp(self, x: float, y: float) -> Point:
        b = self.bounds
        cx = max(b.x, min(int(x), b.x + b.width - 1))
        cy = max(b.y, min(int(y), b.y + b.height - 1))
        return Point(cx, cy)

    def point_along_path(
        self,
        p0: Point,
        p3: Point,
        t_low: float,
        t_high: float,
        offset: float,
        direction: int,
    ) -> Point:
        """Point at a random ``t ∈ [t_low, t_high)`` of ``p0→p3``, pushed
        *offset* pixels along the perpendicular on side *direction* (±1).

        ``t`` above 1.0 lands beyond ``p3`` (overshoot).
        """
        dx = float(p3.x - p0.x)
        dy = float(p3.y - p0.y)
        length = math.hypot(dx, dy)
        if length == 0.0:
            return self._clamp(p0.x, p0.y)
        nx = direction * (-dy / length)
        ny = direction * (dx / length)
        t = self._rng.uniform(t_low, t_high)
        bx = p0.x + t * dx
        by = p0.y + t * dy
        return self._clamp(bx + offset * nx, by + offset * ny)

    def control_points(self, p0: Point, p3: Point) -> tuple[Point, Point]:
        distance = pixel_distance(p0, p3)
        low, high = _offset_band(distance)
        # One side for the whole arc; the first control point gets 50 px extra reach
        direction = 1 if self._rng.random() < 0.5 else -1
        offset1 = self._rng.randrange(low, high + 50)
        offset2 = self._rng.randrange(low, high)
        p1 = self.point_along_path(p0, p3, 0.2, 0.3, offset1, direction)
        p2 = self.point_along_path(p0, p3, 0.6, 0.7, offset2, direction)
        return p1, p2

    def path(self, p0: Point, p3: Point, speed: str = "medium") -> Iterator[Point]:
        """Lazily yield integer pixels from *p0* to *p3* inclusive.

        Yields nothing when both points are equal.
        """
        distance = pixel_distance(p0, p3)
        steps = step_count(distance, speed)
        if p0 == p3:
            return
        p1, p2 = self.control_points(p0, p3)
        exponent = _easing_exponent(distance)
        samples = max(2, steps)

        last: Point | None = None
        for i in range(samples):
            t = ease_out(i / (samples - 1), exponent)
            nxt = Point(
                round_half_up(_cubic(t, p0.x, p1.x, p2.x, p3.x)),
                round_half_up(_cubic(t, p0.y, p1.y, p2.y, p3.y)),
            )
            if nxt != last:
                last = nxt
                yield nxt


# ---------------------------------------------------------------------------
# Wind model
# ---------------------------------------------------------------------------

class WindPlanner:
    """WindMouse-style physics planner.

    Args:
        rng: Random source.
        sleeper: Called with a millisecond duration between steps.  Defaults
            to :func:`precise_sleep`; tests pass a no-op.
        timeout_s: Safety bound per stage.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        sleeper: Sleeper | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        self._rng = rng or random.Random()
        self._sleep = sleeper or precise_sleep
        self.timeout_s = timeout_s

    def path(self, start: Point, target: Point, speed: str = "medium") -> Iterator[Point]:
        profile = wind_profile(speed)
        if start == target:
            return
        current = start
        if start.distance_to(target) > 250 and self._rng.randrange(2) == 1:
            waypoint = self._between(target, start)
            yield from self._stage(current, waypoint, profile, self._rng.randrange(10, 25))
            self._sleep(self._rng.randrange(1, 150))
            current = waypoint
        yield from self._stage(current, target, profile, self._rng.randrange(10, 25))

    def _between(self, a: Point, b: Point) -> Point:
        def pick(lo: int, hi: int) -> int:
            if lo == hi:
                return lo
            return int(lo + self._rng.random() * (hi - lo))

        return Point(pick(a.x, b.x), pick(a.y, b.y))

    def _stage(
        self,
        start: Point,
        target: Point,
        profile: WindProfile,
        target_area: float,
    ) -> Iterator[Point]:
        rng = self._rng
        xs, ys = float(start.x), float(start.y)
        xe, ye = float(target.x), float(target.y)
        gravity = profile.gravity
        wind = profile.wind
        velo_x = velo_y = wind_x = wind_y = 0.0

        total = int(math.hypot(xe - xs, ye - ys))
        deadline = time.monotonic() + self.timeout_s

        while True:
            dist = math.hypot(xs - xe, ys - ye)
            if dist < 3 or time.monotonic() > deadline:
                break

            wind = min(wind, dist)

            d = round_half_up(total * 0.3) // 7
            d = max(5, min(20, d))
            if rng.randrange(6) == 0:
                d = 2
            max_step = min(d, round_half_up(dist)) * 1.5

            if dist >= target_area:
                wind_range = round_half_up(wind) * 2 + 1
                wind_x = wind_x / _SQRT3 + (rng.randrange(wind_range) - wind) / _SQRT5
                wind_y = wind_y / _SQRT3 + (rng.randrange(wind_range) - wind) / _SQRT5
            else:
                wind_x /= _SQRT2
                wind_y /= _SQRT2
                velo_x *= 0.64
                velo_y *= 0.64

            velo_x += wind_x + gravity * (xe - xs) / dist
            velo_y += wind_y + gravity * (ye - ys) / dist

            magnitude = math.hypot(velo_x, velo_y)
            if magnitude > max_step:
                max_step = 2.0 if max_step / 2 < 1 else max_step
                half = max(1, round_half_up(max_step) // 2)
                random_dist = max_step / 2 + rng.randrange(half)
                velo_x = velo_x / magnitude * random_dist
                velo_y = velo_y / magnitude * random_dist

            last_x, last_y = round_half_up(xs), round_half_up(ys)
            xs += velo_x
            ys += velo_y
            nx, ny = round_half_up(xs), round_half_up(ys)
            if nx != last_x or ny != last_y:
                yield Point(nx, ny)

            wait = rng.randrange(max(1, round_half_up(100.0 / profile.speed))) * 12
            wait = max(wait, 10)
            self._sleep(round_half_up(wait * 0.9))

        if round_half_up(xs) != target.x or round_half_up(ys) != target.y:
            yield target
