"""Shared data types for pointer movement.

Holds the pure data classes that both :mod:`chromascape.tools.motion_planner`
and :mod:`chromascape.agent.ghost_mouse` depend on, so neither layer
imports the other for these definitions.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field

from chromascape.utils.errors import InvalidArgument


class MotionModel(enum.Enum):
    BEZIER = "bezier"
    WIND = "wind"


# Bézier: pixels covered per emitted step
SPEED_SCALES: dict[str, float] = {
    "slow": 0.5,
    "medium": 1.5,
    "fast": 2.0,
    "fastest": 2.5,
}


@dataclass(frozen=True, slots=True)
class WindProfile:
    speed: float
    gravity: float
    wind: float


WIND_PROFILES: dict[str, WindProfile] = {
    "slow": WindProfile(speed=20.0, gravity=5.0, wind=1.0),
    "medium": WindProfile(speed=30.0, gravity=4.5, wind=1.5),
    "fast": WindProfile(speed=50.0, gravity=6.0, wind=2.0),
}


def speed_scale(speed: str) -> float:
    try:
        return SPEED_SCALES[speed.strip().lower()]
    except (KeyError, AttributeError):
        raise InvalidArgument(f"unknown speed profile: {speed!r}") from None


def wind_profile(speed: str) -> WindProfile:
    key = str(speed).strip().lower()
    if key == "fastest":
        key = "fast"
    try:
        return WIND_PROFILES[key]
    except KeyError:
        raise InvalidArgument(f"unknown speed profile: {speed!r}") from None


@dataclass(slots=True)
class PointerState:
    """Current virtual pointer coordinate (owned by the pointer controller)."""

    x: int = 0
    y: int = 0
    updated_at: float = field(default_factory=time.monotonic)

    def set(self, x: int, y: int) -> None:
        self.x = int(x)
        self.y = int(y)
        self.updated_at = time.monotonic()

    def snapshot(self) -> tuple[int, int]:
        return self.x, self.y
