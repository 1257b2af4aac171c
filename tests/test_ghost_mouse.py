from __future__ import annotations

import random

import pytest

from chromascape.agent.event_injector import MOUSE_ENTERED, MOUSE_MOVED, MOUSE_PRESSED, EventInjector, RecordingChannel
from chromascape.agent.ghost_mouse import GhostMouse
from chromascape.tools.geometry import Point, Rectangle
from chromascape.tools.mouse_protocol import MotionModel
from chromascape.utils import interrupts
from chromascape.utils.errors import Interrupted, InvalidArgument
from chromascape.utils.interrupts import InterruptFlag

CANVAS = Rectangle(200, 100, 800, 600)


class _Overlay:
    def __init__(self) -> None:
        self.points: list[tuple[int, int]] = []

    def set_point(self, x: int, y: int) -> None:
        self.points.append((x, y))

    def erase(self) -> None:
        self.points.clear()


def _mouse(seed: int = 0, overlay=None, on_input=None) -> tuple[GhostMouse, RecordingChannel]:
    channel = RecordingChannel()
    injector = EventInjector(1, channel, random.Random(seed))
    mouse = GhostMouse(injector, CANVAS, overlay, on_input=on_input, rng=random.Random(seed), step_delay_ms=0)
    return mouse, channel


def test_pointer_starts_at_canvas_origin() -> None:
    mouse, _channel = _mouse()

    assert mouse.position == Point(200, 100)


@pytest.mark.parametrize("speed", ["slow", "medium", "fast", "fastest"])
def test_move_to_lands_exactly_on_target(speed: str) -> None:
    mouse, channel = _mouse(seed=5)

    mouse.move_to(Point(640, 420), speed)

    assert mouse.position == Point(640, 420)
    # Moves are local; nothing reaches the target process until a click
    assert channel.named("mouse") == []


def test_wind_move_lands_on_target() -> None:
    mouse, _channel = _mouse(seed=2)
    mouse.wind._sleep = lambda _ms: None

    mouse.move_to(Point(900, 650), "fast", MotionModel.WIND)

    assert mouse.position == Point(900, 650)


def test_move_to_current_position_is_noop() -> None:
    overlay = _Overlay()
    mouse, channel = _mouse(overlay=overlay)
    mouse.move_to(Point(300, 300))
    painted = len(overlay.points)

    mouse.move_to(Point(300, 300))

    assert len(overlay.points) == painted
    assert channel.named("mouse") == []


def test_overlay_receives_client_coordinates() -> None:
    overlay = _Overlay()
    mouse, _channel = _mouse(overlay=overlay)

    mouse.move_to(Point(260, 180))

    assert overlay.points[-1] == (60, 80)


def test_left_click_is_sent_in_client_coordinates() -> None:
    inputs: list[int] = []
    mouse, channel = _mouse(seed=1, on_input=lambda: inputs.append(1))
    mouse.move_to(Point(450, 300))

    mouse.left_click()

    pressed = [c for c in channel.named("mouse") if c[2] == MOUSE_PRESSED]
    assert pressed[0][4:6] == (250, 200)
    assert any(c[2] == MOUSE_MOVED for c in channel.named("mouse"))
    assert inputs == [1]


def test_micro_jitter_stays_within_range() -> None:
    for seed in range(30):
        mouse, _channel = _mouse(seed=seed)
        mouse.move_to(Point(500, 400))

        mouse.micro_jitter()

        dx, dy = mouse.position.x - 500, mouse.position.y - 400
        assert -1 <= dx <= 1
        assert -1 <= dy <= 3


def test_pause_and_overshoot_finish_on_target() -> None:
    mouse, _channel = _mouse(seed=8)

    mouse.move_to_pause(Point(700, 500), "fast")
    assert mouse.position == Point(700, 500)

    mouse.move_to_overshoot(Point(300, 200), "fast")
    assert mouse.position == Point(300, 200)


def test_middle_rejects_other_event_ids() -> None:
    mouse, _channel = _mouse()

    with pytest.raises(InvalidArgument):
        mouse.middle(MOUSE_MOVED)


def test_scroll_counts_as_input() -> None:
    inputs: list[int] = []
    mouse, channel = _mouse(on_input=lambda: inputs.append(1))

    mouse.scroll(-2)

    assert channel.named("wheel")[0][-1] == -2
    assert inputs == [1]


def test_interrupt_stops_movement() -> None:
    mouse, _channel = _mouse()
    flag = InterruptFlag()
    flag.set()
    interrupts.bind(flag)
    try:
        with pytest.raises(Interrupted):
            mouse.move_to(Point(800, 600))
    finally:
        interrupts.bind(None)

    assert mouse.position == Point(200, 100)


def test_hover_announces_position_without_clicking() -> None:
    inputs: list[int] = []
    mouse, channel = _mouse(seed=4, on_input=lambda: inputs.append(1))
    mouse.move_to(Point(300, 180), "fastest")

    mouse.hover()

    events = channel.named("mouse")
    assert [c[2] for c in events] == [MOUSE_ENTERED, MOUSE_MOVED]
    assert events[-1][4:6] == (100, 80)
    assert inputs == []
