from __future__ import annotations

import random

import cv2
import numpy as np

from chromascape.orchestrator.healthcheck import main
from chromascape.orchestrator.state import RunState, SemanticState, StateBroadcaster
from chromascape.orchestrator.statistics import Statistics
from chromascape.tools.geometry import Point
from chromascape.utils.config import ScriptConfig
from chromascape.workflows.demo_mining import DemoMiningScript

ORIGIN = Point(400, 300)


class FakeZones:
    """Game view with one Cyan rock that disappears after *lifetime* views."""

    def __init__(self, lifetime: int) -> None:
        self.lifetime = lifetime
        self.views = 0
        self.inventory_slots = []

    def game_view(self) -> np.ndarray:
        self.views += 1
        image = np.zeros((120, 160, 3), dtype=np.uint8)
        if self.views <= self.lifetime:
            cv2.rectangle(image, (60, 40), (90, 70), (255, 255, 0), cv2.FILLED)
        return image

    def game_view_origin(self) -> Point:
        return ORIGIN


class FakeMouse:
    def __init__(self) -> None:
        self.targets: list[Point] = []
        self.clicks = 0

    def move_to(self, target: Point, speed: str = "medium") -> None:
        self.targets.append(target)

    def left_click(self) -> None:
        self.clicks += 1


class FakeController:
    def __init__(self, zones: FakeZones) -> None:
        self._zones = zones
        self._mouse = FakeMouse()
        self.active_script = None
        self.is_running = True

    def zones(self):
        return self._zones

    def mouse(self):
        return self._mouse


def _script(zones: FakeZones) -> DemoMiningScript:
    script = DemoMiningScript(
        FakeController(zones),
        state=StateBroadcaster(SemanticState.WAITING),
        stats=Statistics(),
        run_state=StateBroadcaster(RunState.STOPPED),
        config=ScriptConfig(min_cycle_delay_ms=0, max_cycle_delay_ms=0, max_runtime_seconds=0),
        rng=random.Random(1),
    )
    script.wait_millis = lambda _ms: None
    return script


def test_cycle_clicks_rock_and_waits_for_depletion() -> None:
    zones = FakeZones(lifetime=3)
    script = _script(zones)

    script.cycle()

    mouse = script.controller.mouse()
    assert mouse.clicks == 1
    target = mouse.targets[0]
    assert 460 < target.x < 490 and 340 < target.y < 370
    assert zones.views == 4
    assert script.stats.objects_detected == 1
    assert not script.is_interrupted()


def test_cycle_stops_when_no_rock_is_visible() -> None:
    script = _script(FakeZones(lifetime=0))

    script.cycle()

    assert script.is_interrupted()
    assert script.controller.mouse().clicks == 0
    assert script.state.state is SemanticState.WAITING


def test_cli_lists_registered_scripts(capsys) -> None:
    assert main(["--list"]) == 0

    assert "DemoMining" in capsys.readouterr().out.split()
