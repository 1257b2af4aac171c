from __future__ import annotations

import random

import cv2
import numpy as np
import pytest

from chromascape.agent.event_injector import RecordingChannel
from chromascape.agent.window_binder import WindowBinder
from chromascape.orchestrator.controller import Controller, ControllerState
from chromascape.orchestrator.statistics import Statistics
from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.config import InjectorConfig, OverlayConfig, ResourceConfig, WindowConfig
from chromascape.utils.errors import EmptyImage, NotRunning

CANVAS = Rectangle(100, 50, 800, 600)

# Client-space anchor positions painted into the synthetic frame
ANCHOR_AT = {
    "minimap.png": (700, 5),
    "inv.png": (560, 260),
    "chat.png": (0, 430),
}


class FakeBackend:
    def top_level_windows(self):
        return [(7, "RuneLite")]

    def child_windows(self, handle):
        return [(70, "SunAwtCanvas"), (71, "SunAwtCanvas")]

    def process_id(self, handle):
        return 4321

    def client_rect(self, handle):
        return CANVAS

    def focus(self, handle):
        pass

    def monitor_rect(self, handle):
        return Rectangle(0, 0, 1920, 1080)


class FakeSource:
    def __init__(self, frame: np.ndarray, fail: bool = False) -> None:
        self.frame = frame
        self.fail = fail

    def grab(self, handle, bounds):
        if self.fail:
            raise EmptyImage("capture failed")
        return self.frame


class FakeOverlay:
    def __init__(self) -> None:
        self.erased = 0
        self.stopped = 0

    def set_point(self, x, y):
        pass

    def erase(self):
        self.erased += 1

    def stop(self):
        self.stopped += 1


class FakeScript:
    def __init__(self) -> None:
        self.stopped = 0

    def stop(self) -> None:
        self.stopped += 1


def _resources(tmp_path) -> np.ndarray:
    rng = np.random.default_rng(11)
    frame = rng.integers(0, 256, size=(CANVAS.height, CANVAS.width, 3), dtype=np.uint8)
    ui = tmp_path / "images" / "ui"
    ui.mkdir(parents=True)
    for name, (x, y) in ANCHOR_AT.items():
        cv2.imwrite(str(ui / name), frame[y:y + 30, x:x + 30])
    cv2.imwrite(str(ui / "minimap_fixed.png"), rng.integers(0, 256, size=(30, 30, 3), dtype=np.uint8))
    return frame


def _controller(tmp_path, fail_capture: bool = False, runner=None):
    frame = _resources(tmp_path)
    channel = RecordingChannel()
    overlay = FakeOverlay()
    commands: list[list[str]] = []
    controller = Controller(
        window_config=WindowConfig(title="RuneLite", child_class="SunAwtCanvas", child_index=2),
        injector_config=InjectorConfig(
            library_dir=str(tmp_path),
            control_library="KInputCtrl64.dll",
            module_files=("KInputCtrl64.dll", "KInput64.dll"),
            cleanup_enabled=True,
            cleanup_delay_seconds=2,
        ),
        resource_config=ResourceConfig(root=tmp_path, prewarm_fonts=()),
        overlay_config=OverlayConfig(enabled=False, dot_radius=3, color="#ff1744"),
        binder=WindowBinder(WindowConfig(title="RuneLite", child_class="SunAwtCanvas", child_index=2), FakeBackend()),
        channel_factory=lambda: channel,
        frame_source=FakeSource(frame, fail=fail_capture),
        overlay_factory=lambda bounds: overlay,
        cleanup_runner=runner or commands.append,
        stats=Statistics(),
        rng=random.Random(3),
    )
    return controller, channel, overlay, commands


def test_accessors_raise_while_stopped(tmp_path) -> None:
    controller, channel, _overlay, _commands = _controller(tmp_path)

    assert controller.state is ControllerState.STOPPED
    for accessor in (controller.mouse, controller.keyboard, controller.zones, controller.injector, controller.ocr):
        with pytest.raises(NotRunning):
            accessor()
    assert channel.calls == []


def test_init_builds_session(tmp_path) -> None:
    controller, channel, _overlay, _commands = _controller(tmp_path)

    controller.init()

    assert controller.is_running
    assert channel.calls[0] == ("create", 4321)
    zones = controller.zones()
    assert not zones.is_fixed
    # Inventory anchor at client (560, 260) → screen (660, 310)
    assert zones.inventory_slots[0] == Rectangle(700, 354, 36, 32)
    assert controller.mouse().position == Point(100, 50)
    assert controller.grabber().canvas_bounds() == CANVAS


def test_clicks_are_counted(tmp_path) -> None:
    controller, channel, _overlay, _commands = _controller(tmp_path)
    controller.init()

    controller.mouse().move_to(Point(400, 300), "fastest")
    controller.mouse().left_click()

    assert controller.stats.inputs == 1
    pressed = [c for c in channel.named("mouse") if c[2] == 501]
    assert pressed[0][4:6] == (300, 250)


def test_shutdown_releases_everything(tmp_path) -> None:
    controller, channel, overlay, commands = _controller(tmp_path)
    controller.init()

    controller.shutdown()
    controller.shutdown()

    assert controller.state is ControllerState.STOPPED
    assert channel.named("delete") == [("delete", 4321)]
    assert overlay.erased == 1 and overlay.stopped == 1
    assert len(commands) == 1
    with pytest.raises(NotRunning):
        controller.mouse()


def test_cleanup_command_deletes_both_modules(tmp_path) -> None:
    controller, _channel, _overlay, commands = _controller(tmp_path)

    assert controller.kill_modules()

    command = commands[0]
    assert command[:5] == ["cmd.exe", "/c", "start", "/MIN", "cmd.exe"]
    assert command[-1].startswith("timeout /t 2 /nobreak > NUL & del /f /q ")
    assert "KInputCtrl64.dll" in command[-1]
    assert "KInput64.dll" in command[-1]


def test_cleanup_failure_is_reported(tmp_path) -> None:
    def runner(_command):
        raise OSError("cmd.exe missing")

    controller, _channel, _overlay, _commands = _controller(tmp_path, runner=runner)

    assert not controller.kill_modules()


def test_failed_init_detaches_injector(tmp_path) -> None:
    controller, channel, _overlay, _commands = _controller(tmp_path, fail_capture=True)

    with pytest.raises(EmptyImage):
        controller.init()

    assert controller.state is ControllerState.STOPPED
    assert channel.named("delete") == [("delete", 4321)]


def test_abort_does_not_touch_injector(tmp_path) -> None:
    controller, channel, overlay, commands = _controller(tmp_path)
    controller.init()

    controller.abort()

    assert controller.state is ControllerState.STOPPED
    assert channel.named("delete") == []
    assert overlay.stopped == 1
    assert commands == []


def test_pause_stops_active_script(tmp_path) -> None:
    controller, _channel, _overlay, _commands = _controller(tmp_path)
    controller.init()
    script = FakeScript()
    controller.active_script = script

    controller.pause()

    assert script.stopped == 1
    assert controller.is_running


def test_pause_without_script_shuts_down(tmp_path) -> None:
    controller, _channel, _overlay, _commands = _controller(tmp_path)
    controller.init()

    controller.pause()

    assert not controller.is_running
