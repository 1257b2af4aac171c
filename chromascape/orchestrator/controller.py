"""Controller — owns every stateful component of a bot session.

State machine::

    STOPPED ──init()──▶ RUNNING ──shutdown()──▶ STOPPED
                           └──────abort()──────▶ STOPPED

``init`` prewarms the OCR fonts, binds the game window, attaches the
event injector to the client's process, builds the ghost mouse, virtual
keyboard and zone map, and primes the game view.  ``shutdown`` undoes
it and schedules deletion of the injection modules.  Accessors raise
:class:`NotRunning` while STOPPED.
"""

from __future__ import annotations

import enum
import os
import random
import subprocess
from pathlib import Path
from typing import Any, Callable

from chromascape.agent.cursor_overlay import CursorOverlay
from chromascape.agent.event_injector import EventInjector, InjectorChannel, build_channel
from chromascape.agent.frame_grabber import FrameGrabber, FrameSource
from chromascape.agent.ghost_mouse import GhostMouse, NullOverlay
from chromascape.agent.keyboard_input import VirtualKeyboard
from chromascape.agent.window_binder import WindowBinder
from chromascape.orchestrator.statistics import Statistics, stats as default_stats
from chromascape.orchestrator.viewport import NullViewport
from chromascape.tools.compass import CompassReader
from chromascape.tools.geometry import Rectangle
from chromascape.tools.glyph_ocr import GlyphOcr
from chromascape.tools.template_matcher import TemplateMatcher
from chromascape.tools.zone_mapper import ZoneMapper
from chromascape.utils.config import InjectorConfig, OverlayConfig, ResourceConfig, WindowConfig
from chromascape.utils.errors import AssetLoadError, NotRunning
from chromascape.utils.logger import ChromaLogger


class ControllerState(enum.Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class Controller:
    """Bot session lifecycle.

    Every collaborator can be injected; the defaults talk to the real
    desktop.  ``dry_run`` swaps the native injector for a recording one.
    """

    def __init__(
        self,
        window_config: WindowConfig | None = None,
        injector_config: InjectorConfig | None = None,
        resource_config: ResourceConfig | None = None,
        overlay_config: OverlayConfig | None = None,
        binder: WindowBinder | None = None,
        channel_factory: Callable[[], InjectorChannel] | None = None,
        frame_source: FrameSource | None = None,
        overlay_factory: Callable[[Rectangle], Any] | None = None,
        cleanup_runner: Callable[[list[str]], Any] | None = None,
        stats: Statistics | None = None,
        viewport=None,
        dry_run: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self.window_config = window_config or WindowConfig()
        self.injector_config = injector_config or InjectorConfig()
        self.resource_config = resource_config or ResourceConfig()
        self.overlay_config = overlay_config or OverlayConfig()
        self.stats = stats or default_stats
        self.dry_run = dry_run
        self.active_script = None

        self._binder = binder
        self._channel_factory = channel_factory or (lambda: build_channel(self.injector_config, dry_run))
        self._frame_source = frame_source
        self._overlay_factory = overlay_factory or self._default_overlay
        self._cleanup_runner = cleanup_runner
        self._viewport = viewport if viewport is not None else NullViewport()
        self._rng = rng or random.Random()

        self._state = ControllerState.STOPPED
        self._ocr = GlyphOcr(None, self.resource_config.root)
        self._injector: EventInjector | None = None
        self._grabber: FrameGrabber | None = None
        self._overlay: Any = None
        self._mouse: GhostMouse | None = None
        self._keyboard: VirtualKeyboard | None = None
        self._matcher: TemplateMatcher | None = None
        self._zones: ZoneMapper | None = None
        self._compass: CompassReader | None = None
        self._log = ChromaLogger("Controller")

    # ── State ─────────────────────────────────────────────────────

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ControllerState.RUNNING

    # ── Lifecycle ─────────────────────────────────────────────────

    def init(self) -> None:
        if self.is_running:
            return
        self._log.info("Setting up font masks...")
        for font in self.resource_config.prewarm_fonts:
            try:
                self._ocr.load_font(font)
            except AssetLoadError as exc:
                self._log.error(f"failed to pre-load font '{font}': {exc}")

        self._log.info("Binding game window...")
        binder = self._binder or WindowBinder(self.window_config)
        self._binder = binder
        window, canvas = binder.bind()
        pid = binder.pid(window)

        self._log.info(f"Attaching input injector to pid {pid}...")
        self._injector = EventInjector(pid, self._channel_factory(), self._rng)
        try:
            self._build_components(binder, canvas)
        except Exception:
            self._close_overlay()
            self._injector.destroy()
            self._injector = None
            raise

        self._state = ControllerState.RUNNING
        self._log.success(f"Controller state: {self._state.value}")

    def _build_components(self, binder: WindowBinder, canvas: int) -> None:
        grabber = FrameGrabber(binder, canvas, self._frame_source, self._viewport)
        bounds = grabber.canvas_bounds()

        self._log.info("Initialising mouse and keyboard...")
        self._overlay = self._overlay_factory(bounds)
        self._mouse = GhostMouse(
            self._injector, bounds, self._overlay,
            on_input=self.stats.increment_inputs, rng=self._rng,
        )
        self._keyboard = VirtualKeyboard(self._injector, self._rng)

        self._log.info("Mapping zones...")
        self._matcher = TemplateMatcher(self.resource_config.root, origin_provider=grabber.canvas_origin)
        self._zones = ZoneMapper(grabber, self._matcher)
        self._zones.map()
        # Prime the game view now rather than on the first cycle.
        self._zones.game_view()

        self._grabber = grabber
        self._ocr.grabber = grabber
        self._compass = None

    def _default_overlay(self, bounds: Rectangle):
        if not self.overlay_config.enabled or self.dry_run:
            return NullOverlay()
        overlay = CursorOverlay(bounds, self.overlay_config)
        overlay.start()
        return overlay

    def shutdown(self) -> None:
        """Release the session; the injector is destroyed exactly once."""
        if not self.is_running:
            return
        self._log.info("Shutting down...")
        self._close_overlay()
        try:
            if self._injector is not None:
                self._injector.destroy()
        finally:
            self._injector = None
            if not self.kill_modules():
                self._log.warn("injection module cleanup was not scheduled")
            self._state = ControllerState.STOPPED
            self._log.info(f"Controller state: {self._state.value}")

    def abort(self) -> None:
        """Force STOPPED after an injector failure, without touching the injector."""
        self._close_overlay()
        self._injector = None
        self._state = ControllerState.STOPPED
        self._log.warn("Controller aborted")

    def pause(self) -> None:
        """Hotkey chord: stop the active script (which then shuts us down)."""
        script = self.active_script
        if script is not None:
            self._log.highlight("pause requested — stopping script")
            script.stop()
        elif self.is_running:
            self.shutdown()

    def _close_overlay(self) -> None:
        overlay, self._overlay = self._overlay, None
        if overlay is None:
            return
        overlay.erase()
        stop = getattr(overlay, "stop", None)
        if stop is not None:
            stop()

    def kill_modules(self) -> bool:
        """Schedule deletion of the injection DLLs after a short delay.

        The library is still mapped in the game process for a moment after
        ``destroy``, so a detached ``cmd`` job waits before deleting it.
        """
        cfg = self.injector_config
        if not cfg.cleanup_enabled or self.dry_run:
            return True
        runner = self._cleanup_runner
        if runner is None:
            if os.name != "nt":
                self._log.status("module cleanup skipped (not Windows)")
                return True
            runner = subprocess.Popen
        files = " ".join(f'"{Path(p).resolve()}"' for p in cfg.module_paths())
        command = f"timeout /t {cfg.cleanup_delay_seconds} /nobreak > NUL & del /f /q {files}"
        try:
            runner(["cmd.exe", "/c", "start", "/MIN", "cmd.exe", "/c", command])
        except OSError as exc:
            self._log.error(f"failed to schedule module cleanup: {exc}")
            return False
        self._log.info(f"Scheduled module cleanup in {cfg.cleanup_delay_seconds}s")
        return True

    # ── Accessors ─────────────────────────────────────────────────

    def _require(self, component: str, value):
        if not self.is_running or value is None:
            self._log.info(f"{component} accessed while bot is not running")
            raise NotRunning(f"{component} accessed while bot is not running")
        return value

    def mouse(self) -> GhostMouse:
        return self._require("GhostMouse", self._mouse)

    def keyboard(self) -> VirtualKeyboard:
        return self._require("VirtualKeyboard", self._keyboard)

    def zones(self) -> ZoneMapper:
        return self._require("ZoneMapper", self._zones)

    def grabber(self) -> FrameGrabber:
        return self._require("FrameGrabber", self._grabber)

    def matcher(self) -> TemplateMatcher:
        return self._require("TemplateMatcher", self._matcher)

    def injector(self) -> EventInjector:
        return self._require("EventInjector", self._injector)

    def ocr(self) -> GlyphOcr:
        self._require("GlyphOcr", self._grabber)
        return self._ocr

    def compass(self) -> CompassReader:
        """Compass reader for the current client layout, loaded on first use."""
        zones = self.zones()
        if self._compass is None:
            self._compass = CompassReader.load(self.resource_config.root, zones.is_fixed)
        return self._compass
