"""cursor_overlay.py — On-screen marker for the virtual pointer.

A borderless, always-on-top, transparent tkinter window laid over the
game canvas that paints a small dot where the ghost mouse currently is.
The real OS cursor never moves, so this is the only way to *see* the
bot's pointer.

Runs in a daemon thread; ``set_point`` only stores the latest snapshot
and never blocks the caller.  The window repaints on its own timer.

Usage::

    overlay = CursorOverlay(bounds)
    overlay.start()
    overlay.set_point(120, 80)   # canvas-relative
    overlay.erase()
    overlay.stop()
"""

from __future__ import annotations

import threading

from chromascape.tools.geometry import Rectangle
from chromascape.utils.config import OverlayConfig
from chromascape.utils.logger import ChromaLogger

# Window colour keyed out as fully transparent (Windows only)
_TRANSPARENT = "#010203"
_REFRESH_MS = 16


class CursorOverlay:
    """Best-effort pointer marker over the canvas.

    Args:
        bounds: Canvas bounds in screen coordinates.
        config: Dot radius and colour.
    """

    def __init__(self, bounds: Rectangle, config: OverlayConfig | None = None) -> None:
        self.bounds = bounds
        self.config = config or OverlayConfig()
        self._point: tuple[int, int] | None = None
        self._lock = threading.Lock()
        self._running = False
        self._thread: threading.Thread | None = None
        self._root = None
        self._log = ChromaLogger("Overlay")

    # ── Public API ────────────────────────────────────────────────

    def set_point(self, x: int, y: int) -> None:
        with self._lock:
            self._point = (int(x), int(y))

    def erase(self) -> None:
        with self._lock:
            self._point = None

    @property
    def point(self) -> tuple[int, int] | None:
        with self._lock:
            return self._point

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._run_gui, daemon=True, name="CursorOverlay")
        self._thread.start()

    def stop(self) -> None:
        # The refresh timer sees the flag and destroys the window on its own thread.
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=3)
            self._thread = None

    # ── GUI thread ────────────────────────────────────────────────

    def _run_gui(self) -> None:
        try:
            import tkinter as tk
        except ImportError:
            self._log.warn("tkinter not available — cursor overlay disabled")
            self._running = False
            return

        try:
            root = tk.Tk()
        except tk.TclError as exc:
            self._log.warn(f"cursor overlay disabled: {exc}")
            self._running = False
            return

        self._root = root
        b = self.bounds
        root.overrideredirect(True)
        root.attributes("-topmost", True)
        root.geometry(f"{b.width}x{b.height}+{b.x}+{b.y}")
        root.configure(bg=_TRANSPARENT)
        try:
            root.attributes("-transparentcolor", _TRANSPARENT)
        except tk.TclError:
            root.attributes("-alpha", 0.5)

        canvas = tk.Canvas(root, width=b.width, height=b.height, bg=_TRANSPARENT, highlightthickness=0)
        canvas.pack()
        radius = self.config.dot_radius
        dot = canvas.create_oval(0, 0, 0, 0, fill=self.config.color, outline="", state="hidden")

        def _refresh() -> None:
            if not self._running:
                root.destroy()
                return
            point = self.point
            if point is None:
                canvas.itemconfigure(dot, state="hidden")
            else:
                x, y = point
                canvas.coords(dot, x - radius, y - radius, x + radius, y + radius)
                canvas.itemconfigure(dot, state="normal")
            root.after(_REFRESH_MS, _refresh)

        _refresh()
        try:
            root.mainloop()
        finally:
            self._running = False
            self._root = None
