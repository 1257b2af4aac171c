"""Frame grabber — pixels of the game canvas as BGR numpy arrays.

Two sources are available (``capture.backend`` in ``config.yaml``):

* ``window`` — :class:`GdiFrameSource`, a GDI ``BitBlt`` straight from the
  canvas device context.  Overlays painted by other processes are *not*
  part of the image.
* ``screen`` — :class:`ScreenFrameSource`, ``mss`` over the canvas bounds
  on the composited desktop.  Works anywhere but sees overlays.

All frames are top-down ``H×W×3`` ``uint8`` C-contiguous arrays matching
the canvas client size.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from chromascape.agent.window_binder import WindowBinder, screen_to_client
from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.config import CaptureConfig
from chromascape.utils.errors import EmptyImage, InvalidArgument, ZoneOutOfBounds

try:
    import mss as _mss_module
except Exception:  # pragma: no cover
    _mss_module = None  # type: ignore[assignment]

try:
    import win32con  # type: ignore[import-untyped]
    import win32gui  # type: ignore[import-untyped]
    import win32ui  # type: ignore[import-untyped]
except Exception:  # pragma: no cover
    win32con = None  # type: ignore[assignment]
    win32gui = None  # type: ignore[assignment]
    win32ui = None  # type: ignore[assignment]


class FrameSource(Protocol):
    def grab(self, handle: int, bounds: Rectangle) -> np.ndarray: ...


class GdiFrameSource:
    """BitBlt copy of a window's client DC."""

    def grab(self, handle: int, bounds: Rectangle) -> np.ndarray:
        if win32gui is None:
            raise EmptyImage("pywin32 is not available — use capture.backend=screen")
        width, height = bounds.width, bounds.height
        hwnd_dc = win32gui.GetDC(handle)
        src_dc = mem_dc = bitmap = None
        try:
            src_dc = win32ui.CreateDCFromHandle(hwnd_dc)
            mem_dc = src_dc.CreateCompatibleDC()
            bitmap = win32ui.CreateBitmap()
            bitmap.CreateCompatibleBitmap(src_dc, width, height)
            old = mem_dc.SelectObject(bitmap)
            try:
                mem_dc.BitBlt((0, 0), (width, height), src_dc, (0, 0), win32con.SRCCOPY)
                raw = bitmap.GetBitmapBits(True)
            finally:
                mem_dc.SelectObject(old)
        finally:
            if bitmap is not None:
                win32gui.DeleteObject(bitmap.GetHandle())
            if mem_dc is not None:
                mem_dc.DeleteDC()
            if src_dc is not None:
                src_dc.DeleteDC()
            win32gui.ReleaseDC(handle, hwnd_dc)

        bgra = np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4)
        return np.ascontiguousarray(bgra[:, :, :3])


class ScreenFrameSource:
    """Composited-desktop grab of the canvas bounds via ``mss``."""

    def grab(self, handle: int, bounds: Rectangle) -> np.ndarray:
        if _mss_module is None:
            raise EmptyImage("mss is not installed. Run: pip install mss")
        monitor = {"left": bounds.x, "top": bounds.y, "width": bounds.width, "height": bounds.height}
        with _mss_module.mss() as sct:
            shot = sct.grab(monitor)
        return np.ascontiguousarray(np.asarray(shot)[:, :, :3])


def build_source(config: CaptureConfig | None = None) -> FrameSource:
    backend = (config or CaptureConfig()).backend
    if backend == "window":
        return GdiFrameSource()
    if backend == "screen":
        return ScreenFrameSource()
    raise InvalidArgument(f"unknown capture backend: {backend!r}")


class FrameGrabber:
    """Captures the canvas and crops screen-space zones out of it.

    Args:
        binder: Window binder used for the canvas bounds.
        canvas_handle: Handle of the canvas child window.
        source: Pixel source; defaults per ``capture.backend``.
        viewport: Optional sink receiving every full frame (``update(frame)``).
    """

    def __init__(self, binder: WindowBinder, canvas_handle: int, source: FrameSource | None = None, viewport=None) -> None:
        self._binder = binder
        self.canvas_handle = canvas_handle
        self._source = source if source is not None else build_source()
        self._viewport = viewport

    def canvas_bounds(self) -> Rectangle:
        return self._binder.client_bounds(self.canvas_handle)

    def canvas_origin(self) -> Point:
        bounds = self.canvas_bounds()
        return Point(bounds.x, bounds.y)

    def capture(self) -> np.ndarray:
        bounds = self.canvas_bounds()
        if bounds.is_empty():
            raise EmptyImage(f"invalid canvas dimensions {bounds.width}x{bounds.height}")
        frame = self._source.grab(self.canvas_handle, bounds)
        if self._viewport is not None:
            self._viewport.update(frame)
        return frame

    def capture_zone(self, zone: Rectangle) -> np.ndarray:
        """Crop of the canvas under the screen-space *zone*, on a fresh buffer."""
        bounds = self.canvas_bounds()
        frame = self.capture()
        height, width = frame.shape[:2]
        client = screen_to_client(zone, Point(bounds.x, bounds.y))
        clip = client.intersection(Rectangle(0, 0, width, height))
        if clip.is_empty():
            raise ZoneOutOfBounds(f"zone {zone} lies entirely outside the canvas {bounds}")
        rows, cols = clip.as_slices()
        return frame[rows, cols].copy()
