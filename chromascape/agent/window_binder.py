"""Window binder — locates the game client and its drawing canvas.

The game window is found by exact (trimmed) title; its canvas is the
*n*-th descendant window of a given class (``SunAwtCanvas`` #2 for the
RuneLite client).  Bounds are returned in absolute screen coordinates.

The Win32 calls go through a small backend object so everything above it
can be exercised headlessly with a fake.
"""

from __future__ import annotations

from typing import Any, Protocol

from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.config import WindowConfig
from chromascape.utils.errors import WindowNotFound
from chromascape.utils.logger import ChromaLogger

try:
    import win32api  # type: ignore[import-untyped]
    import win32con  # type: ignore[import-untyped]
    import win32gui  # type: ignore[import-untyped]
    import win32process  # type: ignore[import-untyped]
except Exception:  # pragma: no cover
    win32api = None  # type: ignore[assignment]
    win32con = None  # type: ignore[assignment]
    win32gui = None  # type: ignore[assignment]
    win32process = None  # type: ignore[assignment]


def client_to_screen(rect: Rectangle, origin: Point) -> Rectangle:
    return rect.translate(origin.x, origin.y)


def screen_to_client(rect: Rectangle, origin: Point) -> Rectangle:
    return rect.translate(-origin.x, -origin.y)


class WindowBackend(Protocol):
    def top_level_windows(self) -> list[tuple[int, str]]: ...

    def child_windows(self, handle: int) -> list[tuple[int, str]]: ...

    def process_id(self, handle: int) -> int: ...

    def client_rect(self, handle: int) -> Rectangle: ...

    def focus(self, handle: int) -> None: ...

    def monitor_rect(self, handle: int) -> Rectangle: ...


class Win32Backend:
    """pywin32 implementation of :class:`WindowBackend`."""

    def __init__(self) -> None:
        if win32gui is None:
            raise WindowNotFound("pywin32 is not available — window binding requires Windows")

    def top_level_windows(self) -> list[tuple[int, str]]:
        found: list[tuple[int, str]] = []

        def _enum_callback(hwnd: int, _extra: Any) -> bool:
            if win32gui.IsWindowVisible(hwnd):
                found.append((hwnd, win32gui.GetWindowText(hwnd)))
            return True

        win32gui.EnumWindows(_enum_callback, None)
        return found

    def child_windows(self, handle: int) -> list[tuple[int, str]]:
        found: list[tuple[int, str]] = []

        def _enum_callback(hwnd: int, _extra: Any) -> bool:
            found.append((hwnd, win32gui.GetClassName(hwnd)))
            return True

        try:
            win32gui.EnumChildWindows(handle, _enum_callback, None)
        except win32gui.error:
            # Raised by some pywin32 builds when the window has no children.
            return []
        return found

    def process_id(self, handle: int) -> int:
        _thread_id, pid = win32process.GetWindowThreadProcessId(handle)
        return int(pid)

    def client_rect(self, handle: int) -> Rectangle:
        left, top, right, bottom = win32gui.GetClientRect(handle)
        x, y = win32gui.ClientToScreen(handle, (left, top))
        return Rectangle(int(x), int(y), int(right - left), int(bottom - top))

    def focus(self, handle: int) -> None:
        win32gui.ShowWindow(handle, win32con.SW_RESTORE)
        win32gui.SetForegroundWindow(handle)

    def monitor_rect(self, handle: int) -> Rectangle:
        monitor = win32api.MonitorFromWindow(handle, win32con.MONITOR_DEFAULTTONEAREST)
        left, top, right, bottom = win32api.GetMonitorInfo(monitor)["Monitor"]
        return Rectangle(int(left), int(top), int(right - left), int(bottom - top))


class WindowBinder:
    """Resolves the game window, its canvas and their geometry.

    Args:
        config: Title / canvas class / canvas index.
        backend: OS backend; defaults to :class:`Win32Backend`.
    """

    def __init__(self, config: WindowConfig | None = None, backend: WindowBackend | None = None) -> None:
        self.config = config or WindowConfig()
        self._backend = backend if backend is not None else Win32Backend()
        self._log = ChromaLogger("Window")

    def find_window(self, title: str | None = None) -> int:
        """First visible top-level window whose trimmed title equals *title*."""
        wanted = (title if title is not None else self.config.title).strip()
        for handle, text in self._backend.top_level_windows():
            if text.strip() == wanted:
                return handle
        raise WindowNotFound(f"no window titled {wanted!r}")

    def find_canvas(self, handle: int) -> int:
        """The ``child_index``-th (1-based) descendant of class ``child_class``."""
        wanted = self.config.child_class
        matches = [h for h, cls in self._backend.child_windows(handle) if cls == wanted]
        index = self.config.child_index
        if index < 1 or index > len(matches):
            raise WindowNotFound(
                f"canvas #{index} of class {wanted!r} not found ({len(matches)} present)"
            )
        return matches[index - 1]

    def pid(self, handle: int) -> int:
        return self._backend.process_id(handle)

    def client_bounds(self, handle: int) -> Rectangle:
        return self._backend.client_rect(handle)

    def focus(self, handle: int) -> None:
        self._backend.focus(handle)

    def monitor_bounds(self, handle: int) -> Rectangle:
        return self._backend.monitor_rect(handle)

    def bind(self) -> tuple[int, int]:
        """Find the window and its canvas; returns ``(window, canvas)`` handles."""
        window = self.find_window()
        canvas = self.find_canvas(window)
        self._log.success(f"bound '{self.config.title}' (window {window}, canvas {canvas})")
        return window, canvas
