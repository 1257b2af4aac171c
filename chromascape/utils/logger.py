"""Console logger for ChromaScape.

Lines look like ``12:04:31 [Controller] > Mapping zones...``.  The module
tag is coloured per component and the level glyph per severity; colour is
dropped when stdout is not a terminal or ``CHROMA_NO_COLOR``/``NO_COLOR``
is set.

Every line is also handed, uncoloured, to an optional process-wide sink
(see :func:`set_log_sink`) so a dashboard can stream the bot's log.
"""

from __future__ import annotations

import os
import sys
import threading
import time
from typing import Callable

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"


def _fg(code: int) -> str:
    return f"\033[{code}m"


# level name: (glyph, colour)
_LEVELS: dict[str, tuple[str, str]] = {
    "info": (">", _fg(32)),
    "success": ("+", _fg(92)),
    "warn": ("!", _fg(33)),
    "error": ("X", _fg(31)),
    "status": ("", _DIM),
    "highlight": ("*", _BOLD),
}

_TAG_COLOURS: dict[str, str] = {
    "Controller": _fg(36),
    "Script": _fg(35),
    "Injector": _fg(31),
    "GhostMouse": _fg(92),
    "Keyboard": _fg(32),
    "Vision": _fg(34),
    "OCR": _fg(96),
    "Zones": _fg(33),
    "Window": _fg(93),
    "Profile": _fg(94),
}


def _colour_wanted() -> bool:
    if os.getenv("CHROMA_NO_COLOR", "").strip().lower() in {"1", "true", "yes"} or os.getenv("NO_COLOR"):
        return False
    if os.name == "nt":
        try:
            import ctypes

            # ENABLE_VIRTUAL_TERMINAL_PROCESSING on the stdout handle
            handle = ctypes.windll.kernel32.GetStdHandle(-11)  # type: ignore[attr-defined]
            return bool(ctypes.windll.kernel32.SetConsoleMode(handle, 7))  # type: ignore[attr-defined]
        except (AttributeError, OSError):
            return bool(os.getenv("WT_SESSION"))
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


_COLOUR = _colour_wanted()

_sink: Callable[[str], None] | None = None
_sink_lock = threading.Lock()


def set_log_sink(sink: Callable[[str], None] | None) -> None:
    """Install, or clear with ``None``, the log line sink."""
    global _sink
    with _sink_lock:
        _sink = sink


def _publish(line: str) -> None:
    sink = _sink
    if sink is None:
        return
    try:
        sink(line)
    except Exception as exc:  # noqa: BLE001
        sys.stderr.write(f"log sink failed: {exc}\n")


class ChromaLogger:
    """Module-tagged logger: ``ChromaLogger("Zones").info("mapped")``."""

    def __init__(self, module: str) -> None:
        self.module = module
        self._tag_colour = _TAG_COLOURS.get(module, _fg(37))

    def _log(self, level: str, message: str) -> None:
        glyph, colour = _LEVELS[level]
        stamp = time.strftime("%H:%M:%S")
        head = f"[{self.module}]"
        body = f"{glyph} {message}" if glyph else message
        plain = f"{stamp} {head} {body}"
        if _COLOUR:
            print(f"{_DIM}{stamp}{_RESET} {self._tag_colour}{_BOLD}{head}{_RESET} {colour}{body}{_RESET}")
        else:
            print(plain)
        _publish(plain)

    def info(self, message: str) -> None:
        self._log("info", message)

    def success(self, message: str) -> None:
        self._log("success", message)

    def warn(self, message: str) -> None:
        self._log("warn", message)

    def error(self, message: str) -> None:
        self._log("error", message)

    def status(self, message: str) -> None:
        """Dimmed line for routine progress."""
        self._log("status", message)

    def highlight(self, message: str) -> None:
        """Bold line for lifecycle transitions."""
        self._log("highlight", message)
