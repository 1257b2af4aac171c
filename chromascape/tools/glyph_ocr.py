"""Glyph OCR — bitmap-font template matching over colour masks.

Game fonts are pixel-exact, so instead of a general OCR engine each
glyph bitmap of the font is matched (``TM_CCOEFF_NORMED``) against a
colour mask of the zone.  Every hit at or above ``0.99`` is recorded,
blanked out of both the correlation map and the mask, and the search
repeats until the glyph no longer matches.  Hits are then sorted in
reading order ``(y, x)``.

Font layout on disk::

    <resources>/fonts/<FONT>/<FONT>.index   # one "<codepoint>.bmp" per line
    <resources>/fonts/<FONT>/<codepoint>.bmp

Inter-word spaces are not recovered.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import cv2
import numpy as np

from chromascape.tools.colour_segmenter import ColourRange, mask as colour_mask
from chromascape.tools.geometry import Rectangle
from chromascape.utils.errors import AssetLoadError, ZoneOutsideWindow
from chromascape.utils.imaging import load_resource_image, read_resource_bytes
from chromascape.utils.interrupts import check_interrupted, interruptible_sleep
from chromascape.utils.logger import ChromaLogger

MATCH_THRESHOLD = 0.99

# Thin or accent-only strokes that match inside other glyphs
PROBLEM_CHARS: frozenset[str] = frozenset(
    [
        "Ì", "Í", "Î", "Ï", "ì", "í", "î", "ï", "Ĺ", "Ļ", "Ľ", "Ŀ", "Ł", "ĺ", "ļ", "ľ", "ŀ", "ł",
        "|", "¦", "!", "ĵ", "ǰ", "ȷ", "ɉ", "Ĵ", "Ĩ", "Ī", "Ĭ", "Į", "İ", "Ɨ", "Ỉ", "Ị", "ĩ", "ī",
        "ĭ", "į", "ı", "ƚ", "ỉ", "ị", "ˈ", "ˌ", "ʻ", "ʼ", "ʽ", "˚", "ʾ", "ʿ", "˙", "`", "¨", "¯",
        "´", "¹", " ", "\t", "\n", "·",
    ]
)


@dataclass(frozen=True, slots=True)
class CharMatch:
    character: str
    x: int
    y: int
    width: int
    height: int


# Process-wide glyph cache keyed by (font directory, font name); written
# once per key under the lock and read lock-free afterwards
_FONT_CACHE: dict[tuple[Path, str], dict[str, np.ndarray]] = {}
_FONT_LOCK = threading.Lock()


def clear_font_cache() -> None:
    with _FONT_LOCK:
        _FONT_CACHE.clear()


def crop_rows(font: str) -> int:
    """Top rows removed from each glyph before matching."""
    return 2 if font == "Plain 12" else 1


def _zero_region(image: np.ndarray, x: int, y: int, w: int, h: int) -> None:
    x0, y0 = max(x, 0), max(y, 0)
    x1 = min(x0 + w, image.shape[1])
    y1 = min(y0 + h, image.shape[0])
    if x1 > x0 and y1 > y0:
        image[y0:y1, x0:x1] = 0


class GlyphOcr:
    """Reads text out of screen zones using bitmap fonts.

    Args:
        grabber: Frame grabber (``capture_zone`` / ``canvas_bounds``); only
            needed for the zone-based calls.
        resource_root: Directory containing ``fonts/``.
    """

    def __init__(self, grabber, resource_root: Path) -> None:
        self.grabber = grabber
        self._root = Path(resource_root)
        self._matches: list[CharMatch] = []
        self._log = ChromaLogger("OCR")

    # ── Fonts ─────────────────────────────────────────────────────

    def load_font(self, font: str) -> dict[str, np.ndarray]:
        """Glyph map for *font* (character → grayscale bitmap).

        Shared by every reader in the process that uses the same font directory.
        """
        key = (self._root.resolve(), font)
        cached = _FONT_CACHE.get(key)
        if cached is not None:
            return cached
        with _FONT_LOCK:
            cached = _FONT_CACHE.get(key)
            if cached is None:
                cached = self._read_font(font)
                _FONT_CACHE[key] = cached
                self._log.status(f"font '{font}' loaded ({len(cached)} glyphs)")
        return cached

    def _read_font(self, font: str) -> dict[str, np.ndarray]:
        base = f"fonts/{font}"
        index = read_resource_bytes(self._root, f"{base}/{font}.index").decode("utf-8")
        glyphs: dict[str, np.ndarray] = {}
        for line in index.splitlines():
            name = line.strip()
            if not name:
                continue
            try:
                code_point = int(Path(name).stem)
            except ValueError as exc:
                raise AssetLoadError(f"bad glyph entry {name!r} in font {font!r}") from exc
            image = load_resource_image(self._root, f"{base}/{name}", cv2.IMREAD_UNCHANGED)
            if image.ndim == 3:
                code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
                image = cv2.cvtColor(image, code)
            glyphs[chr(code_point)] = image
        return glyphs

    # ── Reading ───────────────────────────────────────────────────

    @property
    def matches(self) -> list[CharMatch]:
        """Matches kept from the last read with ``clear=False``."""
        return list(self._matches)

    def read_mask(self, zone_mask: np.ndarray, font: str, clear: bool = True) -> str:
        """Read text from a binary mask of a zone (zone-relative matches)."""
        glyphs = self.load_font(font)
        work = zone_mask.copy()
        crop = crop_rows(font)
        found: list[CharMatch] = []

        for char, bitmap in glyphs.items():
            if not char.strip() or char in PROBLEM_CHARS:
                continue
            glyph = bitmap[crop:, :]
            gh, gw = glyph.shape[:2]
            if gh == 0 or gw == 0 or gh > work.shape[0] or gw > work.shape[1]:
                continue

            correlation = cv2.matchTemplate(work, glyph, cv2.TM_CCOEFF_NORMED)
            correlation = np.nan_to_num(correlation, nan=0.0, posinf=0.0, neginf=0.0)
            while True:
                _min_val, max_val, _min_loc, max_loc = cv2.minMaxLoc(correlation)
                if max_val < MATCH_THRESHOLD:
                    break
                x, y = int(max_loc[0]), int(max_loc[1])
                found.append(CharMatch(char, x, y, gw, gh))
                _zero_region(correlation, x, y, gw, gh)
                _zero_region(work, x, y, gw, gh)

        found.sort(key=lambda m: (m.y, m.x))
        self._matches = [] if clear else found
        return "".join(m.character for m in found)

    def extract_text(self, zone: Rectangle, font: str, colour: ColourRange, clear: bool = True) -> str:
        """Capture *zone* (screen coordinates), mask it by *colour* and read it."""
        image = self.grabber.capture_zone(zone)
        return self.read_mask(colour_mask(image, colour), font, clear)

    def extract_text_mask(
        self,
        zone: Rectangle,
        font: str,
        expected: str,
        colour: ColourRange,
    ) -> np.ndarray | None:
        """Window-sized mask of the glyph boxes when *zone* reads *expected*.

        Returns ``None`` when the text differs.
        """
        window = self.grabber.canvas_bounds()
        rel_x, rel_y = zone.x - window.x, zone.y - window.y
        if (
            rel_x < 0
            or rel_y < 0
            or rel_x + zone.width > window.width
            or rel_y + zone.height > window.height
        ):
            raise ZoneOutsideWindow(f"zone {zone} outside window {window}")

        if self.extract_text(zone, font, colour, clear=False) != expected:
            self._matches = []
            return None

        full = np.zeros((window.height, window.width), dtype=np.uint8)
        zone_mask = np.zeros((zone.height, zone.width), dtype=np.uint8)
        for m in self._matches:
            cv2.rectangle(zone_mask, (m.x, m.y), (m.x + m.width, m.y + m.height), 255, cv2.FILLED)
        full[rel_y:rel_y + zone.height, rel_x:rel_x + zone.width] = zone_mask
        self._matches = []
        return full

    def wait_until_text_changes(
        self,
        zone: Rectangle,
        font: str,
        colour: ColourRange,
        previous: str,
        timeout_s: float,
        poll_ms: int = 300,
        waiter: Callable[[int], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> str | None:
        """Poll *zone* until its text differs from *previous*.

        Returns the new text, or ``None`` once *timeout_s* elapses.
        *waiter* receives the poll interval (a script's ``wait_millis``
        keeps the wait interruptible).  A pending interrupt raises
        :class:`Interrupted` before each poll.
        """
        wait = waiter or interruptible_sleep
        deadline = clock() + timeout_s
        while clock() < deadline:
            check_interrupted()
            text = self.extract_text(zone, font, colour)
            if text != previous:
                return text
            wait(poll_ms)
        return None
