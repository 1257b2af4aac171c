from __future__ import annotations

import cv2
import numpy as np
import pytest

from chromascape.tools.colour_segmenter import ColourRange
from chromascape.tools.geometry import Rectangle
from chromascape.tools.glyph_ocr import GlyphOcr, clear_font_cache, crop_rows
from chromascape.utils import interrupts
from chromascape.utils.errors import AssetLoadError, Interrupted, ZoneOutsideWindow
from chromascape.utils.interrupts import InterruptFlag

FONT = "Plain 12"

# 9 rows; the first two are cropped before matching
GLYPHS = {
    "G": [
        "........",
        "........",
        "..####..",
        ".#....#.",
        ".#......",
        ".#..###.",
        ".#....#.",
        ".#....#.",
        "..####..",
    ],
    "O": [
        "........",
        "........",
        "..####..",
        ".#....#.",
        ".#....#.",
        ".#....#.",
        ".#....#.",
        ".#....#.",
        "..####..",
    ],
}


def _bitmap(rows: list[str]) -> np.ndarray:
    return np.array([[255 if c == "#" else 0 for c in row] for row in rows], dtype=np.uint8)


def _write_font(root, glyphs=GLYPHS) -> None:
    folder = root / "fonts" / FONT
    folder.mkdir(parents=True)
    names = []
    for char, rows in glyphs.items():
        name = f"{ord(char)}.bmp"
        cv2.imwrite(str(folder / name), _bitmap(rows))
        names.append(name)
    (folder / f"{FONT}.index").write_text("\n".join(names) + "\n", encoding="utf-8")


def _paint(text: str, height: int = 20, width: int = 60) -> np.ndarray:
    mask = np.zeros((height, width), dtype=np.uint8)
    x = 4
    for char in text:
        glyph = _bitmap(GLYPHS[char])
        mask[3:3 + glyph.shape[0], x:x + glyph.shape[1]] = glyph
        x += glyph.shape[1] + 2
    return mask


class _Grabber:
    def __init__(self, frame: np.ndarray, bounds: Rectangle) -> None:
        self.frame = frame
        self.bounds = bounds

    def canvas_bounds(self) -> Rectangle:
        return self.bounds

    def capture_zone(self, zone: Rectangle) -> np.ndarray:
        x, y = zone.x - self.bounds.x, zone.y - self.bounds.y
        return self.frame[y:y + zone.height, x:x + zone.width].copy()


def test_reads_painted_word(tmp_path) -> None:
    _write_font(tmp_path)
    ocr = GlyphOcr(None, tmp_path)

    assert ocr.read_mask(_paint("GO"), FONT) == "GO"
    assert ocr.read_mask(_paint("OGO"), FONT) == "OGO"


def test_empty_mask_reads_nothing(tmp_path) -> None:
    _write_font(tmp_path)
    ocr = GlyphOcr(None, tmp_path)

    assert ocr.read_mask(np.zeros((20, 60), dtype=np.uint8), FONT) == ""


def test_font_is_cached(tmp_path) -> None:
    _write_font(tmp_path)
    ocr = GlyphOcr(None, tmp_path)

    first = ocr.load_font(FONT)
    assert set(first) == {"G", "O"}
    assert ocr.load_font(FONT) is first


def test_font_cache_is_shared_between_readers(tmp_path) -> None:
    _write_font(tmp_path)
    first = GlyphOcr(None, tmp_path).load_font(FONT)

    assert GlyphOcr(None, tmp_path).load_font(FONT) is first

    clear_font_cache()
    assert GlyphOcr(None, tmp_path).load_font(FONT) is not first


def test_missing_font_raises(tmp_path) -> None:
    with pytest.raises(AssetLoadError):
        GlyphOcr(None, tmp_path).load_font("Bold 12")


def test_crop_rows_per_font() -> None:
    assert crop_rows("Plain 12") == 2
    assert crop_rows("Plain 11") == 1
    assert crop_rows("Bold 12") == 1


def test_extract_text_mask_covers_glyph_boxes(tmp_path) -> None:
    _write_font(tmp_path)
    bounds = Rectangle(100, 50, 80, 40)
    frame = np.zeros((40, 80, 3), dtype=np.uint8)
    # White text, masked with a near-white colour range
    frame[10:30, 10:70][_paint("GO") > 0] = (255, 255, 255)
    ocr = GlyphOcr(_Grabber(frame, bounds), tmp_path)

    white = ColourRange("TestWhite", (0, 0, 200), (179, 30, 255))
    zone = Rectangle(110, 60, 60, 20)

    full = ocr.extract_text_mask(zone, FONT, "GO", white)

    assert full is not None
    assert full.shape == (40, 80)
    assert full[:, :10].max() == 0
    assert full[10:30, 10:70].max() == 255
    assert ocr.extract_text_mask(zone, FONT, "OG", white) is None


def test_extract_text_mask_rejects_zone_outside_window(tmp_path) -> None:
    _write_font(tmp_path)
    ocr = GlyphOcr(_Grabber(np.zeros((40, 80, 3), np.uint8), Rectangle(100, 50, 80, 40)), tmp_path)

    with pytest.raises(ZoneOutsideWindow):
        ocr.extract_text_mask(Rectangle(90, 60, 30, 10), FONT, "GO", ColourRange("W", (0, 0, 0), (1, 1, 1)))


# ── Waiting for text ──────────────────────────────────────────────

WHITE = ColourRange("TestWhite", (0, 0, 200), (179, 30, 255))
BOUNDS = Rectangle(100, 50, 80, 40)
ZONE = Rectangle(110, 60, 60, 20)


def _text_frame(text: str) -> np.ndarray:
    frame = np.zeros((40, 80, 3), dtype=np.uint8)
    frame[10:30, 10:70][_paint(text) > 0] = (255, 255, 255)
    return frame


class _ChangingGrabber(_Grabber):
    """Shows each frame in turn, then keeps showing the last one."""

    def __init__(self, texts: list[str]) -> None:
        super().__init__(_text_frame(texts[0]), BOUNDS)
        self.frames = [_text_frame(t) for t in texts]
        self.captures = 0

    def capture_zone(self, zone: Rectangle) -> np.ndarray:
        self.frame = self.frames[min(self.captures, len(self.frames) - 1)]
        self.captures += 1
        return super().capture_zone(zone)


def test_wait_until_text_changes_returns_new_text(tmp_path) -> None:
    _write_font(tmp_path)
    grabber = _ChangingGrabber(["GO", "GO", "GO", "OG"])
    waits: list[int] = []

    text = GlyphOcr(grabber, tmp_path).wait_until_text_changes(
        ZONE, FONT, WHITE, "GO", timeout_s=10, poll_ms=250, waiter=waits.append,
    )

    assert text == "OG"
    assert waits == [250, 250, 250]
    assert grabber.captures == 4


def test_wait_until_text_changes_times_out(tmp_path) -> None:
    _write_font(tmp_path)
    grabber = _ChangingGrabber(["GO"])
    now = {"t": 0.0}

    def waiter(ms: int) -> None:
        now["t"] += ms / 1000.0

    text = GlyphOcr(grabber, tmp_path).wait_until_text_changes(
        ZONE, FONT, WHITE, "GO", timeout_s=1.0, poll_ms=300, waiter=waiter, clock=lambda: now["t"],
    )

    assert text is None
    assert now["t"] >= 1.0
    assert grabber.captures == 4


def test_wait_until_text_changes_stops_between_polls(tmp_path) -> None:
    _write_font(tmp_path)
    grabber = _ChangingGrabber(["GO"])
    flag = InterruptFlag()
    interrupts.bind(flag)
    try:
        with pytest.raises(Interrupted):
            GlyphOcr(grabber, tmp_path).wait_until_text_changes(
                ZONE, FONT, WHITE, "GO", timeout_s=10, waiter=lambda _ms: flag.set(),
            )
    finally:
        interrupts.bind(None)

    assert grabber.captures == 1
