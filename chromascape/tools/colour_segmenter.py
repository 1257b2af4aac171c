"""HSV colour segmentation: masks, contours and detected blobs.

Colour ranges are inclusive HSV bounds in OpenCV units (H 0–179, S/V
0–255).  Named ranges live in :data:`colour_registry`; entries are
immutable once registered.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

import cv2
import numpy as np

from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.errors import EmptyImage, InvalidArgument


@dataclass(frozen=True, slots=True)
class ColourRange:
    name: str
    hsv_min: tuple[int, int, int]
    hsv_max: tuple[int, int, int]

    def __post_init__(self) -> None:
        limits = (179, 255, 255)
        for lo, hi, top in zip(self.hsv_min, self.hsv_max, limits):
            if not (0 <= lo <= top and 0 <= hi <= top):
                raise InvalidArgument(f"{self.name}: HSV bound out of range {self.hsv_min}-{self.hsv_max}")
            if lo > hi:
                raise InvalidArgument(f"{self.name}: min above max {self.hsv_min}-{self.hsv_max}")


@dataclass(frozen=True, slots=True)
class DetectedBlob:
    id: int
    contour: np.ndarray
    bounding_box: Rectangle


class ColourRegistry:
    """Name → :class:`ColourRange`; write-once per name."""

    def __init__(self, builtins: list[ColourRange] | None = None) -> None:
        self._lock = threading.Lock()
        self._ranges: dict[str, ColourRange] = {}
        for colour in builtins or []:
            self.register(colour)

    def register(self, colour: ColourRange) -> ColourRange:
        with self._lock:
            if colour.name in self._ranges:
                raise InvalidArgument(f"colour already registered: {colour.name}")
            self._ranges[colour.name] = colour
        return colour

    def get(self, name: str) -> ColourRange:
        try:
            return self._ranges[name]
        except KeyError:
            raise InvalidArgument(f"unknown colour: {name!r}") from None

    def names(self) -> list[str]:
        return sorted(self._ranges)

    def __contains__(self, name: object) -> bool:
        return name in self._ranges


BUILTIN_COLOURS = [
    ColourRange("Red", (0, 100, 100), (10, 255, 255)),
    ColourRange("Blue", (100, 150, 50), (130, 255, 255)),
    # Object-marker highlight used by the demo script
    ColourRange("Cyan", (85, 200, 200), (95, 255, 255)),
]

colour_registry = ColourRegistry(BUILTIN_COLOURS)

# Objects from the most recent objects() call, replaced on every call
_last_objects: list[DetectedBlob] = []
_last_lock = threading.Lock()


def mask(image: np.ndarray, colour: ColourRange) -> np.ndarray:
    """Binary uint8 mask (0/255) of pixels inside *colour*.

    Single-channel input is already a mask; it is re-binarised (non-zero
    to 255) so masking a mask is idempotent.
    """
    if image is None or image.size == 0:
        raise EmptyImage("cannot mask an empty image")
    if image.ndim == 2 or image.shape[2] == 1:
        flat = image if image.ndim == 2 else image[:, :, 0]
        return np.where(flat > 0, 255, 0).astype(np.uint8)
    bgr = image if image.shape[2] == 3 else cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    hsv = cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV)
    return cv2.inRange(hsv, np.array(colour.hsv_min, np.uint8), np.array(colour.hsv_max, np.uint8))


def contours(binary_mask: np.ndarray) -> list[np.ndarray]:
    """External polyline contours of a binary mask."""
    found, _hierarchy = cv2.findContours(binary_mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    return list(found)


def bounding_box(contour: np.ndarray) -> Rectangle:
    """``(minX, minY, maxX - minX, maxY - minY)`` of the contour points."""
    pts = contour.reshape(-1, 2)
    min_x, min_y = (int(v) for v in pts.min(axis=0))
    max_x, max_y = (int(v) for v in pts.max(axis=0))
    return Rectangle(min_x, min_y, max_x - min_x, max_y - min_y)


def objects(image: np.ndarray, colour: ColourRange) -> list[DetectedBlob]:
    """Detected blobs of *colour*; also replaces :func:`last_objects`."""
    blobs = [
        DetectedBlob(i, c, bounding_box(c))
        for i, c in enumerate(contours(mask(image, colour)))
    ]
    with _last_lock:
        _last_objects.clear()
        _last_objects.extend(blobs)
    return blobs


def last_objects() -> list[DetectedBlob]:
    with _last_lock:
        return list(_last_objects)


def largest(blobs: list[DetectedBlob]) -> DetectedBlob | None:
    if not blobs:
        return None
    return max(blobs, key=lambda b: cv2.contourArea(b.contour))


def point_in_contour(point: Point, contour: np.ndarray) -> bool:
    """Strict interior test; points on the boundary are outside."""
    return cv2.pointPolygonTest(contour, (float(point.x), float(point.y)), False) > 0
