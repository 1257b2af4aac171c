"""Gaussian click-point sampling inside a rectangle."""

from __future__ import annotations

import numpy as np

from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.errors import InvalidArgument

_MIN_SIDE = 5

_default_rng = np.random.default_rng()


def adaptive_tightness(side: float) -> float:
    """Smaller targets get a tighter spread so fewer samples are rejected."""
    if side >= 50:
        return 4.0
    if side >= 25:
        return 7.0
    if side >= 15:
        return 8.0
    return 9.0


def sigmas(rect: Rectangle, tightness: float | None = None) -> tuple[float, float]:
    """Per-axis standard deviation, ``side / tightness``.

    Without *tightness* each axis uses :func:`adaptive_tightness` of its own
    side, so a wide, flat target spreads far more along its long axis.
    """
    if tightness is None:
        return rect.width / adaptive_tightness(rect.width), rect.height / adaptive_tightness(rect.height)
    return rect.width / tightness, rect.height / tightness


def _center(rect: Rectangle) -> Point:
    return Point(int(rect.x + rect.width / 2.0), int(rect.y + rect.height / 2.0))


def generate_random_point(
    rect: Rectangle,
    tightness: float | None = None,
    rng: np.random.Generator | None = None,
) -> Point:
    """Sample a point inside *rect* from an axis-aligned 2-D normal.

    The mean is the rectangle centre and each axis uses
    ``sigma = side / tightness``.  Without *tightness* the adaptive table
    is applied per axis.  Rectangles below 5×5 return their centre.
    Samples outside the rectangle are redrawn.
    """
    if tightness is not None and tightness <= 0:
        raise InvalidArgument("tightness must be greater than 0")
    if rect.width < _MIN_SIDE or rect.height < _MIN_SIDE:
        return _center(rect)

    sigma_x, sigma_y = sigmas(rect, tightness)
    gen = rng or _default_rng
    mean_x = rect.x + rect.width / 2.0
    mean_y = rect.y + rect.height / 2.0
    while True:
        sx, sy = gen.normal((mean_x, mean_y), (sigma_x, sigma_y))
        point = Point(int(round(sx)), int(round(sy)))
        if rect.contains(point):
            return point
