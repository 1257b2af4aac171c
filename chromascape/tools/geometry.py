"""Integer screen geometry shared by vision and input layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Point:
    x: int
    y: int

    def translate(self, dx: int, dy: int) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def distance_to(self, other: "Point") -> float:
        return ((other.x - self.x) ** 2 + (other.y - self.y) ** 2) ** 0.5


@dataclass(frozen=True, slots=True)
class Rectangle:
    """``(x, y, width, height)``; screen coordinates unless noted otherwise."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def contains(self, point: Point) -> bool:
        """Half-open containment: ``x <= px < x + w`` and ``y <= py < y + h``."""
        return self.x <= point.x < self.right and self.y <= point.y < self.bottom

    def contains_rect(self, other: "Rectangle") -> bool:
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def center(self) -> Point:
        return Point(int(self.x + self.width / 2), int(self.y + self.height / 2))

    def translate(self, dx: int, dy: int) -> "Rectangle":
        return Rectangle(self.x + dx, self.y + dy, self.width, self.height)

    def intersection(self, other: "Rectangle") -> "Rectangle":
        """Overlap of both rectangles; width/height clamp at zero when disjoint."""
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        return Rectangle(left, top, max(0, right - left), max(0, bottom - top))

    def as_slices(self) -> tuple[slice, slice]:
        """``(rows, cols)`` slices for indexing a numpy image."""
        return slice(self.y, self.bottom), slice(self.x, self.right)

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height
