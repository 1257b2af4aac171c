"""Alpha-mask-aware template matching (``TM_SQDIFF_NORMED``).

Lower scores are better; ``0.0`` is an identical patch.  Transparent
template pixels (alpha 0) are ignored by passing the alpha channel as the
match mask.

Usage::

    matcher = TemplateMatcher(resource_root, origin_provider=grabber.canvas_origin)
    rect = matcher.match("/images/ui/inv.png", frame, threshold=0.035)
    if rect is not None:
        print(rect, matcher.last_min_score)
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

import cv2
import numpy as np

from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.errors import EmptyImage, TemplateLargerThanBase
from chromascape.utils.imaging import load_resource_image, to_bgra
from chromascape.utils.logger import ChromaLogger

OriginProvider = Callable[[], Point]


@dataclass(slots=True)
class MatchResult:
    """Raw outcome of one matching pass (client coordinates)."""

    min_score: float
    location: Point
    width: int
    height: int


class TemplateMatcher:
    """Locate 4-channel templates inside captured frames.

    Args:
        resource_root: Directory that resource paths are resolved against.
        origin_provider: Returns the canvas' screen origin; matches are
            offset by it so callers receive screen coordinates.
        debug_dir: Where annotated debug frames are written.
    """

    def __init__(
        self,
        resource_root: Path,
        origin_provider: OriginProvider | None = None,
        debug_dir: Path | None = None,
    ) -> None:
        self._root = Path(resource_root)
        self._origin = origin_provider or (lambda: Point(0, 0))
        self._debug_dir = debug_dir
        self._log = ChromaLogger("Vision")
        self._local = threading.local()

    # ── Public API ────────────────────────────────────────────────

    @property
    def last_min_score(self) -> float | None:
        """Best score of the most recent :meth:`match` on this thread."""
        return getattr(self._local, "min_score", None)

    def load_template(self, template: str | os.PathLike[str] | np.ndarray) -> np.ndarray:
        if isinstance(template, np.ndarray):
            return template
        return load_resource_image(self._root, template, cv2.IMREAD_UNCHANGED)

    def score(
        self,
        template: str | os.PathLike[str] | np.ndarray,
        base: np.ndarray,
        debug: bool = False,
    ) -> MatchResult:
        """Run the match and return the best location regardless of threshold."""
        templ = self.load_template(template)
        if templ is None or templ.size == 0:
            raise EmptyImage("template image is empty")
        if base is None or base.size == 0:
            raise EmptyImage("base image is empty")

        self._debug(debug, f"template {templ.shape[1]}x{templ.shape[0]} ch={_channels(templ)}")
        self._debug(debug, f"base {base.shape[1]}x{base.shape[0]} ch={_channels(base)}")

        templ4 = to_bgra(templ)
        base4 = to_bgra(base)
        th, tw = templ4.shape[:2]
        bh, bw = base4.shape[:2]
        if tw > bw or th > bh:
            raise TemplateLargerThanBase(
                f"template {tw}x{th} does not fit base {bw}x{bh}"
            )

        alpha = np.ascontiguousarray(templ4[:, :, 3])
        self._debug(debug, f"correlation map {bw - tw + 1}x{bh - th + 1}")
        result = cv2.matchTemplate(base4, templ4, cv2.TM_SQDIFF_NORMED, mask=alpha)
        # Flat regions divide by zero; treat them as non-matches
        result = np.nan_to_num(result, nan=1.0, posinf=1.0, neginf=1.0)
        min_val, max_val, min_loc, _max_loc = cv2.minMaxLoc(result)
        self._debug(debug, f"min={min_val:.5f} max={max_val:.5f} at {min_loc}")

        self._local.min_score = float(min_val)
        return MatchResult(float(min_val), Point(int(min_loc[0]), int(min_loc[1])), tw, th)

    def match(
        self,
        template: str | os.PathLike[str] | np.ndarray,
        base: np.ndarray,
        threshold: float,
        debug: bool = False,
    ) -> Rectangle | None:
        """Best match in screen coordinates, or ``None`` above *threshold*."""
        res = self.score(template, base, debug)
        if res.min_score > threshold:
            self._debug(debug, f"no match: {res.min_score:.5f} > {threshold}")
            return None
        origin = self._origin()
        rect = Rectangle(
            origin.x + res.location.x,
            origin.y + res.location.y,
            res.width,
            res.height,
        )
        if debug:
            self._log.status(f"match {template!r} -> {rect}")
            self._write_debug_frame(base, Rectangle(res.location.x, res.location.y, res.width, res.height))
        return rect

    def match_best(
        self,
        templates: Sequence[str | os.PathLike[str] | np.ndarray],
        base: np.ndarray,
    ) -> tuple[int, MatchResult]:
        """Compare templates head-to-head; returns ``(index, result)`` of the lowest score."""
        if not templates:
            raise EmptyImage("no templates to compare")
        scored = [self.score(t, base) for t in templates]
        best = min(range(len(scored)), key=lambda i: scored[i].min_score)
        self._local.min_score = scored[best].min_score
        return best, scored[best]

    # ── Internal ──────────────────────────────────────────────────

    def _debug(self, enabled: bool, message: str) -> None:
        if enabled:
            self._log.status(message)

    def _write_debug_frame(self, base: np.ndarray, client_rect: Rectangle) -> None:
        if self._debug_dir is None:
            return
        from chromascape.tools.visual_overlay import draw_rectangles, save_debug_frame

        annotated = draw_rectangles(base, {"match": client_rect})
        save_debug_frame(annotated, self._debug_dir, "template_match")


def _channels(image: np.ndarray) -> int:
    return 1 if image.ndim == 2 else int(image.shape[2])
