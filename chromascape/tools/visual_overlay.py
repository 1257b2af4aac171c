"""
ChromaScape — Visual Overlay

Draws zone rectangles, contours and labels onto captured frames for
visual validation of the vision pipeline, plus the colour-mask preview
used when tuning a colour range.

Standalone use::

    python -m chromascape.tools.visual_overlay --image frame.png --colour Red --save out.png
"""

from __future__ import annotations

import argparse
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import cv2
import numpy as np

from chromascape.tools.geometry import Rectangle


@dataclass(slots=True)
class OverlayStyle:
    font_scale: float = 0.4
    line_thickness: int = 1
    alpha: float = 0.25
    show_labels: bool = True


GROUP_COLORS: dict[str, tuple[int, int, int]] = {
    "minimap": (0, 255, 0),       # green
    "ctrl_panel": (255, 200, 0),  # cyan/gold
    "chat": (0, 200, 255),        # yellow-ish
    "inventory": (200, 50, 200),  # purple
    "grid": (255, 100, 50),       # orange
    "match": (0, 0, 255),         # red
    "contour": (0, 255, 255),     # yellow
}


def draw_rectangles(
    frame: np.ndarray,
    rects: Mapping[str, Rectangle],
    color: tuple[int, int, int] | None = None,
    origin: tuple[int, int] = (0, 0),
    style: OverlayStyle | None = None,
) -> np.ndarray:
    """Return a copy of *frame* with labelled rectangles.

    *origin* is subtracted from every rectangle so screen-space zones can
    be drawn onto a client-space capture.
    """
    style = style or OverlayStyle()
    out = frame.copy()
    ox, oy = origin
    for name, rect in rects.items():
        c = color or GROUP_COLORS.get(name, GROUP_COLORS["match"])
        x1, y1 = rect.x - ox, rect.y - oy
        x2, y2 = x1 + rect.width - 1, y1 + rect.height - 1
        cv2.rectangle(out, (x1, y1), (x2, y2), c, style.line_thickness)
        if style.show_labels:
            cv2.putText(out, name, (x1, max(y1 - 2, 8)),
                        cv2.FONT_HERSHEY_SIMPLEX, style.font_scale, c, 1, cv2.LINE_AA)
    return out


def draw_contours(
    frame: np.ndarray,
    contours: Iterable[np.ndarray],
    color: tuple[int, int, int] = GROUP_COLORS["contour"],
    style: OverlayStyle | None = None,
) -> np.ndarray:
    style = style or OverlayStyle()
    out = frame.copy()
    cv2.drawContours(out, list(contours), -1, color, style.line_thickness)
    return out


def preview_mask(frame: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Keep only the masked pixels of *frame* (the colour-picker preview)."""
    return cv2.bitwise_and(frame, frame, mask=mask)


def draw_zone_map(frame: np.ndarray, zone_map, origin: tuple[int, int] = (0, 0)) -> np.ndarray:
    """Draw every rectangle of a :class:`~chromascape.tools.zone_mapper.ZoneMap`."""
    out = draw_rectangles(frame, zone_map.minimap, GROUP_COLORS["minimap"], origin)
    out = draw_rectangles(out, zone_map.ctrl_panel, GROUP_COLORS["ctrl_panel"], origin)
    out = draw_rectangles(out, zone_map.chat_tabs, GROUP_COLORS["chat"], origin)
    slots = {str(i): r for i, r in enumerate(zone_map.inventory_slots)}
    out = draw_rectangles(out, slots, GROUP_COLORS["inventory"], origin)
    out = draw_rectangles(out, zone_map.grid_info, GROUP_COLORS["grid"], origin)
    return out


def save_debug_frame(frame: np.ndarray, directory: Path, prefix: str) -> Path:
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{prefix}_{int(time.time() * 1000)}.png"
    cv2.imwrite(str(path), frame)
    return path


def main() -> int:
    parser = argparse.ArgumentParser(description="ChromaScape visual overlay")
    parser.add_argument("--image", required=True, help="frame to annotate")
    parser.add_argument("--colour", default="", help="registered colour name to preview")
    parser.add_argument("--save", default="", help="output path (default: show window)")
    args = parser.parse_args()

    frame = cv2.imread(args.image, cv2.IMREAD_COLOR)
    if frame is None:
        print(f"cannot read {args.image}")
        return 1

    out = frame
    if args.colour:
        from chromascape.tools.colour_segmenter import colour_registry, mask, objects

        rng = colour_registry.get(args.colour)
        out = preview_mask(frame, mask(frame, rng))
        out = draw_contours(out, [blob.contour for blob in objects(frame, rng)])

    if args.save:
        cv2.imwrite(args.save, out)
        print(f"saved {args.save}")
    else:
        cv2.imshow("ChromaScape overlay", out)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
