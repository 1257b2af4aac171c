"""Zone mapper — named UI rectangles derived from four anchor sprites.

On :meth:`ZoneMapper.map` the minimap, inventory and chat anchors are
located by template matching (plus the fixed-mode minimap, used to tell
the two client layouts apart).  Every sub-zone is a literal offset from
its anchor; this module is the single source of truth for the layout.

All rectangles are screen coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from chromascape.tools.geometry import Point, Rectangle
from chromascape.utils.errors import ZoneOutOfBounds
from chromascape.utils.logger import ChromaLogger

# (resource path, max min-score)
ANCHORS: dict[str, tuple[str, float]] = {
    "minimap": ("images/ui/minimap.png", 0.02),
    "inventory": ("images/ui/inv.png", 0.035),
    "chat": ("images/ui/chat.png", 0.032),
    "minimap_fixed": ("images/ui/minimap_fixed.png", 0.018),
}

# name: (dx, dy, w, h) from the minimap anchor
_MINIMAP_RESIZABLE = {
    "specOrb": (62, 143, 19, 19),
    "specText": (36, 151, 19, 12),
    "runOrb": (40, 118, 18, 20),
    "runText": (14, 126, 19, 12),
    "prayerOrb": (30, 86, 19, 19),
    "prayerText": (4, 94, 19, 12),
    "hpOrb": (30, 52, 19, 19),
    "hpText": (4, 60, 19, 12),
    "compass": (39, 8, 24, 24),
    "compassSimilarity": (38, 7, 26, 26),
}

_MINIMAP_FIXED = {
    "specOrb": (62, 137, 18, 20),
    "specText": (36, 146, 19, 12),
    "runOrb": (40, 112, 18, 20),
    "runText": (14, 121, 19, 12),
    "prayerOrb": (29, 80, 18, 20),
    "prayerText": (4, 89, 19, 12),
    "hpOrb": (29, 46, 18, 20),
    "hpText": (4, 55, 19, 12),
    "compass": (32, 7, 23, 25),
    "compassSimilarity": (31, 6, 25, 27),
}

_CTRL_PANEL = {
    "combatTab": (7, 6, 26, 24),
    "skillsTab": (41, 2, 26, 28),
    "summaryTab": (74, 2, 26, 28),
    "inventoryTab": (107, 2, 26, 28),
    "equipmentTab": (140, 2, 26, 28),
    "prayerTab": (173, 2, 26, 28),
    "spellbookTab": (206, 6, 27, 24),
    "channelTab": (7, 300, 28, 25),
    "friendsTab": (41, 300, 26, 30),
    "accountTab": (74, 300, 26, 30),
    "logoutTab": (107, 300, 26, 30),
    "settingsTab": (140, 300, 26, 30),
    "emotesTab": (173, 300, 26, 30),
    "musicTab": (206, 300, 27, 25),
    "inventoryPanel": (28, 35, 183, 261),
}

CHAT_TAB_NAMES = ("All", "Game", "Public", "Private", "Channel", "Clan", "Group")

SLOT_WIDTH = 36
SLOT_HEIGHT = 32
SLOT_GAP_X = 6
SLOT_GAP_Y = 4
SLOT_ROWS = 7
SLOT_COLUMNS = 4

# Relative to the canvas origin
_GRID_INFO = {
    "Tile": (10, 34, 130, 14),
    "ChunkID": (10, 48, 130, 14),
    "RegionID": (10, 62, 130, 14),
}
MOUSE_OVER = (4, 4, 407, 26)
FIXED_GAME_VIEW = (4, 4, 511, 333)


def _offsets(anchor: Rectangle, table: Mapping[str, tuple[int, int, int, int]]) -> dict[str, Rectangle]:
    return {
        name: Rectangle(anchor.x + dx, anchor.y + dy, w, h)
        for name, (dx, dy, w, h) in table.items()
    }


def map_minimap(anchor: Rectangle, fixed: bool = False) -> dict[str, Rectangle]:
    return _offsets(anchor, _MINIMAP_FIXED if fixed else _MINIMAP_RESIZABLE)


def map_ctrl_panel(anchor: Rectangle) -> dict[str, Rectangle]:
    return _offsets(anchor, _CTRL_PANEL)


def map_chat(anchor: Rectangle) -> dict[str, Rectangle]:
    tabs: dict[str, Rectangle] = {}
    x = 5
    for name in CHAT_TAB_NAMES:
        tabs[name] = Rectangle(anchor.x + x, anchor.y + 143, 52, 19)
        x += 62
    tabs["Chat"] = Rectangle(anchor.x + 5, anchor.y + 5, 506, 129)
    return tabs


def map_inventory(anchor: Rectangle) -> list[Rectangle]:
    """28 slots row by row; slot ``i + 4`` sits directly below slot ``i``."""
    slots: list[Rectangle] = []
    y = anchor.y + 44
    for _row in range(SLOT_ROWS):
        x = anchor.x + 40
        for _col in range(SLOT_COLUMNS):
            slots.append(Rectangle(x, y, SLOT_WIDTH, SLOT_HEIGHT))
            x += SLOT_WIDTH + SLOT_GAP_X
        y += SLOT_HEIGHT + SLOT_GAP_Y
    return slots


def map_grid_info(canvas: Rectangle) -> dict[str, Rectangle]:
    return _offsets(canvas, _GRID_INFO)


def map_mouse_over(canvas: Rectangle) -> Rectangle:
    dx, dy, w, h = MOUSE_OVER
    return Rectangle(canvas.x + dx, canvas.y + dy, w, h)


def map_fixed_game_view(canvas: Rectangle) -> Rectangle:
    dx, dy, w, h = FIXED_GAME_VIEW
    return Rectangle(canvas.x + dx, canvas.y + dy, w, h)


def mask_zones(image: np.ndarray, zones: list[Rectangle]) -> np.ndarray:
    """Copy of *image* with every (client-space) zone filled with zeros."""
    out = image.copy()
    height, width = out.shape[:2]
    for zone in zones:
        clip = zone.intersection(Rectangle(0, 0, width, height))
        if not clip.is_empty():
            rows, cols = clip.as_slices()
            out[rows, cols] = 0
    return out


@dataclass(slots=True)
class ZoneMap:
    """Everything :class:`ZoneMapper` located; read-only after mapping."""

    is_fixed: bool = False
    minimap: dict[str, Rectangle] = field(default_factory=dict)
    ctrl_panel: dict[str, Rectangle] = field(default_factory=dict)
    chat_tabs: dict[str, Rectangle] = field(default_factory=dict)
    inventory_slots: list[Rectangle] = field(default_factory=list)
    grid_info: dict[str, Rectangle] = field(default_factory=dict)
    mouse_over: Rectangle | None = None
    anchors: dict[str, Rectangle] = field(default_factory=dict)


def zones_outside(zone_map: ZoneMap, canvas: Rectangle) -> list[str]:
    """Names of mapped zones that do not lie fully inside *canvas*."""
    named: list[tuple[str, Rectangle]] = []
    for group in ("minimap", "ctrl_panel", "chat_tabs", "grid_info"):
        named.extend((f"{group}.{name}", rect) for name, rect in getattr(zone_map, group).items())
    named.extend((f"inventory_slots[{i}]", rect) for i, rect in enumerate(zone_map.inventory_slots))
    if zone_map.mouse_over is not None:
        named.append(("mouse_over", zone_map.mouse_over))
    return [name for name, rect in named if not canvas.contains_rect(rect)]


class ZoneMapper:
    """Builds the :class:`ZoneMap` and serves the masked game view.

    Args:
        grabber: Frame grabber (``capture``, ``capture_zone``, ``canvas_bounds``).
        matcher: Template matcher configured with the canvas origin.
    """

    def __init__(self, grabber, matcher) -> None:
        self._grabber = grabber
        self._matcher = matcher
        self._log = ChromaLogger("Zones")
        self.zone_map = ZoneMap()

    def map(self) -> ZoneMap:
        frame = self._grabber.capture()
        canvas = self._grabber.canvas_bounds()

        resizable_path, _ = ANCHORS["minimap"]
        fixed_path, _ = ANCHORS["minimap_fixed"]
        best, _result = self._matcher.match_best([resizable_path, fixed_path], frame)
        is_fixed = best == 1
        self._log.info(f"client layout: {'fixed' if is_fixed else 'resizable'}")

        zone_map = ZoneMap(is_fixed=is_fixed)
        minimap_anchor = self._locate("minimap_fixed" if is_fixed else "minimap", frame)
        inventory_anchor = self._locate("inventory", frame)
        chat_anchor = self._locate("chat", frame)

        if minimap_anchor is not None:
            zone_map.anchors["minimap"] = minimap_anchor
            zone_map.minimap = map_minimap(minimap_anchor, is_fixed)
        if inventory_anchor is not None:
            zone_map.anchors["inventory"] = inventory_anchor
            zone_map.ctrl_panel = map_ctrl_panel(inventory_anchor)
            zone_map.inventory_slots = map_inventory(inventory_anchor)
        if chat_anchor is not None:
            zone_map.anchors["chat"] = chat_anchor
            zone_map.chat_tabs = map_chat(chat_anchor)

        zone_map.grid_info = map_grid_info(canvas)
        zone_map.mouse_over = map_mouse_over(canvas)

        outside = zones_outside(zone_map, canvas)
        if outside:
            raise ZoneOutOfBounds(f"zones outside the client {canvas}: {', '.join(outside[:5])}")
        self.zone_map = zone_map
        self._log.success(
            f"mapped {len(zone_map.minimap)} minimap, {len(zone_map.ctrl_panel)} panel, "
            f"{len(zone_map.chat_tabs)} chat zones and {len(zone_map.inventory_slots)} slots"
        )
        return zone_map

    def _locate(self, anchor: str, frame: np.ndarray) -> Rectangle | None:
        path, threshold = ANCHORS[anchor]
        rect = self._matcher.match(path, frame, threshold)
        if rect is None:
            self._log.warn(f"anchor '{anchor}' not found (score {self._matcher.last_min_score})")
        return rect

    def game_view(self) -> np.ndarray:
        """Canvas capture with the minimap, inventory and chat zones zeroed.

        In fixed mode the fixed viewport (511×333) is cropped instead.
        """
        if self.zone_map.is_fixed:
            return self.fixed_game_view()
        canvas = self._grabber.canvas_bounds()
        frame = self._grabber.capture()
        zones = [
            rect.translate(-canvas.x, -canvas.y)
            for rect in self.zone_map.anchors.values()
        ]
        return mask_zones(frame, zones)

    def fixed_game_view(self) -> np.ndarray:
        return self._grabber.capture_zone(map_fixed_game_view(self._grabber.canvas_bounds()))

    def game_view_origin(self) -> Point:
        """Screen position of pixel ``(0, 0)`` of :meth:`game_view`."""
        canvas = self._grabber.canvas_bounds()
        view = map_fixed_game_view(canvas) if self.zone_map.is_fixed else canvas
        return Point(view.x, view.y)

    # ── Convenience accessors ─────────────────────────────────────

    @property
    def minimap(self) -> dict[str, Rectangle]:
        return self.zone_map.minimap

    @property
    def ctrl_panel(self) -> dict[str, Rectangle]:
        return self.zone_map.ctrl_panel

    @property
    def chat_tabs(self) -> dict[str, Rectangle]:
        return self.zone_map.chat_tabs

    @property
    def inventory_slots(self) -> list[Rectangle]:
        return self.zone_map.inventory_slots

    @property
    def grid_info(self) -> dict[str, Rectangle]:
        return self.zone_map.grid_info

    @property
    def mouse_over(self) -> Rectangle:
        if self.zone_map.mouse_over is None:
            raise ZoneOutOfBounds("zones have not been mapped")
        return self.zone_map.mouse_over

    @property
    def is_fixed(self) -> bool:
        return self.zone_map.is_fixed
