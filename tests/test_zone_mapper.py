from __future__ import annotations

import numpy as np
import pytest

from chromascape.tools import zone_mapper
from chromascape.tools.geometry import Point, Rectangle
from chromascape.tools.zone_mapper import (
    CHAT_TAB_NAMES,
    ZoneMap,
    ZoneMapper,
    map_chat,
    map_ctrl_panel,
    map_inventory,
    map_minimap,
    mask_zones,
    zones_outside,
)
from chromascape.utils.errors import ZoneOutOfBounds

CTRL_PANEL = Rectangle(1200, 600, 241, 334)


def test_first_slot_offset_from_panel() -> None:
    slots = map_inventory(CTRL_PANEL)

    assert len(slots) == 28
    assert slots[0] == Rectangle(CTRL_PANEL.x + 40, CTRL_PANEL.y + 44, 36, 32)


def test_slots_step_by_size_plus_gap() -> None:
    slots = map_inventory(CTRL_PANEL)

    for i in range(28):
        if i % 4:
            assert slots[i].x - slots[i - 1].x == 36 + 6
            assert slots[i].y == slots[i - 1].y
        if i + 4 < 28:
            assert slots[i + 4].x == slots[i].x
            assert slots[i + 4].y - slots[i].y == 32 + 4


def test_every_slot_inside_inventory_panel() -> None:
    panel = map_ctrl_panel(CTRL_PANEL)["inventoryPanel"]

    for slot in map_inventory(CTRL_PANEL):
        assert panel.contains_rect(slot)


def test_chat_tabs_are_evenly_spaced() -> None:
    anchor = Rectangle(0, 500, 519, 165)
    tabs = map_chat(anchor)

    assert [name for name in tabs if name != "Chat"] == list(CHAT_TAB_NAMES)
    assert tabs["All"] == Rectangle(5, 643, 52, 19)
    assert tabs["Game"].x - tabs["All"].x == 62
    assert tabs["Chat"] == Rectangle(5, 505, 506, 129)


def test_minimap_layouts_differ() -> None:
    anchor = Rectangle(1300, 10, 210, 170)
    resizable = map_minimap(anchor)
    fixed = map_minimap(anchor, fixed=True)

    assert resizable["compass"] == Rectangle(1339, 18, 24, 24)
    assert fixed["compass"] == Rectangle(1332, 17, 23, 25)
    assert set(resizable) == set(fixed)


def test_mask_zones_zeroes_and_clips() -> None:
    image = np.full((50, 60, 3), 200, dtype=np.uint8)

    out = mask_zones(image, [Rectangle(10, 10, 5, 5), Rectangle(55, 45, 20, 20)])

    assert out[12, 12].tolist() == [0, 0, 0]
    assert out[49, 59].tolist() == [0, 0, 0]
    assert out[0, 0].tolist() == [200, 200, 200]
    assert image[12, 12].tolist() == [200, 200, 200]


class _Grabber:
    def __init__(self, bounds: Rectangle) -> None:
        self.bounds = bounds
        self.frame = np.full((bounds.height, bounds.width, 3), 90, dtype=np.uint8)

    def capture(self) -> np.ndarray:
        return self.frame.copy()

    def canvas_bounds(self) -> Rectangle:
        return self.bounds

    def capture_zone(self, zone: Rectangle) -> np.ndarray:
        rows, cols = zone.translate(-self.bounds.x, -self.bounds.y).as_slices()
        return self.frame[rows, cols].copy()


class _Matcher:
    """Reports fixed anchor positions and a preferred minimap layout."""

    def __init__(self, anchors: dict[str, Rectangle | None], fixed: bool = False) -> None:
        self.anchors = anchors
        self.fixed = fixed
        self.last_min_score = 0.0

    def match_best(self, templates, base):
        return (1 if self.fixed else 0), None

    def match(self, template, base, threshold):
        for name, (path, _threshold) in zone_mapper.ANCHORS.items():
            if path == template:
                return self.anchors.get(name)
        return None


def _anchors(canvas: Rectangle) -> dict[str, Rectangle]:
    return {
        "minimap": Rectangle(canvas.x + 560, canvas.y + 4, 150, 160),
        "minimap_fixed": Rectangle(canvas.x + 550, canvas.y + 4, 150, 160),
        "inventory": Rectangle(canvas.x + 500, canvas.y + 200, 241, 334),
        "chat": Rectangle(canvas.x, canvas.y + 400, 519, 165),
    }


def _fixed_anchors(canvas: Rectangle) -> dict[str, Rectangle]:
    # 765x503 fixed client: side panel bottom-right, chat box bottom-left
    return {
        "minimap": None,
        "minimap_fixed": Rectangle(canvas.x + 550, canvas.y + 4, 150, 160),
        "inventory": Rectangle(canvas.x + 520, canvas.y + 168, 241, 334),
        "chat": Rectangle(canvas.x, canvas.y + 338, 519, 165),
    }


def test_mapper_builds_resizable_zone_map() -> None:
    canvas = Rectangle(100, 50, 800, 600)
    mapper = ZoneMapper(_Grabber(canvas), _Matcher(_anchors(canvas)))

    zone_map = mapper.map()

    assert not zone_map.is_fixed
    assert len(mapper.inventory_slots) == 28
    assert mapper.inventory_slots[0] == Rectangle(640, 294, 36, 32)
    assert mapper.minimap["compass"] == Rectangle(699, 62, 24, 24)
    assert mapper.mouse_over == Rectangle(104, 54, 407, 26)
    assert mapper.grid_info["Tile"] == Rectangle(110, 84, 130, 14)
    assert mapper.game_view_origin() == Point(100, 50)


def test_game_view_masks_anchor_zones() -> None:
    canvas = Rectangle(100, 50, 800, 600)
    mapper = ZoneMapper(_Grabber(canvas), _Matcher(_anchors(canvas)))
    mapper.map()

    view = mapper.game_view()

    assert view.shape == (600, 800, 3)
    # Inside the inventory anchor (client 500..741, 200..534)
    assert view[300, 600].tolist() == [0, 0, 0]
    assert view[100, 100].tolist() == [90, 90, 90]


def test_fixed_layout_crops_game_view() -> None:
    canvas = Rectangle(0, 0, 765, 503)
    mapper = ZoneMapper(_Grabber(canvas), _Matcher(_fixed_anchors(canvas), fixed=True))
    mapper.map()

    assert mapper.is_fixed
    assert mapper.game_view().shape == (333, 511, 3)
    assert mapper.game_view_origin() == Point(4, 4)
    assert mapper.minimap["compass"] == Rectangle(582, 11, 23, 25)


def test_missing_anchor_leaves_zones_empty() -> None:
    canvas = Rectangle(0, 0, 800, 600)
    anchors = _anchors(canvas)
    anchors["inventory"] = None
    mapper = ZoneMapper(_Grabber(canvas), _Matcher(anchors))
    mapper.map()

    assert mapper.inventory_slots == []
    assert mapper.ctrl_panel == {}
    assert mapper.chat_tabs


def test_mouse_over_before_mapping_raises() -> None:
    mapper = ZoneMapper(_Grabber(Rectangle(0, 0, 10, 10)), _Matcher({}))

    with pytest.raises(ZoneOutOfBounds):
        mapper.mouse_over


def test_zones_spilling_past_the_client_are_rejected() -> None:
    canvas = Rectangle(100, 50, 800, 600)
    anchors = _anchors(canvas)
    # Panel found too low: its bottom tab row and last slots fall off the client
    anchors["inventory"] = Rectangle(canvas.x + 500, canvas.y + 320, 241, 334)
    mapper = ZoneMapper(_Grabber(canvas), _Matcher(anchors))

    with pytest.raises(ZoneOutOfBounds):
        mapper.map()

    assert mapper.zone_map.inventory_slots == []


def test_zones_outside_names_offending_zones() -> None:
    canvas = Rectangle(0, 0, 400, 300)
    zone_map = ZoneMap(
        grid_info={"Tile": Rectangle(10, 34, 130, 14)},
        inventory_slots=[Rectangle(10, 10, 36, 32), Rectangle(380, 290, 36, 32)],
        mouse_over=Rectangle(4, 4, 407, 26),
    )

    assert zones_outside(zone_map, canvas) == ["inventory_slots[1]", "mouse_over"]
