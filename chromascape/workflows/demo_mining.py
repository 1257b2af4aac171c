"""Demo mining script.

Clicks the first rock highlighted in **Cyan** (a RuneLite object marker
colour), waits for it to be mined out, and shift-drops the inventory
once the last slot holds ore.
"""

from __future__ import annotations

import numpy as np

from chromascape.orchestrator.engine import BaseScript
from chromascape.orchestrator.registry import register_script
from chromascape.tools import colour_segmenter
from chromascape.tools.geometry import Point
from chromascape.utils.errors import ChromaError
from chromascape.workflows.item_dropper import drop_all
from chromascape.workflows.point_selector import random_point_in_colour
from chromascape.workflows.waits import wait_until

ORE_TEMPLATE = "images/user/Iron_ore.png"
ORE_THRESHOLD = 0.05
ORE_COLOUR = "Cyan"
IDLE_TIMEOUT_S = 20


@register_script("DemoMining")
class DemoMiningScript(BaseScript):
    name = "DemoMining"

    def __init__(self, controller, **kwargs) -> None:
        super().__init__(controller, **kwargs)
        self._np_rng = np.random.default_rng(self.rng.getrandbits(32))

    def cycle(self) -> None:
        if self.is_inventory_full():
            drop_all(self.controller, rng=self.rng)
        target = self.click_ore()
        if target is None:
            self.stop()
            return
        self.wait_random_millis(800, 1000)
        wait_until(lambda: not self.ore_at(target), IDLE_TIMEOUT_S, waiter=self.wait_millis)

    def is_inventory_full(self) -> bool:
        """Last inventory slot holds the ore sprite."""
        zones = self.controller.zones()
        if len(zones.inventory_slots) < 28:
            return False
        try:
            slot = self.controller.grabber().capture_zone(zones.inventory_slots[27])
            return self.controller.matcher().match(ORE_TEMPLATE, slot, ORE_THRESHOLD) is not None
        except ChromaError as exc:
            self._log.error(f"inventory check failed: {exc}")
            return False

    def click_ore(self) -> Point | None:
        zones = self.controller.zones()
        point = random_point_in_colour(
            zones.game_view(), ORE_COLOUR, 15,
            origin=zones.game_view_origin(), stats=self.stats, rng=self._np_rng,
        )
        if point is None:
            return None
        mouse = self.controller.mouse()
        mouse.move_to(point, "medium")
        mouse.left_click()
        return point

    def ore_at(self, point: Point) -> bool:
        """Whether a Cyan blob still covers *point* (the rock is not depleted)."""
        zones = self.controller.zones()
        origin = zones.game_view_origin()
        local = point.translate(-origin.x, -origin.y)
        blobs = colour_segmenter.objects(zones.game_view(), colour_segmenter.colour_registry.get(ORE_COLOUR))
        return any(colour_segmenter.point_in_contour(local, blob.contour) for blob in blobs)
