from .demo_mining import DemoMiningScript
from .item_dropper import DropPattern, drop_all, slot_order
from .point_selector import random_point_in_colour, random_point_in_image
from .waits import wait_until

__all__ = [
    "DemoMiningScript",
    "DropPattern",
    "drop_all",
    "random_point_in_colour",
    "random_point_in_image",
    "slot_order",
    "wait_until",
]
