from .event_injector import EventInjector, RecordingChannel, build_channel
from .ghost_mouse import GhostMouse, NullOverlay
from .keyboard_input import VirtualKeyboard

__all__ = ["EventInjector", "GhostMouse", "NullOverlay", "RecordingChannel", "VirtualKeyboard", "build_channel"]
