"""Error taxonomy shared by every ChromaScape layer."""

from __future__ import annotations


class ChromaError(Exception):
    """Base class for all ChromaScape failures."""


class NotRunning(ChromaError):
    """A stateful accessor was used while the controller is stopped."""


class InjectorError(ChromaError):
    """The native input channel rejected an event or could not be (de)constructed."""


class TemplateLargerThanBase(ChromaError):
    """The template does not fit inside the image it is matched against."""


class EmptyImage(ChromaError):
    """A vision routine received an image with no pixels."""


class ZoneOutOfBounds(ChromaError):
    """A capture zone misses the canvas, or a mapped zone spills past it."""


class ZoneOutsideWindow(ChromaError):
    """A zone rectangle lies outside the captured window."""


class Interrupted(ChromaError):
    """Cooperative cancellation raised at the next suspension point."""


class InvalidArgument(ChromaError, ValueError):
    """Unknown key name, speed profile, script name or an out-of-range tunable."""


class AssetLoadError(ChromaError, OSError):
    """A font, template or other bundled asset could not be read."""


class WindowNotFound(ChromaError):
    """No top-level window (or canvas child) matched the configured lookup."""
