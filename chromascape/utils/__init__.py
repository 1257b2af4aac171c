from .errors import (
    AssetLoadError,
    ChromaError,
    EmptyImage,
    InjectorError,
    Interrupted,
    InvalidArgument,
    NotRunning,
    TemplateLargerThanBase,
    WindowNotFound,
    ZoneOutOfBounds,
    ZoneOutsideWindow,
)
from .logger import ChromaLogger

__all__ = [
    "AssetLoadError",
    "ChromaError",
    "ChromaLogger",
    "EmptyImage",
    "InjectorError",
    "Interrupted",
    "InvalidArgument",
    "NotRunning",
    "TemplateLargerThanBase",
    "WindowNotFound",
    "ZoneOutOfBounds",
    "ZoneOutsideWindow",
]
