"""Image helpers: lossless PNG codec and resource image loading."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import cv2
import numpy as np

from chromascape.utils.errors import AssetLoadError, EmptyImage


def encode_png(frame: np.ndarray) -> bytes:
    """Encode a BGR/BGRA/grey frame as PNG bytes (lossless)."""
    if frame is None or frame.size == 0:
        raise EmptyImage("cannot encode an empty frame")
    ok, buf = cv2.imencode(".png", frame)
    if not ok:
        raise EmptyImage("PNG encoder rejected the frame")
    return buf.tobytes()


def decode_png(data: bytes, flags: int = cv2.IMREAD_UNCHANGED) -> np.ndarray:
    """Decode PNG bytes back into a numpy image."""
    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), flags)
    if image is None or image.size == 0:
        raise EmptyImage("PNG payload could not be decoded")
    return image


def resolve_resource(root: Path, relative: str | os.PathLike[str]) -> Path:
    """Map ``/images/ui/inv.png`` style paths onto the resource root."""
    rel = str(relative).replace("\\", "/").lstrip("/")
    return Path(root) / rel


def read_resource_bytes(root: Path, relative: str | os.PathLike[str]) -> bytes:
    path = resolve_resource(root, relative)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise AssetLoadError(f"resource not readable: {path} ({exc})") from exc


def load_resource_image(
    root: Path,
    relative: str | os.PathLike[str],
    flags: int = cv2.IMREAD_UNCHANGED,
) -> np.ndarray:
    """Load a bundled image by materialising it to a temporary file.

    ``cv2.imread`` only accepts filesystem paths, so the resource payload
    is copied to a named temp file that is removed on every exit path.
    """
    payload = read_resource_bytes(root, relative)
    suffix = Path(str(relative)).suffix or ".png"
    fd, tmp_name = tempfile.mkstemp(prefix="chroma_", suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        image = cv2.imread(tmp_name, flags)
    finally:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
    if image is None or image.size == 0:
        raise EmptyImage(f"resource image is empty or undecodable: {relative}")
    return image


def to_bgra(image: np.ndarray) -> np.ndarray:
    """Return a 4-channel copy of *image* (grey, BGR or BGRA input)."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    channels = image.shape[2]
    if channels == 4:
        return image
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGRA)
    raise EmptyImage(f"unsupported channel count: {channels}")


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel view/copy of *image*."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    channels = image.shape[2]
    if channels == 3:
        return image
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    raise EmptyImage(f"unsupported channel count: {channels}")
