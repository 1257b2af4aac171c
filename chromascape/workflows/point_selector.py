"""Pick humanised click points on template matches and colour blobs.

Both helpers return ``None`` (after logging why) instead of raising, so
a script can decide whether a miss means "stop" or "try again".
"""

from __future__ import annotations

import numpy as np

from chromascape.tools import colour_segmenter
from chromascape.tools.click_distribution import generate_random_point
from chromascape.tools.colour_segmenter import ColourRange, colour_registry
from chromascape.tools.geometry import Point
from chromascape.utils.errors import ChromaError
from chromascape.utils.logger import ChromaLogger

_log = ChromaLogger("PointSelector")


def random_point_in_image(
    matcher,
    template,
    image: np.ndarray,
    threshold: float,
    rng: np.random.Generator | None = None,
) -> Point | None:
    """Random point inside the best match of *template* in *image* (screen coordinates)."""
    try:
        box = matcher.match(template, image, threshold)
    except ChromaError as exc:
        _log.error(f"random_point_in_image failed: {exc}")
        return None
    if box is None or box.is_empty():
        _log.error("random_point_in_image failed: no valid bounding box")
        return None
    return generate_random_point(box, rng=rng)


def random_point_in_colour(
    image: np.ndarray,
    colour: ColourRange | str,
    max_attempts: int = 15,
    origin: Point = Point(0, 0),
    stats=None,
    rng: np.random.Generator | None = None,
) -> Point | None:
    """Random point strictly inside the first blob of *colour*.

    Points are drawn from the blob's bounding box until one lands inside
    its contour.  *origin* is the screen position of the image's top-left
    pixel; the returned point is in screen coordinates.
    """
    if isinstance(colour, str):
        colour = colour_registry.get(colour)
    try:
        blobs = colour_segmenter.objects(image, colour)
    except ChromaError as exc:
        _log.error(f"colour segmentation failed: {exc}")
        return None
    if stats is not None and blobs:
        stats.increment_objects_detected(len(blobs))
    if not blobs:
        _log.error(f"no objects found for colour: {colour.name}")
        return None

    blob = blobs[0]
    for attempt in range(max_attempts):
        point = generate_random_point(blob.bounding_box, rng=rng)
        if colour_segmenter.point_in_contour(point, blob.contour):
            _log.status(f"point in colour '{colour.name}' after {attempt + 1} attempts")
            return point.translate(origin.x, origin.y)
    _log.error(f"no point inside the {colour.name} contour after {max_attempts} attempts")
    return None
