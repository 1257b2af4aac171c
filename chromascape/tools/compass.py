"""Compass orientation reader.

Compares the minimap compass against 360 pre-rendered orientation
templates with mean SSIM and returns the best angle in degrees.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

import cv2
import numpy as np

from chromascape.utils.errors import EmptyImage
from chromascape.utils.imaging import load_resource_image, to_bgr

CARDINALS = (0, 90, 180, 270)

_C1 = 6.5025   # (0.01 * 255)^2
_C2 = 58.5225  # (0.03 * 255)^2


def mssim(a: np.ndarray, b: np.ndarray) -> float:
    """Mean structural similarity averaged over channels (Gaussian 11×11, σ=1.5)."""
    if a.size == 0 or b.size == 0:
        raise EmptyImage("cannot compare empty images")
    if a.shape[:2] != b.shape[:2]:
        b = cv2.resize(b, (a.shape[1], a.shape[0]), interpolation=cv2.INTER_NEAREST)
    i1 = a.astype(np.float32)
    i2 = b.astype(np.float32)

    def blur(img: np.ndarray) -> np.ndarray:
        return cv2.GaussianBlur(img, (11, 11), 1.5)

    mu1, mu2 = blur(i1), blur(i2)
    mu1_sq, mu2_sq, mu1_mu2 = mu1 * mu1, mu2 * mu2, mu1 * mu2
    sigma1_sq = blur(i1 * i1) - mu1_sq
    sigma2_sq = blur(i2 * i2) - mu2_sq
    sigma12 = blur(i1 * i2) - mu1_mu2

    num = (2 * mu1_mu2 + _C1) * (2 * sigma12 + _C2)
    den = (mu1_sq + mu2_sq + _C1) * (sigma1_sq + sigma2_sq + _C2)
    ssim_map = num / den
    if ssim_map.ndim == 2:
        return float(ssim_map.mean())
    return float(ssim_map.reshape(-1, ssim_map.shape[2]).mean(axis=0).mean())


class CompassReader:
    """Angle lookup against a template library keyed by degree."""

    def __init__(self, library: Mapping[int, np.ndarray]) -> None:
        if not library:
            raise EmptyImage("compass library is empty")
        self._library = dict(library)

    @classmethod
    def load(cls, resource_root: Path, is_fixed: bool) -> "CompassReader":
        variant = "fixed_classic" if is_fixed else "resizable_classic"
        library = {
            degree: to_bgr(load_resource_image(
                resource_root, f"images/ui/compass_degrees/{variant}/{degree}.png"
            ))
            for degree in range(360)
        }
        return cls(library)

    def scores(self, image: np.ndarray) -> dict[int, float]:
        bgr = to_bgr(image)
        return {deg: mssim(tmpl, bgr) for deg, tmpl in self._library.items()}

    def angle(self, image: np.ndarray) -> int:
        """Best-matching degree; a cardinal wins any tie for the top score."""
        scores = self.scores(image)
        best = max(scores.values())
        for cardinal in CARDINALS:
            if scores.get(cardinal) == best:
                return cardinal
        return max(scores, key=lambda deg: scores[deg])
