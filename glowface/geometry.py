from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import GeometryError
from .keypoints import FACE_OVAL_INDICES
from .types import LandmarkPoint, MaskPolygon


def select_pixel_points(landmarks: Sequence[LandmarkPoint], indices: Sequence[int], width: int, height: int) -> np.ndarray:
    """Return the named landmarks in pixel space, shape (len(indices), 2).

    Raises `GeometryError` when an index does not resolve to a finite point.
    """
    n = len(landmarks)
    pts = np.empty((len(indices), 2), dtype=np.float64)
    for row, idx in enumerate(indices):
        if not 0 <= idx < n:
            raise GeometryError(f"Landmark index {idx} out of range for {n} landmarks")
        lm = landmarks[idx]
        pts[row, 0] = float(lm.x) * width
        pts[row, 1] = float(lm.y) * height
    if not np.all(np.isfinite(pts)):
        raise GeometryError("Landmark set contains non-finite coordinates")
    return pts


def expand_oval(
    landmarks: Sequence[LandmarkPoint],
    indices: Sequence[int] = FACE_OVAL_INDICES,
    width: int = 1,
    height: int = 1,
    face_scale: float = 1.0,
    forehead_scale: float = 1.0,
) -> MaskPolygon:
    """Scale the face-oval contour about its centroid.

    Points above the centroid (smaller y) are pushed out vertically by
    `face_scale * forehead_scale`; everything else by `face_scale`.
    """
    if len(indices) < 3:
        raise GeometryError(f"Need at least 3 oval points, got {len(indices)}")
    pts = select_pixel_points(landmarks, indices, width, height)

    centroid = pts.mean(axis=0)
    d = pts - centroid
    y_scale = np.where(d[:, 1] < 0, face_scale * forehead_scale, face_scale)

    out = np.empty_like(pts)
    out[:, 0] = centroid[0] + d[:, 0] * face_scale
    out[:, 1] = centroid[1] + d[:, 1] * y_scale
    return out.astype(np.float32)


__all__ = ["select_pixel_points", "expand_oval"]
