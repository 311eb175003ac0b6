from __future__ import annotations

import math
from typing import List, Tuple

import numpy as np
import pytest

from glowface.keypoints import FACE_OVAL_INDICES, HAND_LANDMARK_COUNT
from glowface.types import DetectedHand, HandDetectionSnapshot, LandmarkPoint

FACE_MESH_SIZE = 478


def synthetic_face(cx: float = 0.5, cy: float = 0.5, rx: float = 0.15, ry: float = 0.2) -> Tuple[LandmarkPoint, ...]:
    """FaceMesh-sized landmark set with the oval indices laid out on an ellipse."""
    pts: List[LandmarkPoint] = [LandmarkPoint(cx, cy)] * FACE_MESH_SIZE
    n = len(FACE_OVAL_INDICES)
    for k, idx in enumerate(FACE_OVAL_INDICES):
        a = -math.pi / 2 + 2 * math.pi * k / n
        pts[idx] = LandmarkPoint(cx + rx * math.cos(a), cy + ry * math.sin(a))
    return tuple(pts)


def synthetic_hand(label: str = "Right", x0: float = 0.1, y0: float = 0.1) -> DetectedHand:
    pts = tuple(
        LandmarkPoint(x0 + 0.03 * (i % 5), y0 + 0.05 * (i // 5)) for i in range(HAND_LANDMARK_COUNT)
    )
    return DetectedHand(label=label, landmarks=pts)


@pytest.fixture
def frame() -> np.ndarray:
    """240x320 BGR frame with smooth mid-range gradients (no clipping at the extremes)."""
    h, w = 240, 320
    xs = np.linspace(60, 180, w, dtype=np.float32)
    ys = np.linspace(70, 170, h, dtype=np.float32)
    b = np.tile(xs, (h, 1))
    g = np.tile(ys[:, None], (1, w))
    r = np.full((h, w), 120, dtype=np.float32)
    return np.dstack([b, g, r]).astype(np.uint8)


@pytest.fixture
def face() -> Tuple[LandmarkPoint, ...]:
    return synthetic_face()


@pytest.fixture
def hands() -> HandDetectionSnapshot:
    return HandDetectionSnapshot(hands=(synthetic_hand("Left", 0.05, 0.1), synthetic_hand("Right", 0.75, 0.1)))
