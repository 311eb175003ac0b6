from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple

import numpy as np


# Closed (N, 2) float32 array of pixel-space points
MaskPolygon = np.ndarray


@dataclass(frozen=True)
class LandmarkPoint:
    # Normalized to frame size; x, y in [0, 1]
    x: float
    y: float


@dataclass(frozen=True)
class DetectedHand:
    label: str  # "Left" / "Right"
    landmarks: Tuple[LandmarkPoint, ...]  # length 21


@dataclass(frozen=True)
class HandDetectionSnapshot:
    hands: Tuple[DetectedHand, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.hands)


EMPTY_HANDS = HandDetectionSnapshot()


def landmarks_from_results(landmarks: Sequence) -> Tuple[LandmarkPoint, ...]:
    """Copy detector output (anything with `.x` / `.y`) into immutable points."""
    return tuple(LandmarkPoint(float(lm.x), float(lm.y)) for lm in landmarks)
