from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from .keypoints import HAND_CONNECTIONS
from .types import HandDetectionSnapshot, MaskPolygon


# BGR
MESH_COLOR: Tuple[int, int, int] = (255, 255, 0)
LEFT_HAND_COLOR: Tuple[int, int, int] = (133, 113, 251)
RIGHT_HAND_COLOR: Tuple[int, int, int] = (238, 211, 34)
POINT_COLOR: Tuple[int, int, int] = (255, 255, 255)


def hand_color(label: Optional[str]) -> Tuple[int, int, int]:
    return LEFT_HAND_COLOR if label == "Left" else RIGHT_HAND_COLOR


def draw_face_oval(frame_bgr: np.ndarray, polygon: MaskPolygon, color=MESH_COLOR, thickness: int = 2) -> np.ndarray:
    pts = np.round(np.asarray(polygon, dtype=np.float32)).astype(np.int32).reshape(-1, 1, 2)
    if pts.shape[0] < 2:
        return frame_bgr
    cv2.polylines(frame_bgr, [pts], True, color, thickness, cv2.LINE_AA)
    return frame_bgr


def draw_hands(frame_bgr: np.ndarray, snapshot: HandDetectionSnapshot, thickness: int = 2, radius: int = 3) -> np.ndarray:
    """Draw the 21-point skeleton of every hand in `snapshot`, in place."""
    h, w = frame_bgr.shape[:2]
    for hand in snapshot.hands:
        pts = [(int(round(lm.x * w)), int(round(lm.y * h))) for lm in hand.landmarks]
        color = hand_color(hand.label)
        # Lines
        for a, b in HAND_CONNECTIONS:
            if a < len(pts) and b < len(pts):
                cv2.line(frame_bgr, pts[a], pts[b], color, thickness, cv2.LINE_AA)
        # Points
        for pt in pts:
            cv2.circle(frame_bgr, pt, radius, POINT_COLOR, -1, lineType=cv2.LINE_AA)
    return frame_bgr


__all__ = [
    "MESH_COLOR",
    "LEFT_HAND_COLOR",
    "RIGHT_HAND_COLOR",
    "POINT_COLOR",
    "hand_color",
    "draw_face_oval",
    "draw_hands",
]
