from __future__ import annotations

from typing import List, Tuple


# MediaPipe FaceMesh face-oval contour, clockwise from the forehead top
FACE_OVAL_INDICES: List[int] = [
    10, 338, 297, 332, 284, 251, 389, 356, 454, 323, 361, 288,
    397, 365, 379, 378, 400, 377, 152, 148, 176, 149, 150, 136,
    172, 58, 132, 93, 234, 127, 162, 21, 54, 103, 67, 109,
]

HAND_LANDMARK_COUNT = 21

# MediaPipe Hands topology
HAND_CONNECTIONS: List[Tuple[int, int]] = [
    # thumb
    (0, 1),
    (1, 2),
    (2, 3),
    (3, 4),
    # index
    (0, 5),
    (5, 6),
    (6, 7),
    (7, 8),
    # middle
    (5, 9),
    (9, 10),
    (10, 11),
    (11, 12),
    # ring
    (9, 13),
    (13, 14),
    (14, 15),
    (15, 16),
    # pinky
    (13, 17),
    (17, 18),
    (18, 19),
    (19, 20),
    # palm base
    (0, 17),
]


__all__ = [
    "FACE_OVAL_INDICES",
    "HAND_LANDMARK_COUNT",
    "HAND_CONNECTIONS",
]
