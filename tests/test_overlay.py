import numpy as np

from glowface.geometry import expand_oval
from glowface.keypoints import FACE_OVAL_INDICES
from glowface.overlay import (
    LEFT_HAND_COLOR,
    POINT_COLOR,
    RIGHT_HAND_COLOR,
    draw_face_oval,
    draw_hands,
    hand_color,
)
from glowface.types import EMPTY_HANDS


def test_hand_color_by_label():
    assert hand_color("Left") == LEFT_HAND_COLOR
    assert hand_color("Right") == RIGHT_HAND_COLOR
    assert hand_color(None) == RIGHT_HAND_COLOR


def test_face_oval_strokes_boundary_only(frame, face):
    original = frame.copy()
    poly = expand_oval(face, FACE_OVAL_INDICES, 320, 240, 1.0, 1.0)
    out = draw_face_oval(frame, poly)
    assert out is frame
    changed = np.any(frame != original, axis=2)
    assert changed.any()
    # Interior and far corners untouched
    assert not changed[120, 160]
    assert not changed[:20, :20].any()
    x, y = np.round(poly[0]).astype(int)
    assert changed[y - 1 : y + 2, x - 1 : x + 2].any()


def test_hands_draw_points_in_white(frame, hands):
    draw_hands(frame, hands)
    h, w = frame.shape[:2]
    for hand in hands.hands:
        for lm in hand.landmarks:
            px, py = int(round(lm.x * w)), int(round(lm.y * h))
            assert tuple(frame[py, px]) == POINT_COLOR


def test_hands_leave_rest_of_frame_alone(frame, hands):
    original = frame.copy()
    draw_hands(frame, hands)
    np.testing.assert_array_equal(frame[150:, :], original[150:, :])
    np.testing.assert_array_equal(frame[:, 110:200], original[:, 110:200])


def test_left_and_right_hands_use_their_colours(frame, hands):
    draw_hands(frame, hands)
    left_pixels = np.all(frame[:, :100] == LEFT_HAND_COLOR, axis=2)
    right_pixels = np.all(frame[:, 220:] == RIGHT_HAND_COLOR, axis=2)
    assert left_pixels.any()
    assert right_pixels.any()


def test_empty_snapshot_draws_nothing(frame):
    original = frame.copy()
    draw_hands(frame, EMPTY_HANDS)
    np.testing.assert_array_equal(frame, original)
