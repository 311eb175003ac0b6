"""Frame synchronization between the face and hand detectors.

The face detector callback is the only thing that drives a paint cycle. The
hand detector runs at its own cadence and just replaces the value in a
last-value-wins slot; a paint reads whatever is there when it starts, which
may be a frame or two stale, or empty.

All shared inputs (selected preset, per-preset parameters, toggles, latest
hands) are read once at the top of `on_face_result`, so edits that land
mid-frame apply from the next frame on.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

import numpy as np

from .compositor import Compositor
from .errors import GeometryError
from .geometry import expand_oval
from .keypoints import FACE_OVAL_INDICES
from .overlay import draw_face_oval, draw_hands
from .presets import FilterConfigStore
from .types import EMPTY_HANDS, HandDetectionSnapshot, LandmarkPoint

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestValue(Generic[T]):
    """Single-slot cell with atomic replace; readers always get the newest value."""

    def __init__(self, initial: T):
        self._lock = threading.Lock()
        self._value = initial

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value

    def get(self) -> T:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class Toggles:
    filter_enabled: bool = True
    mesh_enabled: bool = False
    hand_enabled: bool = False


class FrameBridge:
    """Turns face-detector results into painted frames.

    `sink`, if given, receives every painted frame. Re-entrant or overlapping
    calls to `on_face_result` are dropped rather than queued.
    """

    def __init__(
        self,
        store: FilterConfigStore,
        compositor: Optional[Compositor] = None,
        toggles: Optional[Toggles] = None,
        oval_indices: Sequence[int] = FACE_OVAL_INDICES,
        sink: Optional[Callable[[np.ndarray], None]] = None,
    ) -> None:
        self.store = store
        self.compositor = compositor or Compositor()
        self.oval_indices = list(oval_indices)
        self.sink = sink

        self._toggles: LatestValue[Toggles] = LatestValue(toggles or Toggles())
        self._hands: LatestValue[HandDetectionSnapshot] = LatestValue(EMPTY_HANDS)
        self._hand_available = True
        self._alive = True
        self._paint_lock = threading.Lock()
        self._stats_lock = threading.Lock()

        self.face_present: Optional[bool] = None
        self.paint_count = 0
        self.dropped_count = 0

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def hand_available(self) -> bool:
        return self._hand_available

    @property
    def toggles(self) -> Toggles:
        return self._toggles.get()

    def update_toggles(self, **changes: bool) -> Toggles:
        updated = dataclasses.replace(self._toggles.get(), **changes)
        self._toggles.set(updated)
        return updated

    def latest_hands(self) -> HandDetectionSnapshot:
        return self._hands.get()

    def mark_hand_unavailable(self, reason: str = "") -> None:
        """Permanently disable the hand overlay for this session."""
        self._hand_available = False
        self._hands.set(EMPTY_HANDS)
        logger.warning("Hand overlay unavailable%s", f": {reason}" if reason else "")

    def on_hand_result(self, snapshot: Optional[HandDetectionSnapshot]) -> None:
        if not self._alive or not self._hand_available:
            return
        self._hands.set(snapshot or EMPTY_HANDS)

    def on_face_result(self, image: np.ndarray, landmarks: Optional[Sequence[LandmarkPoint]]) -> Optional[np.ndarray]:
        """Run one paint cycle; returns the painted frame, or None if skipped."""
        if not self._alive:
            return None
        if not self._paint_lock.acquire(blocking=False):
            with self._stats_lock:
                self.dropped_count += 1
            logger.debug("Dropped face result: paint already in progress")
            return None
        try:
            frame = self._paint(image, landmarks)
            self.paint_count += 1
            if self.sink is not None:
                self.sink(frame)
            return frame
        finally:
            self._paint_lock.release()

    def _paint(self, image: np.ndarray, landmarks: Optional[Sequence[LandmarkPoint]]) -> np.ndarray:
        # Snapshot every shared input once
        toggles = self._toggles.get()
        hand_on = toggles.hand_enabled and self._hand_available
        hands = self._hands.get() if hand_on else EMPTY_HANDS
        params = self.store.current()

        self._note_face(bool(landmarks))

        frame = image.copy()
        if not (toggles.filter_enabled or toggles.mesh_enabled or hand_on):
            return frame

        polygon = None
        if landmarks:
            h, w = image.shape[:2]
            try:
                polygon = expand_oval(
                    landmarks,
                    self.oval_indices,
                    w,
                    h,
                    face_scale=params.face_scale,
                    forehead_scale=params.forehead_scale,
                )
            except GeometryError as e:
                logger.debug("Skipping filter for this frame: %s", e)

        if polygon is not None:
            if toggles.filter_enabled:
                frame = self.compositor.composite(image, polygon, params)
            if toggles.mesh_enabled:
                draw_face_oval(frame, polygon)

        if hand_on and hands:
            draw_hands(frame, hands)
        return frame

    def _note_face(self, present: bool) -> None:
        if present != self.face_present:
            if present:
                logger.info("Face detected; filter active")
            elif self.face_present is not None:
                logger.info("Face lost; showing unfiltered video")
            self.face_present = present

    def close(self) -> None:
        """Turn every later callback into a no-op."""
        self._alive = False


__all__ = ["LatestValue", "Toggles", "FrameBridge"]
