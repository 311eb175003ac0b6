from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

import cv2
import numpy as np

from .errors import DetectorUnavailable
from .keypoints import HAND_LANDMARK_COUNT
from .types import EMPTY_HANDS, DetectedHand, HandDetectionSnapshot, landmarks_from_results

logger = logging.getLogger(__name__)


@dataclass
class HandsConfig:
    max_num_hands: int = 2
    model_complexity: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "HandsConfig":
        h = cfg.get("hands", {})
        return cls(
            max_num_hands=int(h.get("max_num_hands", 2)),
            model_complexity=int(h.get("model_complexity", 1)),
            min_detection_confidence=float(h.get("min_detection_confidence", 0.5)),
            min_tracking_confidence=float(h.get("min_tracking_confidence", 0.5)),
        )


class HandDetector:
    """Optional hand-landmark detector using MediaPipe Hands.

    Construction raises `DetectorUnavailable` when the model cannot be set
    up; callers disable the hand overlay instead of failing the session.
    Input frames are expected as **BGR** images (OpenCV default).
    """

    def __init__(self, cfg: Optional[HandsConfig] = None) -> None:
        self.cfg = cfg or HandsConfig()
        try:
            import mediapipe as mp  # type: ignore

            if not hasattr(mp, "solutions"):
                raise DetectorUnavailable("this MediaPipe build does not ship `mp.solutions.hands`")
            self._hands = mp.solutions.hands.Hands(
                static_image_mode=False,
                max_num_hands=self.cfg.max_num_hands,
                model_complexity=self.cfg.model_complexity,
                min_detection_confidence=self.cfg.min_detection_confidence,
                min_tracking_confidence=self.cfg.min_tracking_confidence,
            )
        except DetectorUnavailable:
            raise
        except Exception as e:
            raise DetectorUnavailable(f"Could not initialize MediaPipe Hands: {e}") from e

    def close(self) -> None:
        if self._hands is not None:
            self._hands.close()
            self._hands = None

    def __enter__(self) -> "HandDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, frame_bgr: np.ndarray) -> HandDetectionSnapshot:
        if self._hands is None:
            return EMPTY_HANDS
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return EMPTY_HANDS

        handedness_list = results.multi_handedness or []
        hands: List[DetectedHand] = []
        for i, hand_landmarks in enumerate(results.multi_hand_landmarks):
            label = "Right"
            if i < len(handedness_list) and handedness_list[i].classification:
                label = getattr(handedness_list[i].classification[0], "label", None) or label
            points = landmarks_from_results(hand_landmarks.landmark)
            if len(points) != HAND_LANDMARK_COUNT:
                logger.debug("Ignoring hand with %d landmarks", len(points))
                continue
            hands.append(DetectedHand(label=label, landmarks=points))
        return HandDetectionSnapshot(hands=tuple(hands))


__all__ = ["HandDetector", "HandsConfig"]
