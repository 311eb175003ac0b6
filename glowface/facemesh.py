from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import cv2
import numpy as np

from .errors import ModelLoadError
from .types import LandmarkPoint, landmarks_from_results

logger = logging.getLogger(__name__)


@dataclass
class FaceMeshConfig:
    static_image_mode: bool = False
    refine_landmarks: bool = True
    max_faces: int = 1
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], static_image_mode: bool = False) -> "FaceMeshConfig":
        fm = cfg.get("face_mesh", {})
        return cls(
            static_image_mode=static_image_mode,
            refine_landmarks=bool(fm.get("refine_landmarks", True)),
            max_faces=int(fm.get("max_faces", 1)),
            min_detection_confidence=float(fm.get("min_detection_confidence", 0.5)),
            min_tracking_confidence=float(fm.get("min_tracking_confidence", 0.5)),
        )


class FaceMeshDetector:
    """Reusable wrapper around MediaPipe FaceMesh.

    Usage:
        with FaceMeshDetector(FaceMeshConfig()) as det:
            landmarks = det.detect(frame_bgr)
    """

    def __init__(self, cfg: Optional[FaceMeshConfig] = None):
        self.cfg = cfg or FaceMeshConfig()
        self._mesh = None

    def open(self) -> "FaceMeshDetector":
        if self._mesh is not None:
            return self
        try:
            import mediapipe as mp  # type: ignore

            self._mesh = mp.solutions.face_mesh.FaceMesh(
                static_image_mode=self.cfg.static_image_mode,
                refine_landmarks=self.cfg.refine_landmarks,
                max_num_faces=self.cfg.max_faces,
                min_detection_confidence=self.cfg.min_detection_confidence,
                min_tracking_confidence=self.cfg.min_tracking_confidence,
            )
        except Exception as e:
            raise ModelLoadError(f"Could not load MediaPipe FaceMesh: {e}") from e
        logger.info("FaceMesh ready (max_faces=%d, refine=%s)", self.cfg.max_faces, self.cfg.refine_landmarks)
        return self

    def close(self) -> None:
        if self._mesh is not None:
            self._mesh.close()
            self._mesh = None

    def __enter__(self) -> "FaceMeshDetector":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def detect(self, image_bgr: np.ndarray) -> Optional[Tuple[LandmarkPoint, ...]]:
        """Return the first face's landmarks, or None when no face is found."""
        self.open()
        assert self._mesh is not None

        # Convert BGR -> RGB as required by MediaPipe
        img_rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        results = self._mesh.process(img_rgb)
        if not results or not results.multi_face_landmarks:
            return None
        return landmarks_from_results(results.multi_face_landmarks[0].landmark)


__all__ = ["FaceMeshDetector", "FaceMeshConfig"]
