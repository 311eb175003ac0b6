from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import cv2
import numpy as np

from .errors import DeviceAcquisitionError

logger = logging.getLogger(__name__)


class CameraSource:
    """OpenCV webcam reader.

    `open()` fails with `DeviceAcquisitionError` if the device cannot be
    opened or does not deliver a first frame (permission denied, busy, or
    missing hardware).
    """

    def __init__(self, index: int = 0, width: int = 1280, height: int = 720):
        self.index = index
        self.width = width
        self.height = height
        self._cap: Optional[cv2.VideoCapture] = None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "CameraSource":
        cam = cfg.get("camera", {})
        return cls(index=int(cam.get("index", 0)), width=int(cam.get("width", 1280)), height=int(cam.get("height", 720)))

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> "CameraSource":
        if self._cap is not None:
            return self
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise DeviceAcquisitionError(f"Could not open camera {self.index}; check that it is connected and not in use")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        ok, _ = cap.read()
        if not ok:
            cap.release()
            raise DeviceAcquisitionError(f"Camera {self.index} opened but delivered no frames; check camera permissions")
        self._cap = cap
        logger.info(
            "Camera %d open at %dx%d",
            self.index,
            int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )
        return self

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        return frame if ok else None

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "CameraSource":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


__all__ = ["CameraSource"]
