"""Live webcam session.

Face detection runs on the camera loop and drives painting through the
bridge. Hand detection runs on a worker thread that always picks up the most
recent camera frame, so its cadence is independent of the face path; its
results only ever replace the bridge's latest-hands slot.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import cv2
import numpy as np

from .bridge import FrameBridge, LatestValue, Toggles
from .camera import CameraSource
from .errors import DetectorUnavailable, GlowFaceError
from .facemesh import FaceMeshConfig, FaceMeshDetector
from .hands import HandDetector, HandsConfig
from .presets import FilterConfigStore, PresetId
from .writers import CaptureWriter

logger = logging.getLogger(__name__)

WINDOW_NAME = "GlowFace"

PRESET_KEYS: Dict[int, PresetId] = {ord(str(i + 1)): pid for i, pid in enumerate(PresetId)}

KEY_HELP = "1-4 preset | f filter | m mesh | h hands | r reset | e export | c capture | q quit"

# Seconds stop() waits for the hand worker before giving up on it
HAND_JOIN_TIMEOUT = 2.0


class LiveSession:
    def __init__(self, cfg: Mapping[str, Any], store: Optional[FilterConfigStore] = None):
        self.cfg = cfg
        self.store = store or FilterConfigStore(cfg.get("filter", {}).get("preset", "natural"))
        overlay = cfg.get("overlay", {})
        self.bridge = FrameBridge(
            self.store,
            toggles=Toggles(
                filter_enabled=bool(cfg.get("filter", {}).get("enabled", True)),
                mesh_enabled=bool(overlay.get("mesh", False)),
                hand_enabled=bool(overlay.get("hands", False)),
            ),
        )
        self.captures = CaptureWriter(cfg.get("paths", {}).get("capture_dir", "captures"))
        self.mirror = bool(cfg.get("camera", {}).get("mirror", True))

        self.camera: Optional[CameraSource] = None
        self.face: Optional[FaceMeshDetector] = None
        self.hands: Optional[HandDetector] = None

        self._latest_frame: LatestValue[Optional[np.ndarray]] = LatestValue(None)
        self._frame_ready = threading.Event()
        self._hand_thread: Optional[threading.Thread] = None
        self._last_painted: Optional[np.ndarray] = None

    def start(self) -> "LiveSession":
        """Acquire camera and models.

        Camera and face model failures propagate (`DeviceAcquisitionError`,
        `ModelLoadError`); a hand model failure only disables the hand overlay.
        """
        self.camera = CameraSource.from_config(self.cfg).open()
        try:
            self.face = FaceMeshDetector(FaceMeshConfig.from_config(self.cfg)).open()
        except GlowFaceError:
            self.camera.release()
            raise

        if self.cfg.get("hands", {}).get("enabled", True):
            try:
                self.hands = HandDetector(HandsConfig.from_config(self.cfg))
            except DetectorUnavailable as e:
                self.bridge.mark_hand_unavailable(str(e))
        else:
            self.bridge.mark_hand_unavailable("disabled in config")

        if self.hands is not None:
            self._hand_thread = threading.Thread(target=self._hand_loop, name="hand-detector", daemon=True)
            self._hand_thread.start()
        return self

    def _hand_loop(self) -> None:
        while self.bridge.alive:
            if not self._frame_ready.wait(timeout=0.1):
                continue
            self._frame_ready.clear()
            frame = self._latest_frame.get()
            if frame is None or not self.bridge.alive or self.hands is None:
                continue
            try:
                snapshot = self.hands.detect(frame)
            except Exception:
                logger.exception("Hand detection failed on this frame")
                continue
            self.bridge.on_hand_result(snapshot)

    def step(self) -> Optional[np.ndarray]:
        """Read one camera frame and run it through detection and paint."""
        if self.camera is None or self.face is None or not self.bridge.alive:
            return None
        frame = self.camera.read()
        if frame is None:
            return None

        self._latest_frame.set(frame)
        self._frame_ready.set()

        try:
            landmarks = self.face.detect(frame)
        except Exception:
            logger.exception("Face detection failed on this frame")
            landmarks = None
        painted = self.bridge.on_face_result(frame, landmarks)
        if painted is not None:
            self._last_painted = painted
        return painted

    def handle_key(self, key: int) -> bool:
        """Apply one keyboard command; returns False when the user quits."""
        if key in (ord("q"), 27):
            return False
        if key in PRESET_KEYS:
            self.store.select(PRESET_KEYS[key])
        elif key == ord("f"):
            self.bridge.update_toggles(filter_enabled=not self.bridge.toggles.filter_enabled)
        elif key == ord("m"):
            self.bridge.update_toggles(mesh_enabled=not self.bridge.toggles.mesh_enabled)
        elif key == ord("h"):
            if not self.bridge.hand_available:
                logger.warning("Hand overlay is not available in this session")
            else:
                self.bridge.update_toggles(hand_enabled=not self.bridge.toggles.hand_enabled)
        elif key == ord("r"):
            self.store.reset(self.store.selected)
            logger.info("Reset preset %s to defaults", self.store.selected.value)
        elif key == ord("e"):
            self.captures.save_config(self.store.export_payload())
        elif key == ord("c"):
            if self._last_painted is not None:
                self.captures.save_photo(self._last_painted, self.store.selected)
        return True

    def run(self) -> None:
        logger.info("Keys: %s", KEY_HELP)
        try:
            while self.bridge.alive:
                painted = self.step()
                if painted is not None:
                    cv2.imshow(WINDOW_NAME, cv2.flip(painted, 1) if self.mirror else painted)
                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
        finally:
            self.stop()
            cv2.destroyAllWindows()

    def stop(self) -> None:
        """Stop all producers; callbacks arriving afterwards are no-ops."""
        self.bridge.close()
        self._frame_ready.set()
        hand_busy = False
        if self._hand_thread is not None:
            self._hand_thread.join(timeout=HAND_JOIN_TIMEOUT)
            hand_busy = self._hand_thread.is_alive()
            self._hand_thread = None
        if self.camera is not None:
            self.camera.release()
        if self.face is not None:
            self.face.close()
        if self.hands is not None:
            if hand_busy:
                logger.warning("Hand worker still running after %.1fs; leaving its detector open", HAND_JOIN_TIMEOUT)
            else:
                self.hands.close()
        logger.info("Session stopped")

    def __enter__(self) -> "LiveSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def import_startup_config(store: FilterConfigStore, path: str | Path) -> None:
    """Apply an exported preset file to the selected preset."""
    text = Path(path).read_text(encoding="utf-8")
    store.import_json(text)


__all__ = ["LiveSession", "import_startup_config", "KEY_HELP", "PRESET_KEYS"]
