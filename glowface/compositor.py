"""Two-pass filtered/masked compositing.

Pass 1 renders a filtered copy of the whole frame into an RGBA scratch
surface. Pass 2 multiplies the scratch alpha by a feathered polygon mask
("destination-in"). The result is drawn source-over on top of the untouched
frame, so pixels where the mask alpha is exactly zero come through unchanged.

Filter functions follow CSS filter semantics on 0..1 RGB values:
brightness and contrast are per-channel affine maps, saturate and hue-rotate
are the W3C colour matrices, and the blur radius is a Gaussian sigma in
pixels. They are applied in the fixed order brightness, contrast, saturation,
blur, hue-rotate.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import cv2
import numpy as np

from .presets import FilterParameters
from .types import MaskPolygon

logger = logging.getLogger(__name__)


def saturate_matrix(s: float) -> np.ndarray:
    return np.array(
        [
            [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
            [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
        ],
        dtype=np.float32,
    )


def hue_rotate_matrix(degrees: float) -> np.ndarray:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array(
        [
            [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
            [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
            [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
        ],
        dtype=np.float32,
    )


def _color_matrix(rgb: np.ndarray, m: np.ndarray) -> np.ndarray:
    out = cv2.transform(rgb, m)
    return np.clip(out, 0.0, 1.0, out=out)


def apply_filter_chain(rgb: np.ndarray, params: FilterParameters) -> np.ndarray:
    """Apply the filter chain to a float32 RGB image in [0, 1]."""
    out = rgb * np.float32(params.brightness)
    np.clip(out, 0.0, 1.0, out=out)

    c = np.float32(params.contrast)
    out = out * c + np.float32(0.5 - 0.5 * params.contrast)
    np.clip(out, 0.0, 1.0, out=out)

    if params.saturation != 1.0:
        out = _color_matrix(out, saturate_matrix(params.saturation))

    if params.blur > 0:
        out = cv2.GaussianBlur(out, (0, 0), sigmaX=float(params.blur))

    if params.hue_rotate % 360 != 0:
        out = _color_matrix(out, hue_rotate_matrix(params.hue_rotate))

    return out


def feathered_mask(shape: Tuple[int, int], polygon: MaskPolygon, feather: float) -> np.ndarray:
    """Rasterize `polygon` into a float32 alpha plane in [0, 1], blurred by `feather` px."""
    h, w = shape
    alpha = np.zeros((h, w), dtype=np.uint8)
    pts = np.round(np.asarray(polygon, dtype=np.float32)).astype(np.int32).reshape(-1, 1, 2)
    cv2.fillPoly(alpha, [pts], 255)
    if feather > 0:
        # 8-bit blur keeps the kernel support finite: alpha stays exactly 0 past ~3 sigma
        alpha = cv2.GaussianBlur(alpha, (0, 0), sigmaX=float(feather))
    return alpha.astype(np.float32) / 255.0


class Compositor:
    """Blend a filtered copy of the frame into the masked face region.

    Holds one RGBA scratch surface that is reused across frames and
    reallocated when the frame size changes; nothing else carries over.
    """

    def __init__(self) -> None:
        self._scratch: Optional[np.ndarray] = None

    @property
    def scratch_shape(self) -> Optional[Tuple[int, ...]]:
        return None if self._scratch is None else self._scratch.shape

    def _ensure_scratch(self, h: int, w: int) -> np.ndarray:
        if self._scratch is None or self._scratch.shape[:2] != (h, w):
            logger.debug("Allocating %dx%d scratch surface", w, h)
            self._scratch = np.zeros((h, w, 4), dtype=np.float32)
        return self._scratch

    def composite(self, frame_bgr: np.ndarray, polygon: Optional[MaskPolygon], params: FilterParameters) -> np.ndarray:
        """Return a new BGR uint8 frame with the filtered region blended in.

        `frame_bgr` is not modified. With no polygon the frame is returned
        as an unfiltered copy.
        """
        if frame_bgr.ndim != 3 or frame_bgr.shape[2] != 3:
            raise ValueError(f"Expected a 3-channel BGR frame, got shape {frame_bgr.shape}")
        if polygon is None:
            return frame_bgr.copy()

        h, w = frame_bgr.shape[:2]
        scratch = self._ensure_scratch(h, w)

        # Pass 1: filtered frame, fully opaque
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB).astype(np.float32) / 255.0
        scratch[..., :3] = apply_filter_chain(rgb, params)
        scratch[..., 3] = 1.0

        # Pass 2: destination-in with the feathered polygon
        scratch[..., 3] *= feathered_mask((h, w), polygon, params.mask_feather)

        # Source-over onto the untouched frame
        base = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB).astype(np.float32)
        alpha = scratch[..., 3:4]
        blended = base + (scratch[..., :3] * 255.0 - base) * alpha
        out = np.clip(np.rint(blended), 0, 255).astype(np.uint8)
        return cv2.cvtColor(out, cv2.COLOR_RGB2BGR)


__all__ = [
    "saturate_matrix",
    "hue_rotate_matrix",
    "apply_filter_chain",
    "feathered_mask",
    "Compositor",
]
