"""Still-image input for single-image and batch modes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, Iterable, Optional

import cv2
import numpy as np

from .utils import IMAGE_EXTS, is_image_file

logger = logging.getLogger(__name__)


def iter_image_paths(
    input_dir: str | Path,
    exts: Optional[Iterable[str]] = None,
    max_files: Optional[int] = None,
) -> Generator[Path, None, None]:
    """Yield image files under `input_dir` recursively, sorted for stable output."""
    root = Path(input_dir)
    if not root.exists():
        logger.warning("Input directory does not exist: %s", root)
        return
    exts = set(exts or IMAGE_EXTS)
    count = 0
    for p in sorted(root.rglob("*")):
        if p.is_file() and is_image_file(p, exts):
            yield p
            count += 1
            if max_files is not None and count >= max_files:
                return


def read_image(path: str | Path) -> Optional[np.ndarray]:
    """Read an image as 3-channel BGR; None if unreadable.

    Decodes from bytes so non-ASCII paths work on every platform.
    """
    try:
        data = np.fromfile(str(path), dtype=np.uint8)
    except OSError as e:
        logger.warning("Cannot read %s (%s)", path, e)
        return None
    if data.size == 0:
        return None
    return cv2.imdecode(data, cv2.IMREAD_COLOR)


__all__ = ["iter_image_paths", "read_image"]
