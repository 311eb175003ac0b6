"""Output writers.

`CaptureWriter` saves photos and exported preset configs from a live
session. `BatchWriter` collects per-image records in batch mode and writes
a JSON index plus a YAML summary.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
import yaml

from .presets import FilterParameters, PresetId
from .utils import ensure_dir, now_ms

logger = logging.getLogger(__name__)

JPEG_QUALITY = 95


def write_image(path: str | Path, image_bgr: np.ndarray, jpeg_quality: int = JPEG_QUALITY) -> Path:
    p = Path(path)
    ensure_dir(p.parent)
    params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality] if p.suffix.lower() in (".jpg", ".jpeg") else []
    ok, buf = cv2.imencode(p.suffix or ".png", image_bgr, params)
    if not ok:
        raise OSError(f"Could not encode image for {p}")
    buf.tofile(str(p))
    return p


class CaptureWriter:
    def __init__(self, capture_dir: str | Path):
        self.capture_dir = Path(capture_dir)

    def save_photo(self, frame_bgr: np.ndarray, preset_id: PresetId | str, timestamp_ms: Optional[int] = None) -> Path:
        pid = PresetId(preset_id)
        ts = now_ms() if timestamp_ms is None else timestamp_ms
        path = write_image(self.capture_dir / f"glowface-{pid.value}-{ts}.jpg", frame_bgr)
        logger.info("Saved photo: %s", path)
        return path

    def save_config(self, payload: Dict[str, Any]) -> Path:
        ensure_dir(self.capture_dir)
        path = self.capture_dir / f"glowface-{payload['filterId']}-config.json"
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        logger.info("Exported preset config: %s", path)
        return path


def build_record(
    src: Path,
    out: Optional[Path],
    face_found: bool,
    readable: bool = True,
) -> Dict[str, Any]:
    return {
        "file": str(src),
        "output": str(out) if out is not None else None,
        "readable": readable,
        "face_found": face_found,
    }


class BatchWriter:
    def __init__(self, output_dir: str | Path, preset_id: PresetId | str, params: FilterParameters):
        self.output_dir = Path(output_dir)
        ensure_dir(self.output_dir)
        self.preset_id = PresetId(preset_id)
        self.params = params
        self.records: List[Dict[str, Any]] = []

    def output_path(self, src: Path, input_dir: Optional[str | Path] = None) -> Path:
        try:
            rel = src.relative_to(input_dir) if input_dir else Path(src.name)
        except ValueError:
            rel = Path(src.name)
        return self.output_dir / rel

    def add(self, record: Dict[str, Any]) -> None:
        self.records.append(record)

    def finalize(self) -> Dict[str, Any]:
        ensure_dir(self.output_dir)
        with (self.output_dir / "index.json").open("w", encoding="utf-8") as f:
            json.dump(self.records, f, ensure_ascii=False, indent=2)

        unreadable = sum(1 for r in self.records if not r["readable"])
        faces = sum(1 for r in self.records if r["face_found"])
        summary = {
            "counts": {
                "total": len(self.records),
                "face_found": faces,
                "no_face": len(self.records) - faces - unreadable,
                "unreadable": unreadable,
            },
            "preset": self.preset_id.value,
            "config": self.params.to_dict(),
        }
        with (self.output_dir / "summary.yaml").open("w", encoding="utf-8") as f:
            yaml.safe_dump(summary, f, sort_keys=False, allow_unicode=True)
        return summary


__all__ = [
    "JPEG_QUALITY",
    "write_image",
    "CaptureWriter",
    "build_record",
    "BatchWriter",
]
