from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping

import yaml

from .presets import PresetId

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "camera": {
        "index": 0,
        "width": 1280,
        "height": 720,
        # Preview is shown mirrored like a selfie camera; captures are not
        "mirror": True,
    },
    "face_mesh": {
        "max_faces": 1,
        "refine_landmarks": True,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "hands": {
        # Optional; failures only disable the hand overlay
        "enabled": True,
        "max_num_hands": 2,
        "model_complexity": 1,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "filter": {
        "preset": "natural",
        "enabled": True,
        # Exported preset JSON applied to the selected preset at startup
        "import_file": None,
    },
    "overlay": {
        "mesh": False,
        "hands": False,
    },
    "paths": {
        "input_dir": None,
        "output_dir": "outputs",
        "capture_dir": "captures",
    },
    "runtime": {
        "max_files": None,
        "log_level": "INFO",
    },
}


def _deep_merge(base: MutableMapping[str, Any], override: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for k, v in override.items():
        if k in base and isinstance(base[k], MutableMapping) and isinstance(v, Mapping):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_yaml(path: str | Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        logger.warning("YAML config not found: %s", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level of YAML must be a mapping/dict")
    return data


def merge_config(yaml_cfg: Mapping[str, Any] | None = None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = copy.deepcopy(DEFAULTS)
    if yaml_cfg:
        _deep_merge(cfg, dict(yaml_cfg))
    if cli_overrides:
        _deep_merge(cfg, dict(cli_overrides))

    preset = cfg.get("filter", {}).get("preset")
    try:
        PresetId(preset)
    except ValueError:
        choices = ", ".join(p.value for p in PresetId)
        raise ValueError(f"Unknown filter preset {preset!r}; expected one of: {choices}") from None
    return cfg


def load_and_merge(yaml_path: str | Path | None, cli_overrides: Mapping[str, Any] | None = None) -> Dict[str, Any]:
    yaml_cfg = load_yaml(yaml_path)
    return merge_config(yaml_cfg, cli_overrides)
