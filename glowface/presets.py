"""Filter presets and the per-session configuration store.

Each preset owns one built-in default and one live, user-edited
`FilterParameters` record. Live records are frozen dataclasses, so a paint
cycle that reads a record once sees a consistent value for the whole frame
even if a slider moves while it runs.

Export/import uses a small versioned JSON document:

    {"version": 1, "filterId": "<preset>", "config": {<8 keys>: number}}
"""

from __future__ import annotations

import dataclasses
import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import ValidationError

logger = logging.getLogger(__name__)


PAYLOAD_VERSION = 1


class PresetId(str, Enum):
    NATURAL = "natural"
    BRIGHT = "bright"
    SMOOTH = "smooth"
    ROSY = "rosy"


@dataclass(frozen=True)
class ParamSpec:
    key: str  # JSON / slider key
    attr: str  # FilterParameters attribute
    label: str
    minimum: float
    maximum: float
    step: float
    unit: str

    @property
    def integer(self) -> bool:
        return self.step >= 1


# Canonical key order; import validation walks fields in this order
PARAM_SPECS: List[ParamSpec] = [
    ParamSpec("brightness", "brightness", "Brightness", 0.7, 1.5, 0.01, "x"),
    ParamSpec("contrast", "contrast", "Contrast", 0.7, 1.5, 0.01, "x"),
    ParamSpec("saturation", "saturation", "Saturation", 0.5, 2.0, 0.01, "x"),
    ParamSpec("blur", "blur", "Smoothing", 0.0, 4.0, 0.1, "px"),
    ParamSpec("hueRotate", "hue_rotate", "Hue", 0, 30, 1, "deg"),
    ParamSpec("foreheadScale", "forehead_scale", "Forehead stretch", 1.0, 1.8, 0.01, "x"),
    ParamSpec("faceScale", "face_scale", "Face scale", 0.8, 1.2, 0.01, "x"),
    ParamSpec("maskFeather", "mask_feather", "Edge feather", 0, 50, 1, "px"),
]

PARAM_SPEC_MAP: Dict[str, ParamSpec] = {spec.key: spec for spec in PARAM_SPECS}
CONFIG_KEYS: List[str] = [spec.key for spec in PARAM_SPECS]


@dataclass(frozen=True)
class FilterParameters:
    brightness: float
    contrast: float
    saturation: float
    blur: float
    hue_rotate: float
    forehead_scale: float
    face_scale: float
    mask_feather: float

    def to_dict(self) -> Dict[str, float]:
        return {spec.key: getattr(self, spec.attr) for spec in PARAM_SPECS}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FilterParameters":
        return cls(**{spec.attr: data[spec.key] for spec in PARAM_SPECS})

    def with_value(self, key: str, value: float) -> "FilterParameters":
        spec = PARAM_SPEC_MAP.get(key)
        if spec is None:
            raise KeyError(f"Unknown filter parameter: {key}")
        return dataclasses.replace(self, **{spec.attr: value})


@dataclass(frozen=True)
class Preset:
    id: PresetId
    name: str
    defaults: FilterParameters


PRESETS: Dict[PresetId, Preset] = {
    PresetId.NATURAL: Preset(
        PresetId.NATURAL,
        "Natural",
        FilterParameters(
            brightness=1.10, contrast=1.05, saturation=1.05, blur=0.5, hue_rotate=0,
            forehead_scale=1.25, face_scale=1.01, mask_feather=15,
        ),
    ),
    PresetId.BRIGHT: Preset(
        PresetId.BRIGHT,
        "Bright",
        FilterParameters(
            brightness=1.15, contrast=1.08, saturation=1.10, blur=0.8, hue_rotate=0,
            forehead_scale=1.30, face_scale=1.02, mask_feather=20,
        ),
    ),
    PresetId.SMOOTH: Preset(
        PresetId.SMOOTH,
        "Smooth skin",
        FilterParameters(
            brightness=1.08, contrast=1.02, saturation=1.05, blur=2.0, hue_rotate=0,
            forehead_scale=1.25, face_scale=1.01, mask_feather=25,
        ),
    ),
    PresetId.ROSY: Preset(
        PresetId.ROSY,
        "Rosy",
        FilterParameters(
            brightness=1.12, contrast=1.05, saturation=1.20, blur=0.8, hue_rotate=5,
            forehead_scale=1.25, face_scale=1.01, mask_feather=15,
        ),
    ),
}


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid slider value
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_payload(raw: Any, expected_preset_id: PresetId | str) -> FilterParameters:
    """Check an import payload against the export schema.

    Rules are applied in a fixed order and the first violation is raised as a
    `ValidationError`. Returns a sanitized record on success.
    """
    expected = PresetId(expected_preset_id)

    if not isinstance(raw, Mapping):
        raise ValidationError("not_object", "invalid payload: expected a JSON object")

    version = raw.get("version")
    if not _is_number(version) or version != PAYLOAD_VERSION:
        raise ValidationError("unsupported_version", f"unsupported version: only version {PAYLOAD_VERSION} is supported")

    if raw.get("filterId") != expected.value:
        raise ValidationError(
            "preset_mismatch",
            f"preset mismatch: payload is for {raw.get('filterId')!r}, selected preset is {expected.value!r}",
        )

    config = raw.get("config")
    if not isinstance(config, Mapping):
        raise ValidationError("config_not_object", "config must be an object")

    for key in CONFIG_KEYS:
        if key not in config:
            raise ValidationError("incomplete_schema", f"incomplete schema: missing key {key}")
    for key in config:
        if key not in PARAM_SPEC_MAP:
            raise ValidationError("unexpected_key", f"unexpected key: {key}")

    sanitized: Dict[str, float] = {}
    for spec in PARAM_SPECS:
        value = config[spec.key]
        if not _is_number(value) or (isinstance(value, float) and not math.isfinite(value)):
            raise ValidationError("not_number", f"{spec.key} must be a number")
        if value < spec.minimum or value > spec.maximum:
            raise ValidationError(
                "out_of_range",
                f"{spec.key} out of range: {value} not in {spec.minimum}-{spec.maximum}",
            )
        if spec.integer:
            if not float(value).is_integer():
                raise ValidationError("not_integer", f"{spec.key} must be integer")
            sanitized[spec.key] = int(value)
        else:
            sanitized[spec.key] = float(value)

    return FilterParameters.from_dict(sanitized)


class FilterConfigStore:
    """Live, per-preset filter parameters for one session.

    Mutated only from user-input handlers; paint cycles call `current()` once
    at the top of a frame.
    """

    def __init__(self, selected: PresetId | str = PresetId.NATURAL):
        self._live: Dict[PresetId, FilterParameters] = {pid: preset.defaults for pid, preset in PRESETS.items()}
        self._selected = PresetId(selected)

    @property
    def selected(self) -> PresetId:
        return self._selected

    def select(self, preset_id: PresetId | str) -> PresetId:
        self._selected = PresetId(preset_id)
        logger.info("Selected preset: %s", self._selected.value)
        return self._selected

    def get(self, preset_id: PresetId | str) -> FilterParameters:
        pid = PresetId(preset_id)
        live = self._live.get(pid)
        return live if live is not None else PRESETS[pid].defaults

    def current(self) -> FilterParameters:
        return self.get(self._selected)

    def set(self, preset_id: PresetId | str, key: str, value: float) -> FilterParameters:
        """Merge one field into a preset's live record.

        Values come from range-limited sliders and are not re-validated here.
        """
        pid = PresetId(preset_id)
        updated = self.get(pid).with_value(key, value)
        self._live[pid] = updated
        return updated

    def reset(self, preset_id: PresetId | str) -> FilterParameters:
        pid = PresetId(preset_id)
        self._live[pid] = PRESETS[pid].defaults
        return self._live[pid]

    def export_payload(self, preset_id: Optional[PresetId | str] = None) -> Dict[str, Any]:
        pid = PresetId(preset_id) if preset_id is not None else self._selected
        return {
            "version": PAYLOAD_VERSION,
            "filterId": pid.value,
            "config": self.get(pid).to_dict(),
        }

    def export_json(self, preset_id: Optional[PresetId | str] = None) -> str:
        return json.dumps(self.export_payload(preset_id), indent=2)

    def import_payload(self, raw: Any, expected_preset_id: Optional[PresetId | str] = None) -> FilterParameters:
        """Validate `raw` and, on success, replace the expected preset's live record.

        `expected_preset_id` defaults to the selected preset. Raises
        `ValidationError` and leaves the store untouched on any violation.
        """
        pid = PresetId(expected_preset_id) if expected_preset_id is not None else self._selected
        try:
            params = validate_payload(raw, pid)
        except ValidationError as e:
            logger.warning("Rejected preset import for %s: %s", pid.value, e.message)
            raise
        self._live[pid] = params
        logger.info("Imported configuration for preset %s", pid.value)
        return params

    def import_json(self, text: str, expected_preset_id: Optional[PresetId | str] = None) -> FilterParameters:
        try:
            raw = json.loads(text)
        except ValueError as e:
            logger.warning("Rejected preset import: %s", e)
            raise ValidationError("invalid_json", f"invalid JSON: {getattr(e, 'msg', e)}") from e
        return self.import_payload(raw, expected_preset_id)


__all__ = [
    "PAYLOAD_VERSION",
    "PresetId",
    "ParamSpec",
    "PARAM_SPECS",
    "PARAM_SPEC_MAP",
    "CONFIG_KEYS",
    "FilterParameters",
    "Preset",
    "PRESETS",
    "validate_payload",
    "FilterConfigStore",
]
