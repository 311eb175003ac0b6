import copy
import json
import math

import pytest

from glowface.errors import ValidationError
from glowface.presets import (
    CONFIG_KEYS,
    PARAM_SPECS,
    PRESETS,
    FilterConfigStore,
    FilterParameters,
    PresetId,
)


def payload(preset="natural", **overrides):
    cfg = PRESETS[PresetId(preset)].defaults.to_dict()
    cfg.update(overrides)
    return {"version": 1, "filterId": preset, "config": cfg}


def test_defaults_are_within_declared_ranges():
    for preset in PRESETS.values():
        values = preset.defaults.to_dict()
        for spec in PARAM_SPECS:
            assert spec.minimum <= values[spec.key] <= spec.maximum
            if spec.integer:
                assert float(values[spec.key]).is_integer()


def test_rosy_defaults():
    rosy = PRESETS[PresetId.ROSY].defaults
    assert rosy.hue_rotate == 5
    assert rosy.saturation == pytest.approx(1.2)
    assert rosy.mask_feather == 15


def test_fresh_store_returns_defaults():
    store = FilterConfigStore()
    assert store.selected is PresetId.NATURAL
    for pid, preset in PRESETS.items():
        assert store.get(pid) == preset.defaults
    assert store.get("smooth") == PRESETS[PresetId.SMOOTH].defaults


def test_set_merges_one_field_and_leaves_other_presets_alone():
    store = FilterConfigStore()
    store.set("bright", "brightness", 1.3)
    assert store.get("bright").brightness == 1.3
    assert store.get("bright").contrast == PRESETS[PresetId.BRIGHT].defaults.contrast
    for pid in (PresetId.NATURAL, PresetId.SMOOTH, PresetId.ROSY):
        assert store.get(pid) == PRESETS[pid].defaults


def test_set_does_not_revalidate():
    store = FilterConfigStore()
    store.set("natural", "maskFeather", 99)
    assert store.get("natural").mask_feather == 99


def test_set_unknown_key_raises():
    store = FilterConfigStore()
    with pytest.raises(KeyError):
        store.set("natural", "sharpness", 1.0)


def test_unknown_preset_raises():
    with pytest.raises(ValueError):
        FilterConfigStore().get("vintage")


def test_reset_restores_exact_defaults():
    store = FilterConfigStore()
    for spec in PARAM_SPECS:
        store.set("rosy", spec.key, spec.maximum)
    assert store.get("rosy") != PRESETS[PresetId.ROSY].defaults
    assert store.reset("rosy") == PRESETS[PresetId.ROSY].defaults
    assert store.get("rosy") == PRESETS[PresetId.ROSY].defaults


def test_current_follows_selection():
    store = FilterConfigStore()
    store.select(PresetId.SMOOTH)
    assert store.current() == PRESETS[PresetId.SMOOTH].defaults


def test_export_payload_shape():
    store = FilterConfigStore()
    store.set("smooth", "blur", 3.0)
    data = store.export_payload("smooth")
    assert data["version"] == 1
    assert data["filterId"] == "smooth"
    assert list(data["config"]) == CONFIG_KEYS
    assert data["config"]["blur"] == 3.0


def test_export_defaults_to_selected_preset():
    store = FilterConfigStore("rosy")
    assert store.export_payload()["filterId"] == "rosy"


def test_export_then_import_round_trips():
    store = FilterConfigStore()
    store.set("natural", "brightness", 1.23)
    store.set("natural", "hueRotate", 12)
    before = store.get("natural")
    imported = store.import_payload(store.export_payload("natural"), "natural")
    assert imported == before
    assert store.get("natural") == before


def test_json_round_trip():
    store = FilterConfigStore("bright")
    store.set("bright", "saturation", 1.55)
    text = store.export_json()
    assert json.loads(text)["config"]["saturation"] == 1.55
    assert store.import_json(text) == store.get("bright")


def test_import_replaces_live_record():
    store = FilterConfigStore()
    data = payload(brightness=1.4, maskFeather=40)
    result = store.import_payload(data, "natural")
    assert result.brightness == 1.4
    assert store.get("natural").mask_feather == 40


def test_import_sanitizes_integer_fields():
    store = FilterConfigStore()
    result = store.import_payload(payload(hueRotate=5.0), "natural")
    assert result.hue_rotate == 5
    assert isinstance(result.hue_rotate, int)


@pytest.mark.parametrize(
    "mutate,reason,text",
    [
        (lambda p: p.update(version=2), "unsupported_version", "unsupported version"),
        (lambda p: p.update(filterId="rosy"), "preset_mismatch", "preset mismatch"),
        (lambda p: p["config"].pop("contrast"), "incomplete_schema", "incomplete schema"),
        (lambda p: p["config"].update(sharpness=1.0), "unexpected_key", "unexpected key"),
        (lambda p: p["config"].update(brightness=5.0), "out_of_range", "out of range"),
        (lambda p: p["config"].update(hueRotate=4.5), "not_integer", "must be integer"),
        (lambda p: p.update(config=[1, 2, 3]), "config_not_object", "config must be an object"),
        (lambda p: p.pop("config"), "config_not_object", "config must be an object"),
        (lambda p: p["config"].update(blur="2"), "not_number", "must be a number"),
        (lambda p: p["config"].update(blur=True), "not_number", "must be a number"),
        (lambda p: p["config"].update(blur=math.inf), "not_number", "must be a number"),
        (lambda p: p["config"].update(saturation=math.nan), "not_number", "must be a number"),
        (lambda p: p["config"].update(maskFeather=-1), "out_of_range", "out of range"),
        (lambda p: p["config"].update(maskFeather=10**400), "out_of_range", "out of range"),
        (lambda p: p.update(version=True), "unsupported_version", "unsupported version"),
    ],
)
def test_import_rejections(mutate, reason, text):
    store = FilterConfigStore()
    store.set("natural", "brightness", 1.2)
    before = copy.deepcopy(store.get("natural"))
    data = payload()
    mutate(data)
    with pytest.raises(ValidationError) as exc:
        store.import_payload(data, "natural")
    assert exc.value.reason == reason
    assert text in str(exc.value)
    assert store.get("natural") == before


def test_non_object_payload_rejected():
    with pytest.raises(ValidationError) as exc:
        FilterConfigStore().import_payload([1], "natural")
    assert exc.value.reason == "not_object"


def test_first_violation_wins():
    data = payload(brightness=5.0)
    data["version"] = 2
    data["filterId"] = "rosy"
    with pytest.raises(ValidationError) as exc:
        FilterConfigStore().import_payload(data, "natural")
    assert exc.value.reason == "unsupported_version"


def test_missing_key_reported_before_extra_key():
    data = payload()
    data["config"].pop("blur")
    data["config"]["sharpness"] = 1.0
    with pytest.raises(ValidationError) as exc:
        FilterConfigStore().import_payload(data, "natural")
    assert exc.value.reason == "incomplete_schema"


def test_import_checks_against_selected_preset_by_default():
    store = FilterConfigStore("bright")
    with pytest.raises(ValidationError) as exc:
        store.import_payload(payload("natural"))
    assert exc.value.reason == "preset_mismatch"
    assert store.import_payload(payload("bright")) == PRESETS[PresetId.BRIGHT].defaults


def test_import_does_not_touch_other_presets():
    store = FilterConfigStore()
    store.import_payload(payload(brightness=1.45), "natural")
    assert store.get("bright") == PRESETS[PresetId.BRIGHT].defaults


def test_invalid_json_text_rejected():
    store = FilterConfigStore()
    with pytest.raises(ValidationError) as exc:
        store.import_json("{not json")
    assert exc.value.reason == "invalid_json"
    assert store.get("natural") == PRESETS[PresetId.NATURAL].defaults


def test_boundary_values_accepted():
    store = FilterConfigStore()
    cfg = {spec.key: spec.maximum for spec in PARAM_SPECS}
    result = store.import_payload({"version": 1, "filterId": "natural", "config": cfg}, "natural")
    assert result == FilterParameters.from_dict(cfg)


def test_huge_integer_in_json_is_out_of_range():
    store = FilterConfigStore()
    text = json.dumps(payload()).replace('"maskFeather": 15', '"maskFeather": 1' + "0" * 400)
    with pytest.raises(ValidationError) as exc:
        store.import_json(text)
    assert exc.value.reason == "out_of_range"
    assert store.get("natural") == PRESETS[PresetId.NATURAL].defaults


def test_integer_past_parser_digit_limit_is_invalid_json():
    store = FilterConfigStore()
    text = json.dumps(payload()).replace('"maskFeather": 15', '"maskFeather": 1' + "0" * 5000)
    with pytest.raises(ValidationError) as exc:
        store.import_json(text)
    assert exc.value.reason == "invalid_json"
    assert store.get("natural") == PRESETS[PresetId.NATURAL].defaults
