import pytest

from glowface.config import DEFAULTS, load_and_merge, load_yaml, merge_config


def test_defaults_without_yaml():
    cfg = load_and_merge(None)
    assert cfg["filter"]["preset"] == "natural"
    assert cfg["camera"]["width"] == 1280
    assert cfg["overlay"] == {"mesh": False, "hands": False}


def test_yaml_then_cli_precedence(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("filter:\n  preset: rosy\ncamera:\n  index: 2\n  mirror: false\n", encoding="utf-8")
    cfg = load_and_merge(p, {"camera": {"index": 3}})
    assert cfg["filter"]["preset"] == "rosy"
    assert cfg["filter"]["enabled"] is True
    assert cfg["camera"]["index"] == 3
    assert cfg["camera"]["mirror"] is False
    assert cfg["camera"]["height"] == 720


def test_merge_does_not_mutate_defaults():
    merge_config({"camera": {"index": 7}})
    assert DEFAULTS["camera"]["index"] == 0


def test_missing_yaml_uses_defaults(tmp_path, caplog):
    assert load_yaml(tmp_path / "nope.yaml") == {}
    assert "not found" in caplog.text


def test_non_mapping_yaml_rejected(tmp_path):
    p = tmp_path / "cfg.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(p)


def test_unknown_preset_rejected():
    with pytest.raises(ValueError, match="Unknown filter preset"):
        merge_config(cli_overrides={"filter": {"preset": "vintage"}})
