"""Tests for YAML configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from promptmap.config import MapConfig
from promptmap.layout import LayoutParams
from promptmap.serializer import SerializeOptions


def test_defaults():
    cfg = MapConfig.default()
    assert cfg.layout_params() == LayoutParams(50, 20, 250, 50)
    assert cfg.serialize_options() == SerializeOptions(use_explicit_types=True)


def test_loads_overrides():
    cfg = MapConfig.loads(Path("promptmap.yml"), "node_width: 300\nexplicit_types: false\n")
    cfg.validate()
    assert cfg["node_width"] == 300
    assert cfg["vertical_gap"] == 20
    assert cfg.layout_params().node_width == 300.0
    assert not cfg.serialize_options().use_explicit_types


def test_load_file(tmp_path):
    path = tmp_path / "promptmap.yml"
    path.write_text("horizontal_gap: 80\n")
    cfg = MapConfig.load(path)
    cfg.validate()
    assert cfg.layout_params().horizontal_gap == 80.0
    assert cfg.get("missing") is None


def test_empty_file_is_valid(caplog):
    with caplog.at_level(logging.WARNING):
        cfg = MapConfig.loads(Path("empty.yml"), "")
        cfg.validate()
    assert cfg["node_height"] == 50
    assert not caplog.records


def test_invalid_yaml_is_logged(caplog):
    with caplog.at_level(logging.ERROR):
        cfg = MapConfig.loads(Path("bad.yml"), "node_width: [1, 2\n")
    assert cfg.data == {}
    assert "cannot parse" in caplog.text


def test_non_mapping_is_logged(caplog):
    with caplog.at_level(logging.ERROR):
        cfg = MapConfig.loads(Path("list.yml"), "- 1\n- 2\n")
    assert cfg.data == {}
    assert "invalid YAML" in caplog.text


def test_unknown_key_is_logged(caplog):
    cfg = MapConfig.loads(Path("x.yml"), "colour: red\n")
    with caplog.at_level(logging.WARNING):
        cfg.validate()
    assert "unknown key 'colour'" in caplog.text


def test_validate_defaults_do_not_override_file():
    cfg = MapConfig.loads(None, "node_width: 300\n")
    cfg.validate(node_width=100, node_height=80)
    assert cfg["node_width"] == 300
    assert cfg["node_height"] == 80
