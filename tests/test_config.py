from pathlib import Path

import pytest

from fibergrade.config import DEFAULTS, load_config, loop_config, model_dir
from fibergrade.errors import ConfigError


def test_defaults_without_file():
    cfg = load_config(None)
    assert cfg == DEFAULTS
    assert cfg is not DEFAULTS
    lc = loop_config(cfg)
    assert lc.history_size == 10
    assert lc.sentinel_labels == ("UNCLASSIFIED", "EMPTY")


def test_user_file_overrides_nested_values(tmp_path: Path):
    p = tmp_path / "cfg.yaml"
    p.write_text("output_dir: out\nrealtime:\n  history_size: 4\n  fiber_type: pina\n", encoding="utf-8")
    cfg = load_config(p)
    assert model_dir(cfg) == Path("out") / "model"
    lc = loop_config(cfg)
    assert lc.history_size == 4
    assert lc.fiber_type == "pina"
    assert lc.top_k == 3


def test_shipped_default_config_loads():
    cfg = load_config(Path(__file__).resolve().parent.parent / "configs" / "default.yaml")
    assert loop_config(cfg).history_size == 10


@pytest.mark.parametrize("text", ["- a\n- b\n", "realtime: [1,\n"])
def test_bad_config_raises(tmp_path: Path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(p)


def test_missing_config_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_realtime_value_raises():
    cfg = load_config(None)
    cfg["realtime"]["history_size"] = "ten"
    with pytest.raises(ConfigError):
        loop_config(cfg)


@pytest.mark.parametrize("key", ["history_size", "target_fps", "top_k"])
def test_non_positive_realtime_values_raise(key):
    cfg = load_config(None)
    cfg["realtime"][key] = 0
    with pytest.raises(ConfigError):
        loop_config(cfg)
