# fibergrade/config.py
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .realtime.capture_loop import LoopConfig

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "dataset_root": "data",
    "output_dir": "outputs",
    "cache_dir": "outputs/image_cache",
    "image_size": 224,
    "model": {
        "classical": {
            "n_estimators": 300,
            "max_depth": None,
            "class_weight": "balanced_subsample",
        },
    },
    "realtime": {
        "camera_index": 0,
        "target_fps": 15,
        "history_size": 10,
        "mirror_input": False,
        "sentinel_labels": ["UNCLASSIFIED", "EMPTY"],
        "top_k": 3,
        "fiber_type": "abaca",
        "jpeg_quality": 90,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Read a YAML config and fill in anything it leaves out from DEFAULTS."""
    if path is None:
        return copy.deepcopy(DEFAULTS)
    p = Path(path)
    try:
        with open(p, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {p}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config {p} must be a mapping, got {type(cfg).__name__}")
    logger.info("Loaded config from %s", p)
    return _merge(DEFAULTS, cfg)


def model_dir(cfg: Dict[str, Any]) -> Path:
    return Path(cfg.get("output_dir", "outputs")) / "model"


def loop_config(cfg: Dict[str, Any]) -> LoopConfig:
    rt = cfg.get("realtime", {})
    try:
        lc = LoopConfig(
            camera_index=int(rt.get("camera_index", 0)),
            target_fps=int(rt.get("target_fps", 15)),
            history_size=int(rt.get("history_size", 10)),
            mirror_input=bool(rt.get("mirror_input", False)),
            sentinel_labels=tuple(str(s) for s in rt.get("sentinel_labels", ("UNCLASSIFIED", "EMPTY"))),
            top_k=int(rt.get("top_k", 3)),
            fiber_type=str(rt.get("fiber_type", "abaca")),
            jpeg_quality=int(rt.get("jpeg_quality", 90)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid realtime config: {e}") from e
    for name in ("history_size", "target_fps", "top_k"):
        if getattr(lc, name) < 1:
            raise ConfigError(f"realtime.{name} must be >= 1, got {getattr(lc, name)}")
    return lc
