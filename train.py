# train.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Tuple

import numpy as np

from fibergrade.config import load_config, model_dir as cfg_model_dir
from fibergrade.dataio import FiberDataset, Sample
from fibergrade.errors import FiberGradeError
from fibergrade.features import ImageFeatureExtractor
from fibergrade.models.classifier import GradeClassifier

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("train")


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Train the fiber grade classifier")
    ap.add_argument("--config", type=str, required=True)
    return ap.parse_args()


def build_features(samples: List[Sample], extractor: ImageFeatureExtractor) -> Tuple[np.ndarray, np.ndarray, List[str]]:
    """
    Returns X (N,F), y (N,), feature_names
    """
    if len(samples) == 0:
        raise RuntimeError("No samples to build features from.")

    X_list: List[np.ndarray] = []
    y_list: List[int] = []
    feat_names: List[str] = []
    for s in samples:
        feats, names = extractor(s.image)
        if not feat_names:
            feat_names = names
        X_list.append(feats)
        y_list.append(s.label_index)

    X = np.vstack(X_list).astype(np.float32)
    y = np.asarray(y_list, dtype=np.int64)
    return X, y, feat_names


def main() -> int:
    args = parse_args()
    try:
        cfg = load_config(Path(args.config))
    except FiberGradeError as e:
        log.error("%s", e)
        return 2

    dataset_root = Path(cfg["dataset_root"])
    output_dir = Path(cfg.get("output_dir", "outputs"))
    image_size = int(cfg.get("image_size", 224))

    log.info("Config: dataset_root=%s  output_dir=%s  image_size=%d",
             str(dataset_root), str(output_dir), image_size)

    ds = FiberDataset(dataset_root=dataset_root, labels=cfg.get("labels"), load_images=True)
    train_samples, val_samples = ds.load_all()

    extractor = ImageFeatureExtractor(image_size=image_size)
    X_train, y_train, feat_names = build_features(train_samples, extractor)
    X_val, y_val, _ = build_features(val_samples, extractor)

    rf_cfg = cfg.get("model", {}).get("classical", {})
    model = GradeClassifier.train_rf(
        X_train, y_train, labels=ds.labels, feature_names=feat_names, image_size=image_size,
        n_estimators=int(rf_cfg.get("n_estimators", 300)),
        max_depth=rf_cfg.get("max_depth", None),
        class_weight=rf_cfg.get("class_weight", "balanced_subsample"),
    )

    model.evaluate(X_train, y_train, "train", output_dir)
    model.evaluate(X_val, y_val, "val", output_dir)
    model.save(cfg_model_dir(cfg))

    log.info("Training complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
