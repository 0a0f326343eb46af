# fibergrade/models/classifier.py
from __future__ import annotations

import json
import logging
import pickle
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import numpy as np
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import classification_report, confusion_matrix
import sklearn

from ..errors import InferenceError, ModelLoadError
from ..features import ImageFeatureExtractor
from ..realtime.smoothing import coerce_label_set

logger = logging.getLogger(__name__)

MODEL_FILE = "model.pkl"
METADATA_FILE = "metadata.json"


@dataclass
class GradeClassifier:
    clf: Any
    labels: List[str]
    feature_names: List[str]
    image_size: int = 224
    extractor: ImageFeatureExtractor = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.extractor = ImageFeatureExtractor(image_size=self.image_size)

    # ---------- Train / Eval ----------
    @staticmethod
    def train_rf(
        X: np.ndarray, y: np.ndarray, labels: List[str], feature_names: List[str], image_size: int = 224,
        n_estimators: int = 300, max_depth: Optional[int] = None, class_weight: str = "balanced_subsample",
        random_state: int = 42
    ) -> "GradeClassifier":
        clf = RandomForestClassifier(
            n_estimators=n_estimators,
            max_depth=max_depth,
            class_weight=class_weight,
            n_jobs=-1,
            random_state=random_state,
        )
        clf.fit(X, y)
        return GradeClassifier(clf=clf, labels=list(labels), feature_names=feature_names, image_size=image_size)

    def evaluate(self, X: np.ndarray, y: np.ndarray, split_name: str, out_dir: Path) -> Tuple[float, str, np.ndarray]:
        y_pred = self.clf.predict(X)
        acc = float(np.mean(y_pred == y))

        # Only use grades that are actually present in this dataset split
        unique_classes = sorted(set(int(v) for v in y))
        present_names = [self.labels[i] for i in unique_classes if i < len(self.labels)]

        logger.info("[%s] Grades present: %s", split_name, present_names)

        report = classification_report(y, y_pred, target_names=present_names,
                                       labels=unique_classes, digits=4, zero_division=0)
        cm = confusion_matrix(y, y_pred, labels=unique_classes)

        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / f"classification_report_{split_name}.txt").write_text(report, encoding="utf-8")
        np.savetxt(out_dir / f"cm_{split_name}.csv", cm.astype(int), fmt="%d", delimiter=",")
        logger.info("[%s] accuracy=%.4f", split_name, acc)
        logger.info("[%s] report:\n%s", split_name, report)
        return acc, report, cm

    # ---------- Save / Load ----------
    def save(self, model_dir: Path) -> None:
        model_dir = Path(model_dir)
        model_dir.mkdir(parents=True, exist_ok=True)
        with open(model_dir / MODEL_FILE, "wb") as f:
            pickle.dump(self.clf, f)
        meta = {
            "labels": self.labels,
            "sklearn_version": sklearn.__version__,
            "feature_names": self.feature_names,
            "image_size": int(self.image_size),
        }
        with open(model_dir / METADATA_FILE, "w", encoding="utf-8") as f:
            json.dump(meta, f, indent=2)
        logger.info("Saved model -> %s", str(model_dir / MODEL_FILE))
        logger.info("Saved metadata -> %s", str(model_dir / METADATA_FILE))

    @staticmethod
    def load(model_dir: Path) -> "GradeClassifier":
        model_dir = Path(model_dir)
        model_path = model_dir / MODEL_FILE
        meta_path = model_dir / METADATA_FILE
        try:
            with open(model_path, "rb") as f:
                clf = pickle.load(f)
            with open(meta_path, "r", encoding="utf-8") as f:
                meta = json.load(f)
        except (OSError, EOFError, pickle.UnpicklingError, json.JSONDecodeError) as e:
            logger.error("Failed to load the model from %s: %s", model_dir, e)
            raise ModelLoadError("Could not load classification model.") from e

        # A broken label list must not take the app down; it just classifies nothing
        labels = coerce_label_set(meta.get("labels"))
        feature_names = meta.get("feature_names", [])
        image_size = int(meta.get("image_size", 224))
        meta_ver = meta.get("sklearn_version")
        if meta_ver and meta_ver != sklearn.__version__:
            logger.warning(
                "sklearn version mismatch: trained with %s, current %s. Proceeding anyway.",
                meta_ver, sklearn.__version__,
            )
        return GradeClassifier(clf=clf, labels=labels, feature_names=feature_names, image_size=image_size)

    # ---------- Predict ----------
    def get_label_set(self) -> List[str]:
        return list(self.labels)

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        return self.clf.predict_proba(X)

    def predict(self, image: np.ndarray) -> List[Tuple[str, float]]:
        """
        Classify one image. Returns (label, probability) pairs in label-set order,
        one per grade the estimator was fitted on.
        """
        try:
            feats, _ = self.extractor(image)
            probs = self.predict_proba(feats.reshape(1, -1))[0]
        except Exception as e:
            raise InferenceError(f"Inference failed: {e}") from e

        by_label = {}
        for class_idx, p in zip(self.clf.classes_, probs):
            idx = int(class_idx)
            if 0 <= idx < len(self.labels):
                by_label[self.labels[idx]] = float(p)
        return [(label, by_label[label]) for label in self.labels if label in by_label]
