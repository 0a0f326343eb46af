# fibergrade/models/handle.py
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import numpy as np

from .classifier import GradeClassifier

logger = logging.getLogger(__name__)


class ModelHandle:
    """
    A reference to a classifier owned by a ModelLoader.
    Release it when done; the loader unloads the model after the last release.
    """

    def __init__(self, loader: "ModelLoader", model: GradeClassifier):
        self._loader = loader
        self._model: Optional[GradeClassifier] = model

    @property
    def model(self) -> GradeClassifier:
        if self._model is None:
            raise RuntimeError("ModelHandle used after release()")
        return self._model

    @property
    def released(self) -> bool:
        return self._model is None

    def get_label_set(self) -> List[str]:
        return self.model.get_label_set()

    def predict(self, image: np.ndarray) -> List[Tuple[str, float]]:
        return self.model.predict(image)

    def release(self) -> None:
        if self._model is None:
            return
        self._model = None
        self._loader._release()

    def __enter__(self) -> "ModelHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class ModelLoader:
    """
    Lazily loads one GradeClassifier from `model_dir` and shares it between handles.

    load() returns a new ModelHandle and bumps the reference count; the model is
    read from disk only on the first load() after construction or full release.
    """

    def __init__(self, model_dir: Path, load_fn: Callable[[Path], GradeClassifier] = GradeClassifier.load):
        self.model_dir = Path(model_dir)
        self._load_fn = load_fn
        self._lock = threading.Lock()
        self._model: Optional[GradeClassifier] = None
        self._refs = 0

    @property
    def refcount(self) -> int:
        return self._refs

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self) -> ModelHandle:
        with self._lock:
            if self._model is None:
                logger.info("Loading grade model from %s", self.model_dir)
                # ModelLoadError propagates; the refcount is untouched on failure
                self._model = self._load_fn(self.model_dir)
                logger.info("Model ready: labels=%s", self._model.labels)
            self._refs += 1
            return ModelHandle(self, self._model)

    def _release(self) -> None:
        with self._lock:
            self._refs = max(0, self._refs - 1)
            if self._refs == 0 and self._model is not None:
                logger.info("Last model handle released, unloading %s", self.model_dir)
                self._model = None
