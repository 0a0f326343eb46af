from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple
import threading
import time
import logging
import numpy as np
import cv2

from ..catalog import ABACA, UNKNOWN_GRADE, AnalysisResult, analyze
from ..errors import InferenceError
from ..models.handle import ModelHandle, ModelLoader
from ..storage import to_data_url
from ..ui.overlay import draw_ranking
from .smoothing import DEFAULT_HISTORY_SIZE, PredictionSmoother, Ranking

LOGGER = logging.getLogger(__name__)

KEY_ESC = 27
KEY_SPACE = 32


@dataclass
class LoopConfig:
    camera_index: int = 0
    target_fps: int = 15
    history_size: int = DEFAULT_HISTORY_SIZE
    mirror_input: bool = False
    sentinel_labels: Tuple[str, ...] = ("UNCLASSIFIED", "EMPTY")
    top_k: int = 3
    fiber_type: str = ABACA
    jpeg_quality: int = 90
    window_title: str = "Fiber Grade Scanner"


@dataclass
class CaptureResult:
    image_url: str
    prediction: Tuple[str, float]
    analysis: AnalysisResult
    ranking: Ranking = field(default_factory=list)


def encode_jpeg(frame_bgr: np.ndarray, quality: int = 90) -> str:
    ok, buf = cv2.imencode(".jpg", frame_bgr, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        raise ValueError("Failed to JPEG-encode frame")
    return to_data_url(buf.tobytes(), "image/jpeg")


def classify_still(handle: ModelHandle, image: np.ndarray) -> Ranking:
    """Single unsmoothed prediction for an uploaded image, best grade first."""
    preds = sorted(handle.predict(image), key=lambda kv: kv[1], reverse=True)
    if not preds:
        LOGGER.warning("Model returned no predictions for still image")
        return [(UNKNOWN_GRADE, 0.0)]
    return preds


class CaptureLoop:
    """
    Polls a camera, classifies each frame and keeps a smoothed grade ranking.

    The model comes from a ModelLoader passed in by the caller; the loop holds one
    handle for its lifetime and releases it when run() exits or close() is called.
    stop() may be called from any thread (or from an on_capture callback); it is
    checked before every frame is captured.
    """

    def __init__(self, loader: ModelLoader, loop_cfg: Optional[LoopConfig] = None):
        self.cfg = loop_cfg or LoopConfig()
        self.handle = loader.load()
        try:
            self.smoother = PredictionSmoother(self.handle.get_label_set(), history_size=self.cfg.history_size)
        except Exception:
            self.handle.release()
            raise
        self.ranking: Ranking = []
        self._stop = threading.Event()
        self._sentinels = {s.upper() for s in self.cfg.sentinel_labels}

        LOGGER.info("history_size=%d fiber=%s labels=%s",
                    self.cfg.history_size, self.cfg.fiber_type, self.smoother.labels)

    # ---------- per-frame logic ----------
    def step(self, frame_bgr: np.ndarray) -> Ranking:
        # picks up a reloaded model with a different label set
        self.smoother.set_labels(self.handle.get_label_set())
        preds = self.handle.predict(frame_bgr)
        self.ranking = self.smoother.update(preds)
        if LOGGER.isEnabledFor(logging.DEBUG):
            LOGGER.debug("raw=%s smoothed=%s",
                         [(l, round(p, 3)) for l, p in preds],
                         [(l, round(p, 3)) for l, p in self.ranking[:self.cfg.top_k]])
        return self.ranking

    def can_capture(self) -> bool:
        if not self.ranking:
            return False
        return self.ranking[0][0].upper() not in self._sentinels

    def capture(self, frame_bgr: np.ndarray) -> Optional[CaptureResult]:
        if not self.can_capture():
            LOGGER.info("Capture ignored: top prediction is %s",
                        self.ranking[0][0] if self.ranking else None)
            return None
        top = self.ranking[0]
        result = CaptureResult(
            image_url=encode_jpeg(frame_bgr, self.cfg.jpeg_quality),
            prediction=top,
            analysis=analyze(top, self.cfg.fiber_type),
            ranking=list(self.ranking),
        )
        LOGGER.info("Captured %s conf=%.3f", top[0], top[1])
        return result

    # ---------- lifecycle ----------
    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def close(self) -> None:
        self.handle.release()

    def run(self, camera_index: Optional[int] = None, show: bool = True,
            on_capture: Optional[Callable[[CaptureResult], None]] = None) -> None:
        cam_idx = camera_index if camera_index is not None else self.cfg.camera_index
        cap = cv2.VideoCapture(cam_idx)
        if not cap.isOpened():
            LOGGER.error("Failed to open camera index %s", cam_idx)
            cap.release()
            self.close()
            return

        target_delay = 1.0 / max(1, self.cfg.target_fps)

        try:
            while not self._stop.is_set():
                t_start = time.time()
                ret, frame = cap.read()
                if not ret:
                    LOGGER.warning("Camera returned no frame, stopping")
                    break
                if self.cfg.mirror_input:
                    frame = cv2.flip(frame, 1)

                try:
                    self.step(frame)
                except InferenceError as e:
                    LOGGER.warning("Skipping frame: %s", e)

                key = -1
                if show:
                    display = frame.copy()
                    draw_ranking(display, self.ranking, self.cfg.top_k, self.can_capture())
                    cv2.imshow(self.cfg.window_title, display)
                    key = cv2.waitKey(1) & 0xFF

                if key == KEY_ESC:
                    break
                if key == KEY_SPACE:
                    result = self.capture(frame)
                    if result is not None and on_capture is not None:
                        on_capture(result)

                # timing
                delay = target_delay - (time.time() - t_start)
                if delay > 0:
                    self._stop.wait(delay)
        finally:
            cap.release()
            if show:
                cv2.destroyAllWindows()
            self.close()
