from __future__ import annotations
import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

Ranking = List[Tuple[str, float]]
FramePrediction = Union[Mapping[str, float], Iterable[Tuple[str, float]]]

DEFAULT_HISTORY_SIZE = 10


class RollingBuffer:
    def __init__(self, maxlen: int):
        self.maxlen = maxlen
        self._buf: Deque = deque(maxlen=maxlen)

    def append(self, item):
        self._buf.append(item)

    def get(self):
        return list(self._buf)

    def __len__(self):
        return len(self._buf)

    def clear(self):
        self._buf.clear()


def coerce_label_set(labels: Any) -> List[str]:
    """
    Validate a label set reported by a model.
    Anything that is not an ordered sequence of strings becomes an empty label set.
    """
    if isinstance(labels, (str, bytes)) or not isinstance(labels, Sequence):
        logger.error("Model label set is not a sequence: %r", labels)
        return []
    if not all(isinstance(label, str) for label in labels):
        logger.error("Model label set contains non-string entries: %r", labels)
        return []
    # duplicates collapse, first occurrence keeps its position
    return list(dict.fromkeys(labels))


def _frame_pairs(frame: FramePrediction) -> Tuple[Tuple[str, float], ...]:
    items = frame.items() if isinstance(frame, Mapping) else frame
    return tuple((label, float(prob)) for label, prob in items)


class PredictionSmoother:
    """
    Averages per-frame class probabilities over the last `history_size` frames.

    observe() appends a frame and evicts the oldest once the window is full;
    current_ranking() returns (label, mean probability) for every label of the
    label set, highest first. Labels missing from a frame count as 0 for that
    frame, labels outside the label set are ignored. The mean is taken over the
    frames actually held, so it is a true running mean while the window fills.
    """

    def __init__(self, labels: Sequence[str], history_size: int = DEFAULT_HISTORY_SIZE):
        if history_size < 1:
            raise ValueError(f"history_size must be >= 1, got {history_size}")
        self.history_size = history_size
        self.labels: List[str] = coerce_label_set(labels)
        self.history = RollingBuffer(history_size)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self.history)

    def set_labels(self, labels: Sequence[str]) -> bool:
        """Switch to a new label set. Returns True (and clears history) if it changed."""
        new_labels = coerce_label_set(labels)
        with self._lock:
            if new_labels == self.labels:
                return False
            logger.info("Label set changed (%d -> %d labels), resetting history",
                        len(self.labels), len(new_labels))
            self.labels = new_labels
            self.history.clear()
        return True

    def reset(self) -> None:
        with self._lock:
            self.history.clear()

    def observe(self, frame: FramePrediction) -> None:
        pairs = _frame_pairs(frame)
        with self._lock:
            self.history.append(pairs)

    def current_ranking(self) -> Ranking:
        with self._lock:
            frames = self.history.get()
            labels = list(self.labels)
        if not frames:
            return []
        sums: Dict[str, float] = {label: 0.0 for label in labels}
        for pairs in frames:
            for label, prob in pairs:
                if label in sums:
                    sums[label] += prob
        n = len(frames)
        averaged = [(label, sums[label] / n) for label in labels]
        # list.sort is stable with reverse=True, so ties keep label-set order
        averaged.sort(key=lambda kv: kv[1], reverse=True)
        return averaged

    def update(self, frame: FramePrediction) -> Ranking:
        """
        observe() + current_ranking() as one step. Every method takes the same
        reentrant lock, so a concurrent writer cannot land between the two.
        """
        with self._lock:
            self.observe(frame)
            return self.current_ranking()
