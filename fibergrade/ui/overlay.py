from __future__ import annotations
from typing import List, Tuple
import cv2
import numpy as np

GREEN = (128, 222, 74)
DIM_GREEN = (40, 90, 30)
GREY = (160, 160, 160)
BLACK = (0, 0, 0)


def draw_ranking(frame_bgr: np.ndarray, ranking: List[Tuple[str, float]], top_k: int = 3,
                 capture_enabled: bool = False, waiting_text: str = "Waiting for prediction...") -> None:
    """Header with the top grade, then one percentage bar per ranked grade."""
    h, w = frame_bgr.shape[:2]
    panel_h = 60 + 30 * max(1, top_k)
    y_top = max(0, h - panel_h)
    cv2.rectangle(frame_bgr, (0, y_top), (w, h), BLACK, -1)

    if not ranking:
        cv2.putText(frame_bgr, waiting_text, (20, y_top + 35), cv2.FONT_HERSHEY_SIMPLEX, 0.7, GREY, 2, cv2.LINE_AA)
        return

    top_label = ranking[0][0]
    header = f"Grade: {top_label}"
    cv2.putText(frame_bgr, header, (20, y_top + 35), cv2.FONT_HERSHEY_SIMPLEX, 0.9, GREEN, 2, cv2.LINE_AA)
    hint = "[SPACE] capture" if capture_enabled else "capture disabled"
    cv2.putText(frame_bgr, hint, (max(20, w - 220), y_top + 35), cv2.FONT_HERSHEY_SIMPLEX, 0.5,
                GREEN if capture_enabled else GREY, 1, cv2.LINE_AA)

    bar_x0 = 120
    bar_w = max(50, w - bar_x0 - 90)
    for i, (label, prob) in enumerate(ranking[:top_k]):
        y0 = y_top + 55 + i * 30
        pct = float(np.clip(prob, 0.0, 1.0))
        cv2.putText(frame_bgr, label, (20, y0 + 18), cv2.FONT_HERSHEY_SIMPLEX, 0.6,
                    GREEN if i == 0 else GREY, 1, cv2.LINE_AA)
        cv2.rectangle(frame_bgr, (bar_x0, y0), (bar_x0 + bar_w, y0 + 22), DIM_GREEN, -1)
        cv2.rectangle(frame_bgr, (bar_x0, y0), (bar_x0 + int(bar_w * pct), y0 + 22), GREEN, -1)
        cv2.putText(frame_bgr, f"{pct * 100:.1f}%", (bar_x0 + bar_w + 10, y0 + 18),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, GREY, 1, cv2.LINE_AA)
