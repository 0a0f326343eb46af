import numpy as np
from fibergrade.ui.overlay import draw_ranking


def test_draw_ranking_paints_panel():
    frame = np.full((240, 320, 3), 255, dtype=np.uint8)
    draw_ranking(frame, [("S2", 0.8), ("H", 0.15), ("EF", 0.05)], top_k=3, capture_enabled=True)
    # bottom panel is drawn over the white frame, top is untouched
    assert (frame[-5, 5] == 0).all()
    assert (frame[0, 0] == 255).all()


def test_draw_ranking_without_predictions():
    frame = np.zeros((240, 320, 3), dtype=np.uint8)
    draw_ranking(frame, [], top_k=3)
    assert frame.any()
