import threading

import pytest
from fibergrade.realtime.smoothing import PredictionSmoother, RollingBuffer, coerce_label_set


def as_dict(ranking):
    return dict(ranking)


def test_empty_window_has_empty_ranking():
    sm = PredictionSmoother(["A", "B"])
    assert sm.current_ranking() == []
    assert len(sm) == 0


def test_running_mean_and_eviction_scenario():
    sm = PredictionSmoother(["A", "B"], history_size=3)
    sm.observe({"A": 0.9, "B": 0.1})
    sm.observe({"A": 0.6, "B": 0.4})
    sm.observe({"A": 0.3, "B": 0.7})
    ranking = sm.current_ranking()
    assert [label for label, _ in ranking] == ["A", "B"]
    assert as_dict(ranking)["A"] == pytest.approx(0.6)
    assert as_dict(ranking)["B"] == pytest.approx(0.4)

    sm.observe({"A": 0.0, "B": 1.0})
    ranking = sm.current_ranking()
    assert len(sm) == 3
    assert [label for label, _ in ranking] == ["B", "A"]
    assert as_dict(ranking)["A"] == pytest.approx(0.3)
    assert as_dict(ranking)["B"] == pytest.approx(0.7)


def test_window_is_bounded():
    sm = PredictionSmoother(["A"], history_size=10)
    for i in range(25):
        sm.observe({"A": 1.0})
        assert len(sm) == min(i + 1, 10)


def test_mean_divides_by_frames_held_not_capacity():
    sm = PredictionSmoother(["A", "B"], history_size=10)
    sm.observe({"A": 0.8, "B": 0.2})
    sm.observe({"A": 0.4, "B": 0.6})
    assert as_dict(sm.current_ranking()) == pytest.approx({"A": 0.6, "B": 0.4})


def test_absent_labels_count_as_zero_and_unknown_labels_are_ignored():
    sm = PredictionSmoother(["S2", "H", "EF"])
    sm.observe({"S2": 0.9, "BOGUS": 5.0})
    sm.observe([("H", 0.6)])
    ranking = as_dict(sm.current_ranking())
    assert set(ranking) == {"S2", "H", "EF"}
    assert ranking["S2"] == pytest.approx(0.45)
    assert ranking["H"] == pytest.approx(0.3)
    assert ranking["EF"] == 0.0


def test_ranking_is_descending_and_ties_keep_label_order():
    sm = PredictionSmoother(["C", "A", "B", "D"])
    sm.observe({"C": 0.2, "A": 0.5, "B": 0.2, "D": 0.1})
    sm.observe({"C": 0.3, "A": 0.1, "B": 0.3, "D": 0.3})
    ranking = sm.current_ranking()
    probs = [p for _, p in ranking]
    assert all(probs[i] >= probs[i + 1] for i in range(len(probs) - 1))
    # C and B tie at 0.25; C comes first in the label set
    assert [label for label, _ in ranking] == ["A", "C", "B", "D"]


def test_label_set_change_resets_history():
    sm = PredictionSmoother(["A", "B"], history_size=3)
    sm.observe({"A": 1.0})
    assert sm.set_labels(["A", "B"]) is False
    assert len(sm) == 1
    assert sm.set_labels(["X", "Y", "Z"]) is True
    assert len(sm) == 0
    assert sm.current_ranking() == []
    sm.observe({"Y": 0.5})
    assert sm.current_ranking()[0] == ("Y", 0.5)


@pytest.mark.parametrize("bad", [None, "AB", 42, ["A", 1], {"A": 1}])
def test_invalid_label_set_falls_back_to_empty(bad):
    assert coerce_label_set(bad) == []
    sm = PredictionSmoother(bad)
    sm.observe({"A": 1.0})
    assert len(sm) == 1
    assert sm.current_ranking() == []


def test_update_observes_then_ranks():
    sm = PredictionSmoother(["A", "B"], history_size=2)
    assert sm.update({"A": 0.2, "B": 0.8}) == [("B", 0.8), ("A", 0.2)]
    ranking = sm.update({"A": 1.0, "B": 0.0})
    assert as_dict(ranking) == pytest.approx({"A": 0.6, "B": 0.4})


def test_history_size_must_be_positive():
    with pytest.raises(ValueError):
        PredictionSmoother(["A"], history_size=0)


def test_rolling_buffer_drops_oldest():
    buf = RollingBuffer(2)
    for item in (1, 2, 3):
        buf.append(item)
    assert buf.get() == [2, 3]
    buf.clear()
    assert len(buf) == 0


def test_duplicate_labels_collapse_in_first_seen_order():
    assert coerce_label_set(["A", "B", "A"]) == ["A", "B"]
    sm = PredictionSmoother(["A", "A", "B"])
    sm.observe({"A": 0.5, "B": 0.2})
    assert sm.current_ranking() == [("A", 0.5), ("B", 0.2)]


def test_concurrent_observers_keep_window_bounded():
    sm = PredictionSmoother(["A", "B"], history_size=5)

    def producer():
        for _ in range(200):
            sm.observe({"A": 0.25, "B": 0.75})
            sm.current_ranking()

    threads = [threading.Thread(target=producer) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(sm) == 5
    assert sm.current_ranking() == [("B", 0.75), ("A", 0.25)]
