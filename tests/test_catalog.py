import pytest
from fibergrade.catalog import ABACA, PINA, analyze, get_fiber_details, list_grades


def test_known_abaca_grade():
    d = get_fiber_details(ABACA, "S2")
    assert d.price == "$2.80 - $3.10"
    assert "Marine ropes" in d.uses


def test_known_pina_grade():
    assert get_fiber_details(PINA, "Lino").price == "$20 - $25 /m"


def test_unknown_grade_is_not_determined():
    d = get_fiber_details(ABACA, "Unknown")
    assert "could not be determined" in d.description
    assert d.price == "N/A"


def test_unlisted_grade_and_unknown_fiber():
    d = get_fiber_details(PINA, "Z9")
    assert d.description == "No specific details found for Piña grade Z9."
    assert d.uses == ["General piña uses"]
    d = get_fiber_details("hemp", "S2")
    assert d.description == "No details found for fiber type hemp and grade S2."
    assert d.uses == ["N/A"]


def test_list_grades_order_and_placeholders():
    abaca = list_grades(ABACA)
    assert [g.grade for g in abaca] == ["S2", "S3", "H", "G", "JK", "M1", "Y1", "Y2", "I", "EF"]
    assert abaca[0].image_url.endswith("text=S2")
    assert [g.grade for g in list_grades(PINA)] == ["Lino", "Bastos", "Seda", "Jusi"]
    with pytest.raises(ValueError):
        list_grades("hemp")


def test_analyze_merges_prediction_with_details():
    r = analyze(("H", 0.87))
    assert r.grade == "H"
    assert r.confidence == pytest.approx(0.87)
    assert r.price == "$1.70 - $2.00"
    assert r.to_dict()["uses"] == ["Industrial twines", "General cordage", "Paper pulp"]


def test_analyze_falls_back_when_lookup_fails():
    def broken(fiber, grade):
        raise RuntimeError("boom")

    r = analyze(("S3", 0.5), details_fn=broken)
    assert r.grade == "S3"
    assert r.price == "N/A"
    assert r.uses == ["-"]
