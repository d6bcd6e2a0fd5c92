import pytest

from dynval.valuation import global_minmax, logistic, minmax_score, normalize_adp, position_minmax


def test_global_minmax_inverts_adp():
    scores = global_minmax({"a": 1.0, "b": 50.0, "c": 100.0})

    assert scores["a"] == 100.0
    assert scores["b"] == pytest.approx(50.51, abs=0.01)
    assert scores["c"] == 0.0


def test_degenerate_range_returns_midpoint():
    assert global_minmax({"a": 12.0, "b": 12.0}) == {"a": 50.0, "b": 50.0}
    assert minmax_score(3.0, 3.0, 3.0) == 50.0
    assert logistic(3.0, 3.0, 3.0) == 50.0


def test_empty_input_is_empty():
    assert global_minmax({}) == {}
    assert normalize_adp([], mode="logistic") == {}


def test_scores_are_bounded_and_rounded():
    adps = [1.0, 2.5, 7.3, 19.9, 44.4, 101.1, 250.0]
    rows = [(f"p{i}", "WR" if i % 2 else "RB", adp) for i, adp in enumerate(adps)]
    for mode in ("global", "position", "logistic"):
        for score in normalize_adp(rows, mode=mode).values():
            assert 0.0 <= score <= 100.0
            assert score == round(score, 2)


def test_position_minmax_scales_within_bucket():
    rows = [
        ("rb1", "RB", 1.0),
        ("rb2", "RB", 21.0),
        ("qb1", "QB", 30.0),
        ("qb2", "QB", 90.0),
    ]
    scores = position_minmax(rows)
    assert scores == {"rb1": 100.0, "rb2": 0.0, "qb1": 100.0, "qb2": 0.0}

    raw = position_minmax(rows, invert=False)
    assert raw["qb1"] == 0.0
    assert raw["qb2"] == 100.0


def test_position_mode_skips_rows_without_position():
    scores = normalize_adp([("a", "RB", 1.0), ("b", None, 2.0), ("c", "RB", 3.0)], mode="position")
    assert set(scores) == {"a", "c"}

    assert set(normalize_adp([("a", "RB", 1.0), ("b", None, 2.0)], mode="global")) == {"a", "b"}


def test_logistic_is_symmetric_around_midpoint():
    scores = normalize_adp([("a", "RB", 0.0), ("b", "RB", 50.0), ("c", "RB", 100.0)], mode="logistic")

    assert scores["a"] == pytest.approx(99.33, abs=0.01)
    assert scores["b"] == 50.0
    assert scores["c"] == pytest.approx(0.67, abs=0.01)


def test_logistic_steepness_controls_spread():
    gentle = logistic(25.0, 0.0, 100.0, steepness=2.0)
    steep = logistic(25.0, 0.0, 100.0, steepness=20.0)
    assert 50.0 < gentle < steep


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        normalize_adp([("a", "RB", 1.0)], mode="zscore")
