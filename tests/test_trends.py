from datetime import date, timedelta

import pytest

from dynval.models import DailyValueRecord, PlayerRecord
from dynval.persistence import ValueStore
from dynval.valuation import TrendWindow, format_dynasty_value, rolling_deltas, trend_indicator


AS_OF = date(2025, 3, 15)


def test_window_bounds_are_half_open():
    window = TrendWindow(7)
    assert window.field == "trend_7d"
    assert window.bounds(AS_OF) == (date(2025, 3, 8), AS_OF)


def test_rolling_deltas_against_mean():
    history = [("a", 40.0), ("a", 50.0), ("b", None), ("b", 70.0)]
    deltas = rolling_deltas({"a": 60.0, "b": 65.0}, history)
    assert deltas == {"a": 15.0, "b": -5.0}


def test_players_without_history_are_omitted():
    deltas = rolling_deltas({"a": 60.0, "new": 55.0, "gone": None}, [("a", 60.0), ("gone", 10.0), ("new", None)])
    assert deltas == {"a": 0.0}


def test_ten_days_of_history(tmp_path, monkeypatch):
    monkeypatch.delenv("DYNVAL_DB_PATH", raising=False)
    store = ValueStore(tmp_path / "trends.sqlite")
    store.upsert_players([PlayerRecord(player_id="a", name="A", position="WR", age=25)])
    store.upsert_values(
        DailyValueRecord(as_of=AS_OF - timedelta(days=k), player_id="a", dynasty_value=40.0 + k)
        for k in range(1, 11)
    )

    latest = {"a": 60.0}
    week = rolling_deltas(latest, store.history(*TrendWindow(7).bounds(AS_OF)))
    month = rolling_deltas(latest, store.history(*TrendWindow(30).bounds(AS_OF)))

    # Days 1..7 average 44, days 1..10 average 45.5.
    assert week == {"a": pytest.approx(16.0)}
    assert month == {"a": pytest.approx(14.5)}


def test_display_helpers():
    assert format_dynasty_value(None) == "N/A"
    assert format_dynasty_value(87.456) == "87.5"
    assert trend_indicator(None) == ""
    assert trend_indicator(2.5) == "↗"
    assert trend_indicator(-0.1) == "↘"
    assert trend_indicator(0.0) == "→"
