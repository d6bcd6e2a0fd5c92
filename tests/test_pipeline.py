import asyncio
import sqlite3
from datetime import date, timedelta

import pytest

from dynval.config import PipelineSettings, get_profile
from dynval.errors import BatchWriteError, FetchError, PipelineTimeout
from dynval.ingest import (
    AdpFetch,
    StaticAdpSource,
    StaticRosterSource,
    SyntheticAdpSource,
    UnmatchedAdp,
    parse_roster,
)
from dynval.models import AdpRow, DailyValueRecord, PlayerRecord
from dynval.persistence import ValueStore
from dynval.pipeline import (
    STAGES,
    ValuationPipeline,
    filter_roster,
    run_valuation_pipeline,
    run_valuation_pipeline_async,
    score_player,
)


AS_OF = date(2025, 3, 15)


def _player(position: str, age, **extra) -> dict:
    payload = {"full_name": f"{position} Player", "position": position, "team": "ATL", "age": age, "active": True}
    payload.update(extra)
    return payload


def _three_player_roster() -> dict:
    return {
        "qb": _player("QB", 28, full_name="Quinn Passer"),
        "rb": _player("RB", 24, full_name="Remy Back"),
        "wr": _player("WR", 26, full_name="Walt Wide"),
    }


def _three_player_adp() -> list[dict]:
    return [
        {"player_id": "qb", "adp": 1},
        {"player_id": "rb", "adp": 50},
        {"player_id": "wr", "adp": 100},
    ]


async def _run(store, roster, adp, *, as_of=AS_OF, settings=None, adp_source=None):
    return await run_valuation_pipeline_async(
        as_of,
        store=store,
        roster_source=StaticRosterSource(roster),
        adp_source=adp_source or StaticAdpSource(adp),
        settings=settings or PipelineSettings(),
    )


class FailingRosterSource:
    source_tag = "sleeper_players"

    async def fetch(self):
        raise FetchError("sleeper_players", "unexpected status 500", status_code=500)


class SlowRosterSource:
    source_tag = "slow"

    async def fetch(self):
        await asyncio.sleep(5)
        return {}


class SlowAdpSource:
    source_tag = "ffc_adp"
    source_kind = "market"
    requires_roster = False

    def __init__(self):
        self.finished = False
        self.cancelled = False

    async def fetch(self, roster=None):
        try:
            await asyncio.sleep(0.2)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        raise FetchError("ffc_adp", "unexpected status 503", status_code=503)


class PresetAdpSource:
    source_tag = "ffc_adp"
    source_kind = "market"
    requires_roster = False

    def __init__(self, fetch: AdpFetch):
        self._fetch = fetch

    async def fetch(self, roster=None):
        return self._fetch


class FlakyStore(ValueStore):
    def __init__(self, db_path, fail_on_call: int):
        super().__init__(db_path)
        self.fail_on_call = fail_on_call
        self.calls = 0

    def upsert_values(self, records):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise sqlite3.OperationalError("database is locked")
        return super().upsert_values(records)


def test_filter_roster_keeps_only_fantasy_relevant_players():
    roster = parse_roster(
        {
            "ok": _player("wr", 23),
            "inactive": _player("WR", 23, active=False),
            "unknown_active": _player("WR", 23, active=None),
            "lineman": _player("OL", 26),
            "no_age": _player("RB", None),
            "too_old": _player("QB", 51),
            "too_young": _player("K", 17),
        }
    )
    players = filter_roster(roster, PipelineSettings())

    assert list(players) == ["ok"]
    assert players["ok"].position == "WR"


@pytest.mark.parametrize("market", [None, 0.0, 62.5])
@pytest.mark.parametrize("age", [None, 19, 31])
@pytest.mark.parametrize("profile_name", ["market_age", "projection", "full"])
def test_dynasty_value_is_null_only_when_a_component_is_missing(market, age, profile_name):
    player = PlayerRecord(player_id="x", name="X", position="RB", age=age)

    record = score_player(player, market, get_profile(profile_name), as_of=AS_OF, risk=100.0)

    missing = market is None or age is None
    assert (record.dynasty_value is None) == missing
    assert (record.age_score is None) == missing


def test_score_player_age_score_has_floor():
    record = score_player(
        PlayerRecord(player_id="x", name="X", position="WR", age=26), 0.0, get_profile("market_age"), as_of=AS_OF
    )
    assert record.age_score == 1.0
    assert record.dynasty_value == 0.25


async def test_non_relevant_player_is_never_persisted(store):
    roster = {"A": _player("RB", 24), "B": _player("OL", 26)}
    adp = [{"playerId": "A", "adp": 2}, {"playerId": "B", "adp": 5}]

    report = await _run(store, roster, adp)

    values = store.get_values(AS_OF)
    assert [record.player_id for record in values] == ["A"]
    assert values[0].market_value > 50
    assert values[0].dynasty_value is not None
    assert store.get_player("B") is None
    assert report.stage == STAGES[-1]
    assert (report.roster_players, report.active_players, report.eligible_players) == (2, 2, 1)
    assert report.valid_values == 1


async def test_global_normalization_end_to_end(store):
    await _run(store, _three_player_roster(), _three_player_adp())

    values = {record.player_id: record for record in store.get_values(AS_OF)}
    assert values["qb"].market_value == 100.0
    assert values["rb"].market_value == pytest.approx(50.51, abs=0.01)
    assert values["wr"].market_value == 0.0
    for record in values.values():
        assert record.projection_score == record.market_value
        assert 0.0 <= record.dynasty_value <= 100.0


async def test_position_normalization_scales_per_bucket(store):
    await _run(store, _three_player_roster(), _three_player_adp(), settings=PipelineSettings(normalization="position"))

    assert {record.market_value for record in store.get_values(AS_OF)} == {50.0}


async def test_full_profile_uses_injury_risk(store):
    roster = {"A": _player("RB", 24, injury_status="Questionable"), "B": _player("WR", 26)}
    adp = [{"player_id": "A", "adp": 1}, {"player_id": "B", "adp": 9}]

    await _run(store, roster, adp, settings=PipelineSettings(weight_profile="full"))

    values = {record.player_id: record for record in store.get_values(AS_OF)}
    assert values["A"].risk_score == 80.0
    assert values["A"].dynasty_value == pytest.approx(98.0)
    assert values["B"].risk_score == 100.0


async def test_rerun_is_idempotent(store):
    first = await _run(store, _three_player_roster(), _three_player_adp())
    values_once = store.get_values(AS_OF)
    observations_once = store.list_observations(AS_OF)

    second = await _run(store, _three_player_roster(), _three_player_adp())

    assert store.get_values(AS_OF) == values_once
    assert store.list_observations(AS_OF) == observations_once
    assert first.valid_values == second.valid_values == 3


async def test_stale_null_rows_are_pruned(store):
    store.upsert_values([DailyValueRecord(as_of=AS_OF, player_id="ghost")])

    report = await _run(store, _three_player_roster(), _three_player_adp())

    assert report.pruned_null == 1
    assert "ghost" not in {record.player_id for record in store.get_values(AS_OF)}


def _seed_history(store: ValueStore) -> None:
    store.upsert_values(
        DailyValueRecord(as_of=AS_OF - timedelta(days=k), player_id="qb", dynasty_value=40.0 + k)
        for k in range(1, 11)
    )
    store.upsert_values([DailyValueRecord(as_of=AS_OF - timedelta(days=45), player_id="qb", dynasty_value=10.0)])


async def test_trends_from_history_with_rolling_retention(store):
    _seed_history(store)

    report = await _run(store, _three_player_roster(), _three_player_adp())

    values = {record.player_id: record for record in store.get_values(AS_OF)}
    qb = values["qb"]
    assert qb.dynasty_value == 100.0
    assert qb.trend_7d == pytest.approx(56.0)
    assert qb.trend_30d == pytest.approx(54.5)
    assert values["rb"].trend_7d is None
    assert values["rb"].trend_30d is None
    assert report.trends_written == {"trend_7d": 1, "trend_30d": 1}
    assert report.pruned_history == 1
    assert len(store.list_dates()) == 11


async def test_latest_retention_keeps_single_snapshot(store):
    _seed_history(store)

    report = await _run(
        store, _three_player_roster(), _three_player_adp(), settings=PipelineSettings(retention="latest")
    )

    assert store.list_dates() == [AS_OF]
    assert report.pruned_history == 11
    assert store.get_values(AS_OF, ["qb"])[0].trend_7d == pytest.approx(56.0)


async def test_duplicate_adp_rows_keep_best(store):
    adp = [{"player_id": "qb", "adp": 30}, {"player_id": "qb", "adp": 3}, {"player_id": "rb", "adp": 10}]

    report = await _run(store, _three_player_roster(), adp)

    assert report.observations == 2
    assert [(o.player_id, o.raw_value) for o in store.list_observations(AS_OF)] == [("qb", 3.0), ("rb", 10.0)]


async def test_unmatched_names_recovered_from_roster(store):
    fetch = AdpFetch(
        rows=[AdpRow(player_id="qb", adp=1.0, position="QB")],
        source_tag="ffc_adp",
        unmatched=[UnmatchedAdp(name="Walt Wide", adp=12.0, position="WR"), UnmatchedAdp(name="Nobody", adp=3.0)],
    )

    report = await _run(store, _three_player_roster(), [], adp_source=PresetAdpSource(fetch))

    assert report.adp_rows == 2
    observations = {o.player_id: o for o in store.list_observations(AS_OF, source="ffc_adp")}
    assert observations["wr"].metadata["matched_by"] == "roster_name"
    assert observations["wr"].metadata["source_kind"] == "market"
    assert {record.player_id for record in store.get_values(AS_OF)} == {"qb", "wr"}


async def test_synthetic_source_tags_observations(store):
    roster = {
        "rb": _player("RB", 23, years_exp=3),
        "te": _player("TE", 27, years_exp=5, injury_status="Out"),
    }

    report = await _run(store, roster, [], adp_source=SyntheticAdpSource())

    assert report.source_kind == "synthetic"
    observations = store.list_observations(AS_OF, source="synthetic_adp")
    assert [o.player_id for o in observations] == ["rb", "te"]
    assert all(o.metadata["source_kind"] == "synthetic" for o in observations)
    assert len(store.get_values(AS_OF)) == 2


async def test_fetch_failure_writes_nothing(store):
    pipeline = ValuationPipeline(store, FailingRosterSource(), StaticAdpSource(_three_player_adp()))

    with pytest.raises(FetchError) as excinfo:
        await pipeline.run(AS_OF)

    assert excinfo.value.stage == "Fetching"
    assert excinfo.value.status_code == 500
    assert store.latest_as_of() is None


async def test_failed_fetch_cancels_sibling_fetch(store):
    adp_source = SlowAdpSource()
    pipeline = ValuationPipeline(store, FailingRosterSource(), adp_source)

    with pytest.raises(FetchError) as excinfo:
        await pipeline.run(AS_OF)

    assert excinfo.value.source == "sleeper_players"
    assert adp_source.cancelled
    await asyncio.sleep(0.4)
    assert not adp_source.finished


async def test_batch_failure_reports_batch_index(tmp_path, monkeypatch):
    monkeypatch.delenv("DYNVAL_DB_PATH", raising=False)
    store = FlakyStore(tmp_path / "flaky.sqlite", fail_on_call=2)

    with pytest.raises(BatchWriteError) as excinfo:
        await _run(store, _three_player_roster(), _three_player_adp(), settings=PipelineSettings(batch_size=1))

    error = excinfo.value
    assert (error.table, error.batch_index, error.total_batches) == ("value_daily", 2, 3)
    assert error.stage == "Upserting-Values"
    assert len(store.get_values(AS_OF)) == 1


async def test_timeout_reports_stage(store):
    pipeline = ValuationPipeline(
        store,
        SlowRosterSource(),
        StaticAdpSource([]),
        settings=PipelineSettings(timeout_seconds=0.05),
    )

    with pytest.raises(PipelineTimeout) as excinfo:
        await pipeline.run(AS_OF)

    assert excinfo.value.stage == "Fetching"


def test_sync_entry_point_runs_to_completion(store):
    result = run_valuation_pipeline(
        AS_OF,
        store=store,
        roster_source=StaticRosterSource(_three_player_roster()),
        adp_source=StaticAdpSource(_three_player_adp()),
    )

    assert result is None
    assert len(store.get_values(AS_OF)) == 3
