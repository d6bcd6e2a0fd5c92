"""Dynasty valuation pipeline: fetch, filter, score, persist, trend, prune."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

import httpx

from dynval.config import PipelineSettings, WeightProfile, get_profile
from dynval.errors import BatchWriteError, PipelineError, PipelineTimeout
from dynval.ingest import (
    AdpFetch,
    FantasyCalculatorAdpSource,
    SleeperRosterSource,
    SyntheticAdpSource,
    gather_all,
    match_by_roster_name,
)
from dynval.models import AdpObservation, AdpRow, DailyValueRecord, PlayerRecord, RosterEntry
from dynval.persistence import ValueStore
from dynval.valuation import TrendWindow, age_multiplier, composite, normalize_adp, rolling_deltas


logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGES = (
    "Fetching",
    "Filtering",
    "Upserting-Players",
    "Upserting-Observations",
    "Scoring",
    "Upserting-Values",
    "Computing-Trends",
    "Cleanup",
    "Done",
)

# Higher is safer; unknown statuses count as healthy.
RISK_BY_INJURY_STATUS: Dict[str, float] = {
    "questionable": 80.0,
    "doubtful": 60.0,
    "out": 40.0,
    "ir": 25.0,
    "pup": 25.0,
    "sus": 25.0,
}
HEALTHY_RISK_SCORE = 100.0
MIN_AGE_SCORE = 1.0


class RosterSource(Protocol):
    source_tag: str

    async def fetch(self) -> Mapping[str, RosterEntry]: ...


class AdpSource(Protocol):
    source_tag: str
    source_kind: str
    requires_roster: bool

    async def fetch(self, roster: Mapping[str, RosterEntry] | None = None) -> AdpFetch: ...


@dataclass
class PipelineReport:
    as_of: date
    stage: str = "Fetching"
    roster_players: int = 0
    active_players: int = 0
    eligible_players: int = 0
    adp_rows: int = 0
    observations: int = 0
    scored_players: int = 0
    valid_values: int = 0
    trends_written: Dict[str, int] = field(default_factory=dict)
    pruned_history: int = 0
    pruned_null: int = 0
    source_kind: str = "market"


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _batches(items: Sequence[T], size: int) -> List[Sequence[T]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


def is_fantasy_relevant(entry: RosterEntry, settings: PipelineSettings) -> bool:
    if entry.active is not True:
        return False
    position = (entry.position or "").upper()
    if position not in settings.allowed_positions:
        return False
    if entry.age is None:
        return False
    return settings.min_age <= entry.age <= settings.max_age


def filter_roster(
    roster: Mapping[str, RosterEntry],
    settings: PipelineSettings,
) -> Dict[str, PlayerRecord]:
    """Restrict the roster to fantasy-relevant players keyed by id."""

    players: Dict[str, PlayerRecord] = {}
    for player_id, entry in roster.items():
        if not is_fantasy_relevant(entry, settings):
            continue
        players[player_id] = PlayerRecord(
            player_id=player_id,
            name=entry.display_name or player_id,
            position=(entry.position or "").upper(),
            team=entry.team or "",
            age=entry.age,
        )
    return players


def risk_score(entry: Optional[RosterEntry]) -> float:
    status = ((entry.injury_status if entry else None) or "").strip().lower()
    return RISK_BY_INJURY_STATUS.get(status, HEALTHY_RISK_SCORE)


def score_player(
    player: PlayerRecord,
    market_value: Optional[float],
    profile: WeightProfile,
    *,
    as_of: date,
    risk: Optional[float] = None,
) -> DailyValueRecord:
    """Build a player's daily value record.

    The dynasty value stays null unless every component the profile
    weights is present and non-negative.
    """

    projection_score = market_value
    age_score: Optional[float] = None
    if projection_score is not None and player.age is not None:
        scaled = projection_score * age_multiplier(player.position, player.age)
        age_score = round(min(100.0, max(MIN_AGE_SCORE, scaled)), 2)

    scores: Dict[str, Optional[float]] = {
        "market": market_value,
        "projection": projection_score,
        "age": age_score,
        "risk": risk if "risk" in profile.components else None,
    }
    required = [scores[component] for component in profile.components]
    dynasty_value: Optional[float] = None
    if all(value is not None and value >= 0 for value in required):
        dynasty_value = composite({c: scores[c] for c in profile.components}, profile)

    return DailyValueRecord(
        as_of=as_of,
        player_id=player.player_id,
        market_value=market_value,
        projection_score=projection_score,
        age_score=age_score,
        risk_score=scores["risk"],
        dynasty_value=dynasty_value,
    )


def market_values(
    adp_rows: Sequence[AdpRow],
    roster: Mapping[str, RosterEntry],
    settings: PipelineSettings,
) -> Dict[str, float]:
    """Normalize ADP rows; a player's position falls back to the roster's."""

    rows: List[Tuple[str, Optional[str], float]] = []
    for row in adp_rows:
        entry = roster.get(row.player_id)
        position = row.position or (entry.position if entry else None)
        if not position:
            continue
        rows.append((row.player_id, position.upper(), row.adp))
    return normalize_adp(rows, mode=settings.normalization, steepness=settings.logistic_steepness)


def _dedupe_adp(rows: Sequence[AdpRow]) -> List[AdpRow]:
    best: Dict[str, AdpRow] = {}
    for row in rows:
        current = best.get(row.player_id)
        if current is None or row.adp < current.adp:
            best[row.player_id] = row
    return sorted(best.values(), key=lambda r: (r.adp, r.player_id))


class ValuationPipeline:
    """One invocation of the valuation pipeline for a single as-of date."""

    def __init__(
        self,
        store: ValueStore,
        roster_source: RosterSource,
        adp_source: AdpSource,
        *,
        settings: PipelineSettings | None = None,
    ):
        self.store = store
        self.roster_source = roster_source
        self.adp_source = adp_source
        self.settings = settings or PipelineSettings()
        self.profile = get_profile(self.settings.weight_profile)

    async def run(self, as_of: date | None = None) -> PipelineReport:
        report = PipelineReport(as_of=as_of or _today())
        try:
            await asyncio.wait_for(self._run(report), timeout=self.settings.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("Valuation pipeline timed out during %s", report.stage)
            raise PipelineTimeout(self.settings.timeout_seconds, stage=report.stage) from exc
        except PipelineError as exc:
            if exc.stage is None:
                exc.stage = report.stage
            logger.error("Valuation pipeline failed during %s: %s", report.stage, exc)
            raise
        except Exception:
            logger.exception("Valuation pipeline failed during %s", report.stage)
            raise
        return report

    def _enter(self, report: PipelineReport, stage: str) -> None:
        report.stage = stage
        logger.info("[%s] %s", report.as_of.isoformat(), stage)

    async def _fetch(self) -> Tuple[Mapping[str, RosterEntry], AdpFetch]:
        if getattr(self.adp_source, "requires_roster", False):
            roster = await self.roster_source.fetch()
            return roster, await self.adp_source.fetch(roster)
        roster, adp = await gather_all(self.roster_source.fetch(), self.adp_source.fetch())
        return roster, adp

    async def _write_batches(
        self,
        table: str,
        items: Sequence[T],
        writer: Callable[[Sequence[T]], int],
        *,
        stage: str,
    ) -> int:
        batches = _batches(items, self.settings.batch_size)
        written = 0
        for index, batch in enumerate(batches, start=1):
            logger.debug("Writing %s batch %d/%d (%d rows)", table, index, len(batches), len(batch))
            try:
                written += await asyncio.to_thread(writer, batch)
            except Exception as exc:
                raise BatchWriteError(table, index, len(batches), str(exc), stage=stage) from exc
        return written

    async def _store_call(self, func: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(func, *args)

    async def _run(self, report: PipelineReport) -> None:
        as_of = report.as_of
        settings = self.settings

        self._enter(report, "Fetching")
        roster, adp = await self._fetch()
        report.roster_players = len(roster)
        report.source_kind = adp.source_kind

        self._enter(report, "Filtering")
        players = filter_roster(roster, settings)
        report.active_players = sum(1 for entry in roster.values() if entry.active is True)
        report.eligible_players = len(players)
        logger.info(
            "Player filtering: %d total -> %d active -> %d fantasy-relevant",
            report.roster_players,
            report.active_players,
            report.eligible_players,
        )
        adp_rows = list(adp.rows)
        if adp.unmatched:
            recovered = match_by_roster_name(adp.unmatched, roster, source_tag=adp.source_tag)
            logger.info(
                "Recovered %d of %d unmatched ADP names via roster names",
                len(recovered),
                len(adp.unmatched),
            )
            adp_rows.extend(recovered)
        adp_rows = _dedupe_adp(adp_rows)
        report.adp_rows = len(adp_rows)

        self._enter(report, "Upserting-Players")
        player_list = sorted(players.values(), key=lambda p: p.player_id)
        await self._write_batches("players", player_list, self.store.upsert_players, stage=report.stage)

        self._enter(report, "Upserting-Observations")
        observations = [
            AdpObservation(
                as_of=as_of,
                source=adp.source_tag,
                player_id=row.player_id,
                raw_value=row.adp,
                position=row.position,
                metadata={**row.metadata, "source_kind": adp.source_kind},
            )
            for row in adp_rows
        ]
        report.observations = await self._write_batches(
            "snapshots", observations, self.store.upsert_observations, stage=report.stage
        )

        self._enter(report, "Scoring")
        market_by_id = market_values(adp_rows, roster, settings)
        logger.info("Generated %d market values (%s normalization)", len(market_by_id), settings.normalization)
        records = [
            score_player(
                player,
                market_by_id[player.player_id],
                self.profile,
                as_of=as_of,
                risk=risk_score(roster.get(player.player_id)),
            )
            for player in player_list
            if player.player_id in market_by_id
        ]
        report.scored_players = len(records)
        report.valid_values = sum(1 for rec in records if rec.dynasty_value is not None)
        logger.info("Generated %d valid dynasty values out of %d scored players", report.valid_values, len(records))

        self._enter(report, "Upserting-Values")
        await self._write_batches("value_daily", records, self.store.upsert_values, stage=report.stage)

        self._enter(report, "Computing-Trends")
        latest = {rec.player_id: rec.dynasty_value for rec in records}
        for days in settings.trend_windows:
            window = TrendWindow(days)
            start, end = window.bounds(as_of)
            history = await self._store_call(self.store.history, start, end)
            deltas = rolling_deltas(latest, history)
            # Players without history are written as null so reruns stay idempotent.
            updates = {player_id: deltas.get(player_id) for player_id in latest}
            await self._store_call(self.store.update_trends, as_of, window.field, updates)
            report.trends_written[window.field] = len(deltas)
            logger.info("Computed %s for %d players", window.field, len(deltas))

        self._enter(report, "Cleanup")
        if settings.retention == "latest":
            report.pruned_history = await self._store_call(self.store.delete_values_except, as_of)
        else:
            cutoff = as_of - timedelta(days=settings.retention_days)
            report.pruned_history = await self._store_call(self.store.delete_values_before, cutoff)
        report.pruned_null = await self._store_call(self.store.delete_null_values, as_of)
        logger.info(
            "Pruned %d historical rows and %d null-value rows",
            report.pruned_history,
            report.pruned_null,
        )

        self._enter(report, "Done")


def default_sources(
    client: httpx.AsyncClient,
    adp_source: str = "ffc",
) -> Tuple[RosterSource, AdpSource]:
    """Build the production roster source and the named ADP source."""

    roster_source = SleeperRosterSource(client)
    if adp_source == "ffc":
        return roster_source, FantasyCalculatorAdpSource(client)
    if adp_source == "synthetic":
        return roster_source, SyntheticAdpSource()
    raise KeyError(f"Unknown ADP source {adp_source!r}")


async def run_valuation_pipeline_async(
    as_of: date | None = None,
    *,
    store: ValueStore,
    roster_source: RosterSource | None = None,
    adp_source: AdpSource | None = None,
    settings: PipelineSettings | None = None,
    source_factory: Optional[Callable[[httpx.AsyncClient], Tuple[RosterSource, AdpSource]]] = None,
) -> PipelineReport:
    settings = settings or PipelineSettings()
    if roster_source is not None and adp_source is not None:
        pipeline = ValuationPipeline(store, roster_source, adp_source, settings=settings)
        return await pipeline.run(as_of)

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        factory = source_factory or default_sources
        default_roster, default_adp = factory(client)
        pipeline = ValuationPipeline(
            store,
            roster_source or default_roster,
            adp_source or default_adp,
            settings=settings,
        )
        return await pipeline.run(as_of)


def run_valuation_pipeline(
    as_of: date | None = None,
    *,
    store: ValueStore,
    roster_source: RosterSource | None = None,
    adp_source: AdpSource | None = None,
    settings: PipelineSettings | None = None,
) -> None:
    """Run the pipeline to completion for ``as_of`` (today by default).

    Raises a ``PipelineError`` subclass on failure.
    """

    asyncio.run(
        run_valuation_pipeline_async(
            as_of,
            store=store,
            roster_source=roster_source,
            adp_source=adp_source,
            settings=settings,
        )
    )
