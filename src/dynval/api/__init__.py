"""REST API for triggering valuation runs and reading dynasty values."""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Tuple

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from dynval.api.schemas import (
    BatchValuesRequest,
    BatchValuesResponse,
    PlayerValueResponse,
    RunResponse,
    TrendValuesResponse,
)
from dynval.config import PipelineSettings
from dynval.errors import PipelineError
from dynval.persistence import ValueRow, ValueStore
from dynval.pipeline import run_valuation_pipeline_async
from dynval.pipeline.etl import AdpSource, RosterSource, default_sources


logger = logging.getLogger(__name__)

SourceFactory = Callable[[httpx.AsyncClient], Tuple[RosterSource, AdpSource]]


def value_row_to_response(row: ValueRow) -> PlayerValueResponse:
    record = row.record
    return PlayerValueResponse(
        player_id=record.player_id,
        name=row.name,
        position=row.position,
        team=row.team,
        age=row.age,
        as_of_date=record.as_of,
        market_value=record.market_value,
        projection_score=record.projection_score,
        age_score=record.age_score,
        risk_score=record.risk_score,
        dynasty_value=record.dynasty_value,
        trend_7d=record.trend_7d,
        trend_30d=record.trend_30d,
    )


def create_app(
    store: ValueStore | None = None,
    *,
    settings: PipelineSettings | None = None,
    source_factory: Optional[SourceFactory] = None,
) -> FastAPI:
    app = FastAPI(title="dynval")
    store = store or ValueStore(Path(os.getenv("DYNVAL_DB_PATH", "dynval.sqlite")))
    settings = settings or PipelineSettings.from_env()
    adp_source_name = os.getenv("DYNVAL_ADP_SOURCE", "ffc")
    factory: SourceFactory = source_factory or (lambda client: default_sources(client, adp_source_name))
    app.state.value_store = store
    app.state.settings = settings

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    async def _run_pipeline(as_of: date | None) -> JSONResponse:
        try:
            report = await run_valuation_pipeline_async(
                as_of,
                store=store,
                settings=settings,
                source_factory=factory,
            )
        except PipelineError as exc:
            logger.error("Dynasty ETL failed: %s", exc)
            payload = RunResponse(ok=False, error=str(exc))
            return JSONResponse(status_code=500, content=payload.model_dump(mode="json"))
        payload = RunResponse(ok=True, as_of_date=report.as_of, valid_values=report.valid_values)
        return JSONResponse(content=payload.model_dump(mode="json"))

    @app.get("/cron/dynasty", response_model=RunResponse)
    async def cron_dynasty_get(as_of: date | None = Query(default=None, alias="date")):
        return await _run_pipeline(as_of)

    @app.post("/cron/dynasty", response_model=RunResponse)
    async def cron_dynasty_post(as_of: date | None = Query(default=None, alias="date")):
        return await _run_pipeline(as_of)

    @app.get("/dynasty/values", response_model=list[PlayerValueResponse])
    async def list_values(
        as_of: date | None = Query(default=None, alias="date"),
        limit: int | None = Query(default=None, ge=1),
    ):
        target = as_of or store.latest_as_of()
        if target is None:
            return []
        return [value_row_to_response(row) for row in store.list_values(target, limit=limit)]

    @app.post("/dynasty/values/batch", response_model=BatchValuesResponse)
    async def batch_values(payload: BatchValuesRequest):
        if not payload.player_ids:
            raise HTTPException(status_code=400, detail="Invalid player IDs array")
        latest = store.latest_as_of()
        if latest is None:
            raise HTTPException(status_code=404, detail="No dynasty values available")
        values = {
            record.player_id: TrendValuesResponse(
                dynasty_value=record.dynasty_value,
                trend_7d=record.trend_7d,
                trend_30d=record.trend_30d,
            )
            for record in store.get_values(latest, payload.player_ids)
        }
        return BatchValuesResponse(as_of_date=latest, values=values)

    return app
