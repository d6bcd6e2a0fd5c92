"""Valuation pipeline orchestration."""

from .etl import (
    STAGES,
    PipelineReport,
    ValuationPipeline,
    default_sources,
    filter_roster,
    run_valuation_pipeline,
    run_valuation_pipeline_async,
    score_player,
)

__all__ = [
    "STAGES",
    "PipelineReport",
    "ValuationPipeline",
    "default_sources",
    "filter_roster",
    "run_valuation_pipeline",
    "run_valuation_pipeline_async",
    "score_player",
]
