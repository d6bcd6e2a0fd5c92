"""Dynasty value scoring for fantasy football rosters."""

from dynval.errors import BatchWriteError, FetchError, PipelineError, PipelineTimeout
from dynval.pipeline import run_valuation_pipeline, run_valuation_pipeline_async

__version__ = "0.1.0"

__all__ = [
    "BatchWriteError",
    "FetchError",
    "PipelineError",
    "PipelineTimeout",
    "run_valuation_pipeline",
    "run_valuation_pipeline_async",
]
