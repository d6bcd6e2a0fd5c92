"""Failure taxonomy for valuation pipeline runs."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage


class FetchError(PipelineError):
    """An ingestion source returned a non-success status or was unreachable."""

    def __init__(self, source: str, message: str, *, status_code: Optional[int] = None):
        super().__init__(f"{source}: {message}", stage="Fetching")
        self.source = source
        self.status_code = status_code


class BatchWriteError(PipelineError):
    def __init__(self, table: str, batch_index: int, total_batches: int, message: str, *, stage: Optional[str] = None):
        super().__init__(
            f"Failed writing {table} batch {batch_index}/{total_batches}: {message}",
            stage=stage,
        )
        self.table = table
        self.batch_index = batch_index
        self.total_batches = total_batches


class PipelineTimeout(PipelineError):
    """The run exceeded its wall-clock budget."""

    def __init__(self, timeout_seconds: float, *, stage: Optional[str] = None):
        super().__init__(f"Valuation pipeline timed out after {timeout_seconds:.0f}s", stage=stage)
        self.timeout_seconds = timeout_seconds
