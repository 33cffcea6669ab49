# backend/app/services/analysis.py
"""
Upload analysis flow: sample the dataset, ask the AI service for an analysis,
then reconcile the proposed charts against the real columns.

The AI call runs in a worker thread next to a minimum-latency timer. A
successful analysis is only returned once both have finished; a failed one is
raised as soon as the call fails.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from ..core.config import settings
from ..schemas.dataset import AnalysisResult, Dataset
from .ai_client import AIClient, ExternalServiceError
from .ingestion import AI_SAMPLE_ROWS, sample_rows_for_ai
from .reconciliation import sanitize_analysis_result

T = TypeVar("T")

ANALYSIS_MIN_DELAY_SECONDS = settings.analysis_min_delay_seconds


async def with_latency_floor(call: Callable[[], T], min_delay: float) -> T:
    """Run blocking `call` in a thread; return no sooner than `min_delay` seconds."""
    floor: asyncio.Task = asyncio.create_task(asyncio.sleep(max(0.0, min_delay)))
    try:
        result = await asyncio.to_thread(call)
    except BaseException:
        floor.cancel()
        raise
    await floor
    return result


async def analyze_dataset(
    dataset: Dataset,
    ai: AIClient,
    sample_rows: int = AI_SAMPLE_ROWS,
    min_delay: float = ANALYSIS_MIN_DELAY_SECONDS,
) -> AnalysisResult:
    """Analysis for `dataset`, reconciled. Raises ExternalServiceError on AI failure."""
    sample = sample_rows_for_ai(dataset, sample_rows)
    try:
        raw = await with_latency_floor(lambda: ai.analyze_dataset(sample, dataset.name), min_delay)
    except ExternalServiceError as e:
        logger.error(f"Analysis of '{dataset.name}' failed: {e}")
        raise

    result = sanitize_analysis_result(raw, dataset)
    logger.info(
        f"Analysis of '{dataset.name}': {len(result.columns)} columns profiled, "
        f"{len(result.recommended_charts)}/{len(raw.recommended_charts)} charts kept"
    )
    return result
