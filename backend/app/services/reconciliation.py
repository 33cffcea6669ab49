# backend/app/services/reconciliation.py
"""Repair AI-proposed chart configs so their fields name real dataset columns."""
from __future__ import annotations

from typing import List, Optional, Sequence

from loguru import logger

from ..schemas.dataset import AnalysisResult, ChartConfig, Dataset


def resolve_key(key: Optional[str], valid_keys: Sequence[str]) -> Optional[str]:
    """Exact match, else first case-insensitive match, else `key` unchanged."""
    if not key:
        return key
    if key in valid_keys:
        return key
    wanted = key.strip().lower()
    for candidate in valid_keys:
        if candidate.strip().lower() == wanted:
            return candidate
    return key


def sanitize_analysis_result(result: AnalysisResult, dataset: Dataset) -> AnalysisResult:
    if not dataset.data:
        return result
    valid_keys = list(dataset.data[0].keys())

    charts: List[ChartConfig] = []
    for chart in result.recommended_charts:
        fixed = chart.model_copy(update={
            "x_key": resolve_key(chart.x_key, valid_keys),
            "y_key": resolve_key(chart.y_key, valid_keys),
            "category_key": resolve_key(chart.category_key, valid_keys) or None,
        })
        if fixed.x_key in valid_keys and fixed.y_key in valid_keys:
            charts.append(fixed)
        else:
            logger.warning(
                f"Dropping chart '{chart.title}': fields ({chart.x_key!r}, {chart.y_key!r}) not in dataset"
            )

    return result.model_copy(update={"recommended_charts": charts})
