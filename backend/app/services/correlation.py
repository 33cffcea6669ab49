# backend/app/services/correlation.py
"""
Pearson correlation matrix over the numeric columns of a dataset.

A column counts as numeric only when every row of a leading sample holds a
number in it. Coefficients come from the sums formula over centred values,
are rounded to two decimals, and degenerate (constant) columns correlate at 0.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from ..core.config import settings
from ..utils.values import is_number, round2


NUMERIC_SAMPLE_ROWS = settings.numeric_sample_rows
INSUFFICIENT_DATA_MESSAGE = "Not enough numeric data for correlations"

_EPS = 1e-12


class CorrelationMatrix(BaseModel):
    variables: List[str]
    matrix: List[List[float]]


def numeric_columns(
    rows: Sequence[Dict[str, Any]],
    columns: Sequence[str],
    sample_rows: int = NUMERIC_SAMPLE_ROWS,
) -> List[str]:
    """Columns whose value is a number in each of the first `sample_rows` rows."""
    sample = rows[:sample_rows]
    return [col for col in columns if all(is_number(row.get(col)) for row in sample)]


def _spread(dv: np.ndarray, v: np.ndarray) -> float:
    """Sum of squared deviations `dv`; 0 when it is within rounding error of the raw values `v`."""
    ss = float((dv * dv).sum())
    scale = float(np.abs(v).max()) if len(v) else 0.0
    return 0.0 if ss <= len(v) * (_EPS * scale) ** 2 else ss


def pearson(x: np.ndarray, y: np.ndarray) -> float:
    """Pearson r by the sums formula on centred data; 0 when undefined."""
    n = len(x)
    if n == 0:
        return 0.0
    # centring leaves r unchanged and keeps large offsets (timestamps, ids) from cancelling out
    dx, dy = x - x.mean(), y - y.mean()
    sum_x, sum_y = float(dx.sum()), float(dy.sum())
    var_x = n * _spread(dx, x) - sum_x ** 2
    var_y = n * _spread(dy, y) - sum_y ** 2
    if var_x <= 0 or var_y <= 0:
        return 0.0
    numerator = n * float((dx * dy).sum()) - sum_x * sum_y
    r = float(numerator / math.sqrt(var_x * var_y))
    if not math.isfinite(r):
        return 0.0
    return float(round2(max(-1.0, min(1.0, r))))


def _paired_values(rows: Sequence[Dict[str, Any]], a: str, b: str):
    # rows past the numeric sample may still hold text; pair only numbers
    xs, ys = [], []
    for row in rows:
        va, vb = row.get(a), row.get(b)
        if is_number(va) and is_number(vb):
            xs.append(va)
            ys.append(vb)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)


def calculate_correlations(
    rows: Sequence[Dict[str, Any]],
    columns: Sequence[str],
    sample_rows: int = NUMERIC_SAMPLE_ROWS,
) -> Optional[CorrelationMatrix]:
    """
    Symmetric correlation matrix of the numeric subset of `columns`.

    Returns None when fewer than two columns are numeric; the caller decides how
    to present that.
    """
    variables = numeric_columns(rows, columns, sample_rows)
    if len(variables) < 2:
        return None

    k = len(variables)
    matrix = [[0.0] * k for _ in range(k)]
    for i in range(k):
        matrix[i][i] = 1.0
        for j in range(i + 1, k):
            x, y = _paired_values(rows, variables[i], variables[j])
            r = pearson(x, y)
            matrix[i][j] = matrix[j][i] = r

    return CorrelationMatrix(variables=variables, matrix=matrix)
