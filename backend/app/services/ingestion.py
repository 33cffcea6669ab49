# backend/app/services/ingestion.py
"""
CSV ingestion for AutoViz-Insight.

- Parses raw CSV text into a row-oriented Dataset with per-cell typing.
- Splits naively on commas: quoted commas are NOT supported.
- Lines whose field count differs from the header are dropped without error.
- Keeps at most MAX_ROWS rows but records the true accepted-row count.
"""
from __future__ import annotations

import json
import math
import re
import uuid
from typing import Any, Dict, List

from loguru import logger

from ..core.config import settings
from ..schemas.dataset import Dataset
from ..utils.values import coerce_cell


MAX_ROWS = settings.max_rows              # Rows retained in memory per dataset
AI_SAMPLE_ROWS = settings.ai_sample_rows  # Rows sent to the analysis service

_LINE_SPLIT = re.compile(r"\r\n|\n")
_BOM = "\ufeff"


class ParseError(ValueError):
    """Raised when an upload cannot be turned into a dataset."""


def _strip_quotes(token: str) -> str:
    """Remove one leading and one trailing double quote, independently."""
    if token.startswith('"'):
        token = token[1:]
    if token.endswith('"'):
        token = token[:-1]
    return token


def _parse_header(line: str) -> List[str]:
    return [_strip_quotes(h.strip()) for h in line.split(",")]


def _parse_row(fields: List[str], headers: List[str]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for header, raw in zip(headers, fields):
        row[header] = coerce_cell(_strip_quotes(raw.strip()))
    return row


def parse_csv(text: str, name: str, max_rows: int = MAX_ROWS) -> Dataset:
    """Parse CSV text into a Dataset. Raises ParseError if there is nothing to parse."""
    text = text or ""
    # drop the BOM before trimming and quote stripping of the header
    if text.startswith(_BOM):
        text = text[1:]
    lines = [ln for ln in _LINE_SPLIT.split(text) if ln.strip() != ""]
    if not lines:
        raise ParseError("File is empty")

    headers = _parse_header(lines[0])

    rows: List[Dict[str, Any]] = []
    dropped = 0
    for line in lines[1:]:
        fields = line.split(",")
        if len(fields) != len(headers):
            dropped += 1
            continue
        rows.append(_parse_row(fields, headers))

    if dropped:
        logger.debug(f"{name}: dropped {dropped} line(s) with a field count other than {len(headers)}")

    dataset = Dataset(
        id=uuid.uuid4().hex,
        name=name,
        data=rows[:max_rows],
        row_count=len(rows),
    )
    logger.info(
        f"Parsed '{name}': {len(dataset.data)} rows kept of {dataset.row_count}, {len(headers)} columns"
    )
    return dataset


def _json_default(obj: Any) -> Any:
    return str(obj)


def sample_rows_for_ai(dataset: Dataset, rows: int = AI_SAMPLE_ROWS) -> str:
    """Return the first `rows` rows as compact JSON for the analysis prompt."""
    sample = dataset.data[: max(0, int(rows))]
    return json.dumps(sample, default=_json_default, ensure_ascii=False)


def page_rows(rows: List[Dict[str, Any]], page: int = 1, page_size: int = 50) -> Dict[str, Any]:
    """Slice `rows` for a 1-based page; out-of-range pages are clamped."""
    page_size = max(1, int(page_size))
    total_pages = max(1, math.ceil(len(rows) / page_size))
    page = min(max(1, int(page)), total_pages)
    start = (page - 1) * page_size
    return {
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "data": rows[start:start + page_size],
    }
