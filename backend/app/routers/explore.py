# backend/app/routers/explore.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from ..core.config import settings
from ..schemas.dataset import ColumnType, CorrelationRequest, CorrelationResponse
from ..schemas.query import QueryIntent, QueryResponse, ViewRequest, ViewResponse
from ..services.correlation import INSUFFICIENT_DATA_MESSAGE, calculate_correlations
from ..services.query_engine import filter_view, query_data
from .ingest import require_dataset

router = APIRouter(tags=["explore"])


@router.post("/{dataset_id}/query", response_model=QueryResponse)
def run_query(dataset_id: str, intent: QueryIntent) -> QueryResponse:
    """Filter / group / aggregate the dataset rows as described by `intent`."""
    ds = require_dataset(dataset_id)
    rows = query_data(ds.data, intent, limit=settings.query_result_limit)
    return QueryResponse(count=len(rows), data=rows)


@router.post("/{dataset_id}/correlations", response_model=CorrelationResponse)
def get_correlations(dataset_id: str, req: Optional[CorrelationRequest] = None) -> CorrelationResponse:
    """
    Pearson matrix over the requested columns. Without a column list the
    columns profiled as numeric are used, falling back to every column.
    """
    ds = require_dataset(dataset_id)
    columns = req.columns if req and req.columns else None
    if columns is None and ds.analysis:
        columns = [c.name for c in ds.analysis.columns if c.type == ColumnType.NUMERIC] or None
    if columns is None:
        columns = ds.columns

    corr = calculate_correlations(ds.data, columns, sample_rows=settings.numeric_sample_rows)
    if corr is None:
        return CorrelationResponse(sufficient=False, message=INSUFFICIENT_DATA_MESSAGE, variables=[], matrix=[])
    return CorrelationResponse(sufficient=True, variables=corr.variables, matrix=corr.matrix)


@router.post("/{dataset_id}/view", response_model=ViewResponse)
def get_view(dataset_id: str, req: ViewRequest) -> ViewResponse:
    """Rows left after drill-down selections and the global search term."""
    ds = require_dataset(dataset_id)
    rows = filter_view(ds.data, req.filters, req.search)
    return ViewResponse(count=len(rows), total=len(ds.data), data=rows)
