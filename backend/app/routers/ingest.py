# backend/app/routers/ingest.py
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from loguru import logger
from typing import Any

from ..core.config import settings
from ..services import registry
from ..services.ai_client import AIClient, ExternalServiceError, get_ai_client
from ..services.analysis import analyze_dataset
from ..services.ingestion import ParseError, page_rows, parse_csv
from ..schemas.base import APIResponse
from ..schemas.dataset import (
    AnalysisResult,
    Dataset,
    DatasetPreviewResponse,
    DatasetUploadResponse,
    RowsUpdateRequest,
)
from ..utils.io import decode_upload, is_csv_upload

router = APIRouter(tags=["ingest"])

INVALID_FILE_MESSAGE = "Please upload a valid CSV file."
PARSE_FAILED_MESSAGE = "Failed to parse CSV. Please check the file format."
ANALYSIS_FAILED_MESSAGE = "Analysis failed. Please try again with a different file or check your connection."


def require_dataset(dataset_id: str) -> Dataset:
    ds = registry.get_dataset(dataset_id)
    if not ds:
        raise HTTPException(status_code=404, detail=f"Dataset '{dataset_id}' not found.")
    return ds


@router.post("/upload", response_model=DatasetUploadResponse)
async def upload_dataset(
    file: UploadFile = File(...),
    ai: AIClient = Depends(get_ai_client),
) -> DatasetUploadResponse:
    """
    Parse an uploaded CSV, run the AI analysis and register the dataset.
    Nothing is registered unless both steps succeed.
    """
    if not is_csv_upload(file.filename, file.content_type):
        raise HTTPException(status_code=400, detail=INVALID_FILE_MESSAGE)

    raw = await file.read()
    try:
        dataset = parse_csv(decode_upload(raw), file.filename or "upload.csv", max_rows=settings.max_rows)
    except ParseError as e:
        logger.warning(f"Rejected upload '{file.filename}': {e}")
        raise HTTPException(status_code=400, detail=PARSE_FAILED_MESSAGE)

    try:
        analysis = await analyze_dataset(
            dataset,
            ai,
            sample_rows=settings.ai_sample_rows,
            min_delay=settings.analysis_min_delay_seconds,
        )
    except ExternalServiceError:
        raise HTTPException(status_code=502, detail=ANALYSIS_FAILED_MESSAGE)

    dataset = registry.put_dataset(dataset.model_copy(update={"analysis": analysis}))
    return DatasetUploadResponse(
        dataset_id=dataset.id,
        name=dataset.name,
        rows=len(dataset.data),
        total_rows=dataset.row_count,
        truncated=dataset.truncated,
        columns=dataset.columns,
        analysis=analysis,
    )


@router.get("/list")
def list_datasets() -> Any:
    """
    Return datasets currently registered (metadata only, no rows).
    """
    datasets = registry.list_datasets()
    return {"ok": True, "datasets": datasets}


@router.get("/preview/{dataset_id}", response_model=DatasetPreviewResponse)
def get_preview(
    dataset_id: str,
    n: int = Query(10, ge=1, le=1000),
    page: int = Query(1, ge=1),
) -> DatasetPreviewResponse:
    """
    Return a page of N rows for a dataset, with column order and row counts.
    """
    ds = require_dataset(dataset_id)
    payload = page_rows(ds.data, page=page, page_size=n)
    return DatasetPreviewResponse(
        ok=True,
        dataset_id=dataset_id,
        name=ds.name,
        rows=len(ds.data),
        total_rows=ds.row_count,
        cols=len(ds.columns),
        columns=ds.columns,
        page=payload["page"],
        page_size=payload["page_size"],
        total_pages=payload["total_pages"],
        data=payload["data"],
    )


@router.get("/{dataset_id}/analysis", response_model=AnalysisResult)
def get_analysis(dataset_id: str) -> AnalysisResult:
    ds = require_dataset(dataset_id)
    if ds.analysis is None:
        raise HTTPException(status_code=404, detail=f"Dataset '{dataset_id}' has no analysis.")
    return ds.analysis


@router.put("/{dataset_id}/rows", response_model=APIResponse)
def update_rows(dataset_id: str, req: RowsUpdateRequest) -> APIResponse:
    """
    Replace the dataset's rows with an edited copy. Charts, queries and
    correlations use the new rows from the next request on.
    """
    require_dataset(dataset_id)
    try:
        ds = registry.replace_rows(dataset_id, req.data)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Dataset '{dataset_id}' not found.")
    return APIResponse(ok=True, message=f"Dataset updated: {len(ds.data)} rows.")


@router.delete("/{dataset_id}", response_model=APIResponse)
def delete_dataset(dataset_id: str) -> APIResponse:
    if not registry.delete_dataset(dataset_id):
        raise HTTPException(status_code=404, detail=f"Dataset '{dataset_id}' not found.")
    return APIResponse(ok=True, message=f"Dataset '{dataset_id}' removed.")
