# backend/app/schemas/dataset.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from .base import APIResponse, CamelModel


class CaseInsensitiveEnum(str, Enum):
    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class ChartType(CaseInsensitiveEnum):
    BAR = "BAR"
    LINE = "LINE"
    SCATTER = "SCATTER"
    PIE = "PIE"
    AREA = "AREA"


class ColumnType(CaseInsensitiveEnum):
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATETIME = "datetime"
    TEXT = "text"


# ============================================================
# AI ANALYSIS RESULT
# ============================================================
class ChartConfig(CamelModel):
    id: str
    type: ChartType
    title: str
    description: str = ""
    x_key: str
    y_key: str
    category_key: Optional[str] = None   # grouping / colouring

    @field_validator("type", mode="before")
    @classmethod
    def _chart_type(cls, v: Any) -> Any:
        return ChartType(v) if isinstance(v, str) else v


class ColumnProfile(CamelModel):
    name: str
    type: ColumnType
    missing_count: int = 0
    unique_count: int = 0
    example_values: List[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _column_type(cls, v: Any) -> Any:
        return ColumnType(v) if isinstance(v, str) else v

    @field_validator("example_values", mode="before")
    @classmethod
    def _stringify_examples(cls, v: Any) -> List[str]:
        if v is None:
            return []
        return [str(x) for x in v]


class AnalysisResult(CamelModel):
    summary: str
    insights: List[str] = Field(default_factory=list)
    columns: List[ColumnProfile] = Field(default_factory=list)
    recommended_charts: List[ChartConfig] = Field(default_factory=list)


# ============================================================
# DATASET
# ============================================================
class Dataset(CamelModel):
    id: str
    name: str
    data: List[Dict[str, Any]]
    row_count: int                       # accepted rows before truncation
    analysis: Optional[AnalysisResult] = None

    @property
    def columns(self) -> List[str]:
        return list(self.data[0].keys()) if self.data else []

    @property
    def truncated(self) -> bool:
        return self.row_count > len(self.data)


# ============================================================
# API PAYLOADS
# ============================================================
class DatasetUploadResponse(APIResponse):
    dataset_id: str
    name: str
    rows: int                            # retained rows
    total_rows: int                      # rows in the source file
    truncated: bool
    columns: List[str]
    analysis: AnalysisResult


class DatasetPreviewResponse(BaseModel):
    ok: bool = True
    dataset_id: str
    name: str
    rows: int
    total_rows: int
    cols: int
    columns: List[str]
    page: int
    page_size: int
    total_pages: int
    data: List[Dict[str, Any]]


class RowsUpdateRequest(BaseModel):
    data: List[Dict[str, Any]]


class CorrelationRequest(BaseModel):
    columns: Optional[List[str]] = None


class CorrelationResponse(BaseModel):
    ok: bool = True
    method: str = "pearson"
    sufficient: bool
    message: Optional[str] = None
    variables: List[str]
    matrix: List[List[float]]
