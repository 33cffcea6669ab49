from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from .base import CamelModel
from .dataset import ChartConfig, ChartType, CaseInsensitiveEnum
from ..utils.values import parse_number


class AggregateType(CaseInsensitiveEnum):
    SUM = "SUM"
    AVG = "AVG"
    COUNT = "COUNT"
    COUNT_DISTINCT = "COUNT_DISTINCT"


class QueryFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    operator: str                       # unknown operators are kept and fail open
    value: Union[int, float, str] = ""

    @field_validator("value", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="before")
    @classmethod
    def _coerce_numeric_value(cls, data: Any) -> Any:
        # one-time string -> number pass; substring tests keep the text
        if isinstance(data, dict) and data.get("operator") != "contains" and isinstance(data.get("value"), str):
            num = parse_number(data["value"])
            if num is not None:
                data = {**data, "value": num}
        return data


class QueryIntent(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["query", "chat", "clarification"] = "query"
    filters: List[QueryFilter] = Field(default_factory=list)
    group_by: Optional[str] = None
    aggregate_column: Optional[str] = None
    aggregate_type: Optional[AggregateType] = None
    chart_type: Optional[ChartType] = None
    text_response: Optional[str] = None
    title: Optional[str] = None

    @field_validator("filters", mode="before")
    @classmethod
    def _null_filters(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("aggregate_type", "chart_type", mode="before")
    @classmethod
    def _enum_or_none(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, str):
            return v
        if not v.strip():
            return None
        return (AggregateType if info.field_name == "aggregate_type" else ChartType)(v)

    @property
    def has_grouping(self) -> bool:
        return bool(self.group_by and self.aggregate_column and self.aggregate_type)


# ============================================================
# EXPLORE PAYLOADS
# ============================================================
class QueryResponse(BaseModel):
    ok: bool = True
    count: int
    data: List[Dict[str, Any]]


class ViewRequest(BaseModel):
    filters: Dict[str, Union[int, float, str]] = Field(default_factory=dict)   # drill-down chips
    search: str = ""


class ViewResponse(BaseModel):
    ok: bool = True
    count: int
    total: int
    data: List[Dict[str, Any]]


# ============================================================
# ASSISTANT PAYLOADS
# ============================================================
class MessageRole(str, Enum):
    USER = "user"
    AI = "ai"


class AskRequest(BaseModel):
    question: str


class ChatChart(CamelModel):
    config: ChartConfig
    data: List[Dict[str, Any]]


class ChatReply(CamelModel):
    role: MessageRole = MessageRole.AI
    content: str
    chart: Optional[ChatChart] = None
    is_error: bool = False


class WelcomeResponse(BaseModel):
    ok: bool = True
    message: str
    suggestions: List[str]
