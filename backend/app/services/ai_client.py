# backend/app/services/ai_client.py
"""
AI Service Client
-----------------
Thin wrapper around the OpenAI chat-completions API for the three calls the
app makes to the language model:

    analyze_dataset(sample_json, source_name) -> AnalysisResult
    interpret_query(question, columns)        -> QueryIntent
    summarize_result(question, rows)          -> str

Every transport, empty-response or schema problem is raised as
ExternalServiceError; callers decide which safe default to fall back to.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from ..core.config import settings
from ..schemas.dataset import AnalysisResult, ChartConfig, ColumnProfile
from ..schemas.query import QueryIntent


SUMMARY_CONTEXT_ROWS = settings.summary_context_rows

EMPTY_INTENT_TEXT = "I couldn't process that request."
EMPTY_SUMMARY_TEXT = "Here is the data you requested."


class ExternalServiceError(RuntimeError):
    """The AI service failed, timed out or answered with something unusable."""


# ------------------------------------------------------------
# Prompts
# ------------------------------------------------------------
ANALYSIS_SCHEMA = """{
  "summary": string,                // high-level executive summary of what the dataset represents
  "insights": [string],             // 3-5 key statistical insights, outliers or trends
  "columns": [{
    "name": string,
    "type": "numeric" | "categorical" | "datetime" | "text",
    "missingCount": number,
    "uniqueCount": number,
    "exampleValues": [string]
  }],
  "recommendedCharts": [{
    "id": string,
    "type": "BAR" | "LINE" | "SCATTER" | "PIE" | "AREA",
    "title": string,
    "description": string,
    "xKey": string,                 // key in the data for the X axis
    "yKey": string,                 // key in the data for the Y axis (numeric)
    "categoryKey": string           // optional key for grouping or coloring
  }]
}"""

INTENT_SCHEMA = """{
  "type": "query" | "chat" | "clarification",
  "textResponse": string,           // reply for chat or clarification, or a caption for the query result
  "filters": [{"column": string, "operator": "==" | ">" | "<" | ">=" | "<=" | "contains", "value": string}],
  "groupBy": string,                // column to group by (dimension)
  "aggregateColumn": string,        // numeric column to aggregate
  "aggregateType": "SUM" | "AVG" | "COUNT" | "COUNT_DISTINCT",
  "chartType": "BAR" | "LINE" | "PIE" | "SCATTER" | "AREA",
  "title": string                   // title for the generated chart
}"""


def build_analysis_prompt(sample_json: str, source_name: str) -> str:
    return f"""
You are a senior data scientist. Analyze this dataset sample (JSON format) from a file named "{source_name}".

Your goal is to:
1. Infer the data schema and column types.
2. Identify interesting patterns, correlations, or outliers for the 'insights' section.
3. Recommend 4-6 specific visualization configurations that would be most valuable to a business user.
   - For time-series data, prefer LINE or AREA charts.
   - For category comparison, prefer BAR or PIE charts.
   - For correlations, prefer SCATTER charts.

Return a single JSON object with this shape:
{ANALYSIS_SCHEMA}

Data Sample:
{sample_json}
"""


def build_intent_prompt(question: str, columns: Sequence[ColumnProfile]) -> str:
    column_context = ", ".join(f"{c.name} ({c.type.value})" for c in columns)
    return f"""
You are a smart data assistant.
User Question: "{question}"
Dataset Columns: {column_context}

Decide the intent:
1. 'query': If the user asks for specific data, aggregations, or charts (e.g., "Show sales by region", "Top 5 products", "Plot revenue vs time").
   - Map the user's terms to the closest available Column Names.
   - Construct filters, groupBy, and aggregation.
   - Suggest a chartType if visualization is suitable.
2. 'chat': If it's a general question not requiring specific data calculation (e.g., "What is this dataset?", "How do I use this?").
3. 'clarification': If the column names are ambiguous or the question is unclear.

Return a single JSON object with this shape (only "type" and "textResponse" are required):
{INTENT_SCHEMA}
For 'value' in filters, ensure it is a string representation.
"""


def build_summary_prompt(question: str, rows: Sequence[Dict[str, Any]]) -> str:
    data_context = json.dumps(list(rows), default=str, ensure_ascii=False)
    return f"""
User Question: "{question}"
Data Result (subset): {data_context}

Task: Provide a helpful, natural language answer to the user's question based on this data.
- If the data shows a clear trend, describe it (e.g. "Sales increased over time").
- If it's a ranking, mention the top items.
- If it's a single aggregated number, state it.
- Keep it concise (2-3 sentences max).
- Do not mention technical terms like "JSON" or "dataset".
"""


# one bad chart or column profile is dropped; the rest of the analysis survives
_ANALYSIS_ITEMS = (("recommendedCharts", ChartConfig), ("columns", ColumnProfile))


def _drop_invalid_items(payload: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = dict(payload)
    for key, model in _ANALYSIS_ITEMS:
        items = payload.get(key)
        if not isinstance(items, list):
            continue
        kept = []
        for item in items:
            try:
                kept.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Dropping invalid {key} entry {item!r}: {e.error_count()} error(s)")
        cleaned[key] = kept
    return cleaned


# ------------------------------------------------------------
# Client
# ------------------------------------------------------------
class AIClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.base_url = base_url if base_url is not None else settings.openai_base_url
        self.timeout = timeout if timeout is not None else settings.openai_timeout
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ExternalServiceError("OpenAI API key not configured.")
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def _complete(self, prompt: str, temperature: float, json_mode: bool) -> str:
        """Single chat completion; returns the message text ('' if none)."""
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise ExternalServiceError(f"AI request failed: {e}") from e
        if not resp.choices:
            return ""
        return (resp.choices[0].message.content or "").strip()

    # ---------- AnalyzeDataset ----------
    def analyze_dataset(self, sample_json: str, source_name: str) -> AnalysisResult:
        text = self._complete(build_analysis_prompt(sample_json, source_name), temperature=0.2, json_mode=True)
        if not text:
            raise ExternalServiceError("No response from the AI service")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ExternalServiceError(f"Malformed analysis response: {e}") from e
        if isinstance(payload, dict):
            payload = _drop_invalid_items(payload)
        try:
            return AnalysisResult.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Analysis response did not match the schema: {e.error_count()} error(s)")
            raise ExternalServiceError(f"Malformed analysis response: {e}") from e

    # ---------- InterpretQuery ----------
    def interpret_query(self, question: str, columns: Sequence[ColumnProfile]) -> QueryIntent:
        text = self._complete(build_intent_prompt(question, columns), temperature=0.1, json_mode=True)
        if not text:
            return QueryIntent(type="chat", text_response=EMPTY_INTENT_TEXT, filters=[])
        try:
            return QueryIntent.model_validate_json(text)
        except ValidationError as e:
            raise ExternalServiceError(f"Malformed intent response: {e}") from e

    # ---------- SummarizeResult ----------
    def summarize_result(
        self,
        question: str,
        rows: Sequence[Dict[str, Any]],
        context_rows: int = SUMMARY_CONTEXT_ROWS,
    ) -> str:
        text = self._complete(build_summary_prompt(question, list(rows)[:context_rows]), temperature=0.3, json_mode=False)
        return text or EMPTY_SUMMARY_TEXT


@lru_cache(maxsize=1)
def get_ai_client() -> AIClient:
    """FastAPI dependency; tests override it with a fake."""
    return AIClient()
