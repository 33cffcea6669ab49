# backend/tests/test_ai_client.py
"""
AIClient against a stand-in for the OpenAI SDK object: only
`client.chat.completions.create(**kwargs)` is used.
"""
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from backend.app.schemas.dataset import ChartType, ColumnProfile
from backend.app.services.ai_client import (
    EMPTY_INTENT_TEXT,
    EMPTY_SUMMARY_TEXT,
    AIClient,
    ExternalServiceError,
)

from fakes import SALES_ANALYSIS


class _Completions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(content=None, error=None):
    completions = _Completions(content, error)
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return AIClient(api_key="test", model="test-model", client=sdk), completions


COLUMNS = [ColumnProfile(name="region", type="categorical"), ColumnProfile(name="units", type="numeric")]


def test_analyze_dataset_parses_json():
    ai, completions = _client(json.dumps(SALES_ANALYSIS))
    result = ai.analyze_dataset('[{"region": "North"}]', "sales.csv")
    assert result.summary == "Monthly sales by region."
    assert result.recommended_charts[0].type == ChartType.BAR
    assert result.columns[1].example_values == ["1", "2"]

    req = completions.requests[0]
    assert req["model"] == "test-model"
    assert req["response_format"] == {"type": "json_object"}
    assert req["temperature"] == 0.2
    assert "sales.csv" in req["messages"][0]["content"]


def test_analyze_dataset_accepts_lowercase_chart_types():
    payload = dict(SALES_ANALYSIS, recommendedCharts=[dict(SALES_ANALYSIS["recommendedCharts"][1], type="scatter")])
    ai, _ = _client(json.dumps(payload))
    assert ai.analyze_dataset("[]", "x.csv").recommended_charts[0].type == ChartType.SCATTER


@pytest.mark.parametrize("content", ["", "not json", json.dumps({"insights": []})])
def test_analyze_dataset_bad_response_raises(content):
    ai, _ = _client(content)
    with pytest.raises(ExternalServiceError):
        ai.analyze_dataset("[]", "x.csv")


def test_transport_error_is_wrapped():
    ai, _ = _client(error=OpenAIError("connection reset"))
    with pytest.raises(ExternalServiceError):
        ai.analyze_dataset("[]", "x.csv")
    with pytest.raises(ExternalServiceError):
        ai.summarize_result("q", [])


def test_missing_api_key_raises_service_error():
    ai = AIClient(api_key="")
    with pytest.raises(ExternalServiceError):
        ai.interpret_query("anything", COLUMNS)


def test_interpret_query_coerces_filter_values():
    content = json.dumps({
        "type": "query",
        "textResponse": "Units by region",
        "filters": [
            {"column": "units", "operator": ">", "value": "5"},
            {"column": "region", "operator": "contains", "value": "12"},
        ],
        "groupBy": "region",
        "aggregateColumn": "units",
        "aggregateType": "SUM",
        "chartType": "BAR",
    })
    ai, completions = _client(content)
    intent = ai.interpret_query("units by region over 5", COLUMNS)
    assert intent.type == "query"
    assert intent.filters[0].value == 5
    assert intent.filters[1].value == "12"
    assert intent.has_grouping
    assert "region (categorical)" in completions.requests[0]["messages"][0]["content"]
    assert completions.requests[0]["temperature"] == 0.1


def test_interpret_query_tolerates_nulls():
    ai, _ = _client(json.dumps({"type": "chat", "textResponse": "Hi", "filters": None, "aggregateType": ""}))
    intent = ai.interpret_query("hi", COLUMNS)
    assert intent.filters == []
    assert intent.aggregate_type is None


def test_interpret_query_empty_response_gives_chat_intent():
    ai, _ = _client("")
    intent = ai.interpret_query("hi", COLUMNS)
    assert intent.type == "chat"
    assert intent.text_response == EMPTY_INTENT_TEXT


def test_summarize_result_limits_context():
    ai, completions = _client("North is on top.")
    rows = [{"i": i} for i in range(50)]
    assert ai.summarize_result("who leads?", rows) == "North is on top."
    prompt = completions.requests[0]["messages"][0]["content"]
    assert '{"i": 19}' in prompt
    assert '{"i": 20}' not in prompt
    assert "response_format" not in completions.requests[0]


def test_summarize_result_empty_completion():
    ai, _ = _client(None)
    assert ai.summarize_result("q", [{"a": 1}]) == EMPTY_SUMMARY_TEXT


def test_analyze_dataset_drops_invalid_charts_and_columns():
    charts = SALES_ANALYSIS["recommendedCharts"] + [
        {"id": "h1", "type": "HISTOGRAM", "title": "Units histogram", "xKey": "units", "yKey": "units"},
        {"id": "n1", "type": "BAR", "title": "No y", "xKey": "region", "yKey": None},
    ]
    columns = SALES_ANALYSIS["columns"] + [{"name": "flag", "type": "boolean"}]
    ai, _ = _client(json.dumps(dict(SALES_ANALYSIS, recommendedCharts=charts, columns=columns)))
    result = ai.analyze_dataset("[]", "sales.csv")
    assert [c.id for c in result.recommended_charts] == ["c1", "c2", "c3"]
    assert [c.name for c in result.columns] == ["region", "units", "revenue"]
    assert result.summary == "Monthly sales by region."


def test_analyze_dataset_without_valid_charts_still_succeeds():
    payload = dict(SALES_ANALYSIS, recommendedCharts=[{"id": "h1", "type": "HISTOGRAM"}])
    ai, _ = _client(json.dumps(payload))
    assert ai.analyze_dataset("[]", "x.csv").recommended_charts == []
