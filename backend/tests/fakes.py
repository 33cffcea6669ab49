# backend/tests/fakes.py
"""Canned AI answers and sample data shared by the test modules."""
from backend.app.schemas.dataset import AnalysisResult
from backend.app.schemas.query import QueryIntent
from backend.app.services.ai_client import ExternalServiceError


# -----------------------------------------------------------
# Fake AI service
# -----------------------------------------------------------
SALES_ANALYSIS = {
    "summary": "Monthly sales by region.",
    "insights": ["North sells the most.", "Units and revenue move together."],
    "columns": [
        {"name": "region", "type": "categorical", "missingCount": 0, "uniqueCount": 3, "exampleValues": ["North", "South"]},
        {"name": "units", "type": "numeric", "missingCount": 0, "uniqueCount": 5, "exampleValues": [1, 2]},
        {"name": "revenue", "type": "numeric", "missingCount": 0, "uniqueCount": 5, "exampleValues": ["10", "20"]},
    ],
    "recommendedCharts": [
        {"id": "c1", "type": "BAR", "title": "Revenue by region", "description": "", "xKey": "Region ", "yKey": "REVENUE"},
        {"id": "c2", "type": "SCATTER", "title": "Units vs revenue", "description": "", "xKey": "units", "yKey": "revenue"},
        {"id": "c3", "type": "LINE", "title": "Profit trend", "description": "", "xKey": "month", "yKey": "profit"},
    ],
}


class FakeAI:
    """Stands in for AIClient; records calls and replays canned answers."""

    def __init__(self, analysis=None, intent=None, summary="North leads with 300.", fail=()):
        self.analysis = analysis if analysis is not None else SALES_ANALYSIS
        self.intent = intent if intent is not None else {"type": "chat", "textResponse": "Hello!"}
        self.summary = summary
        self.fail = set(fail)
        self.calls = []

    def _maybe_fail(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise ExternalServiceError(f"{name} failed")

    def analyze_dataset(self, sample_json, source_name):
        self._maybe_fail("analyze")
        return AnalysisResult.model_validate(self.analysis)

    def interpret_query(self, question, columns):
        self._maybe_fail("interpret")
        return QueryIntent.model_validate(self.intent)

    def summarize_result(self, question, rows, context_rows=20):
        self._maybe_fail("summarize")
        return self.summary


SALES_CSV = (
    "region,units,revenue\n"
    "North,10,100\n"
    "South,5,50\n"
    "North,20,200\n"
    "East,1,15\n"
    "South,3,35\n"
)
