# backend/app/services/assistant.py
"""
Conversational assistant.

One chat turn: the AI service turns the question into a QueryIntent, the query
engine runs it against the dataset, and the AI service words the result. Every
failure is turned into a reply; a turn never raises.
"""
from __future__ import annotations

import uuid
from typing import List, Tuple

from loguru import logger

from ..schemas.dataset import ChartConfig, ColumnProfile, ColumnType, Dataset
from ..schemas.query import ChatChart, ChatReply, QueryIntent
from .ai_client import SUMMARY_CONTEXT_ROWS, AIClient, ExternalServiceError
from .correlation import numeric_columns
from .query_engine import QUERY_RESULT_LIMIT, query_data


FALLBACK_INTENT_TEXT = "Sorry, I had trouble understanding that."
FALLBACK_SUMMARY_TEXT = "Here are the results based on your query."
DEFAULT_REPLY_TEXT = "Here is what I found."
NO_MATCH_TEXT = "I ran the query on your data, but no records matched your criteria."
TURN_ERROR_TEXT = "Sorry, I encountered an error processing your request."


def column_profiles(dataset: Dataset) -> List[ColumnProfile]:
    """Profiles from the analysis, or a bare numeric/text split when there is none."""
    if dataset.analysis and dataset.analysis.columns:
        return list(dataset.analysis.columns)
    numeric = set(numeric_columns(dataset.data, dataset.columns))
    return [
        ColumnProfile(name=col, type=ColumnType.NUMERIC if col in numeric else ColumnType.TEXT)
        for col in dataset.columns
    ]


def suggest_questions(columns: List[ColumnProfile]) -> List[str]:
    numeric = [c.name for c in columns if c.type == ColumnType.NUMERIC]
    categorical = [c.name for c in columns if c.type in (ColumnType.CATEGORICAL, ColumnType.TEXT)]
    dates = [c.name for c in columns if c.type == ColumnType.DATETIME]

    suggestions: List[str] = []
    if numeric:
        suggestions.append(f"What is the average **{numeric[0]}**?")
    elif categorical:
        suggestions.append(f"Count records by **{categorical[0]}**")

    if dates and numeric:
        suggestions.append(f"Show **{numeric[0]}** trend over **{dates[0]}**")
    elif categorical and numeric:
        suggestions.append(f"Top 5 **{categorical[0]}** by **{numeric[0]}**")
    elif len(numeric) > 1:
        suggestions.append(f"Plot **{numeric[0]}** vs **{numeric[1]}**")

    if len(suggestions) < 2:
        suggestions.append("Summarize the key insights")
    return suggestions[:3]


def welcome_message(dataset: Dataset) -> Tuple[str, List[str]]:
    columns = column_profiles(dataset)
    suggestions = suggest_questions(columns)
    bullets = "\n".join(f"• {s}" for s in suggestions)
    message = (
        f"Hey! I am your **Data Wizard**.\n\n"
        f"I've analyzed **{dataset.name}** and identified {len(columns)} columns. "
        f"Ask me anything about your data, for example:\n\n{bullets}"
    )
    return message, suggestions


def _interpret(ai: AIClient, question: str, columns: List[ColumnProfile]) -> QueryIntent:
    try:
        return ai.interpret_query(question, columns)
    except ExternalServiceError as e:
        logger.warning(f"Intent parsing failed: {e}")
        return QueryIntent(type="chat", text_response=FALLBACK_INTENT_TEXT, filters=[])


def _summarize(ai: AIClient, question: str, rows, context_rows: int) -> str:
    try:
        return ai.summarize_result(question, rows, context_rows=context_rows)
    except ExternalServiceError as e:
        logger.warning(f"Summary generation failed: {e}")
        return FALLBACK_SUMMARY_TEXT


def answer_question(
    question: str,
    dataset: Dataset,
    ai: AIClient,
    limit: int = QUERY_RESULT_LIMIT,
    context_rows: int = SUMMARY_CONTEXT_ROWS,
) -> ChatReply:
    try:
        intent = _interpret(ai, question, column_profiles(dataset))
        reply = ChatReply(content=intent.text_response or DEFAULT_REPLY_TEXT)

        # only grouped queries are executed from chat
        if intent.type != "query" or not (intent.group_by and intent.aggregate_column):
            return reply

        rows = query_data(dataset.data, intent, limit=limit)
        if not rows:
            return ChatReply(content=NO_MATCH_TEXT)

        reply = ChatReply(content=_summarize(ai, question, rows, context_rows))
        if intent.chart_type:
            config = ChartConfig(
                id=f"chat-chart-{uuid.uuid4().hex[:12]}",
                type=intent.chart_type,
                title=intent.title or "Analysis Result",
                description=f"Generated from query: {question}",
                x_key=intent.group_by,
                y_key=intent.aggregate_column,
            )
            reply = reply.model_copy(update={"chart": ChatChart(config=config, data=rows)})
        return reply
    except Exception:
        logger.exception("Chat turn failed")
        return ChatReply(content=TURN_ERROR_TEXT, is_error=True)
