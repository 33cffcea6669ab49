from fastapi import APIRouter, Depends

from ..core.config import settings
from ..schemas.query import AskRequest, ChatReply, WelcomeResponse
from ..services.ai_client import AIClient, get_ai_client
from ..services.assistant import answer_question, welcome_message
from .ingest import require_dataset

router = APIRouter(tags=["nlq"])

@router.get("/{dataset_id}/welcome", response_model=WelcomeResponse)
def welcome(dataset_id: str):
    ds = require_dataset(dataset_id)
    message, suggestions = welcome_message(ds)
    return WelcomeResponse(message=message, suggestions=suggestions)

@router.post("/{dataset_id}/ask", response_model=ChatReply)
def ask(dataset_id: str, req: AskRequest, ai: AIClient = Depends(get_ai_client)):
    """
    One assistant turn. Always answers 200; failures come back as a reply
    with isError set.
    """
    ds = require_dataset(dataset_id)
    return answer_question(
        req.question,
        ds,
        ai,
        limit=settings.query_result_limit,
        context_rows=settings.summary_context_rows,
    )
