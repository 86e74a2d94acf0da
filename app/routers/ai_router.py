from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import structlog
from app.models import CompletionRequest, CompletionResponse, NewStudySession
from app.agents.study_agent import StudyAgent, session_subject
from app.utils.config import settings
from app.utils.errors import CompletionError, ConfigurationError
from app.utils.supabase_client import Identity
from app.routers.dependencies import get_identity, get_study_agent

logger = structlog.get_logger()
router = APIRouter(prefix="/ai", tags=["AI"])

GENERIC_FAILURE = "Failed to generate response. Please try again."


@router.post("", response_model=CompletionResponse)
async def generate(
    request: CompletionRequest,
    identity: Optional[Identity] = Depends(get_identity),
    agent: StudyAgent = Depends(get_study_agent)
):
    """
    Raw completion for any feature

    - **feature**: solver, explainer, summarizer, questions, planner, flashcards, notes, chat
    - **input**: the user's text
    - **subject**, **gradeLevel**, **summaryLength**, **questionCount**, **questionType**: optional modifiers

    The reply is saved to the caller's history when authenticated.
    """
    if len(request.input) > settings.max_content_length:
        raise HTTPException(
            status_code=413,
            detail=f"Input too long. Maximum {settings.max_content_length} characters allowed."
        )

    try:
        response = await agent.complete(request)
    except ConfigurationError as e:
        logger.error("AI service misconfigured", feature=request.feature.value, error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    except CompletionError as e:
        logger.error("AI API Error", feature=request.feature.value, error=str(e))
        raise HTTPException(status_code=500, detail=GENERIC_FAILURE)

    await agent.save_session(identity, NewStudySession(
        feature_type=request.feature,
        subject=session_subject(request),
        input_text=request.input,
        output_text=response,
    ))

    return CompletionResponse(response=response)
