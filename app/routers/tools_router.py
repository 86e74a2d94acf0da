from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import structlog
from app.models import (
    CompletionRequest, FeatureType, ToolRequest,
    ToolResponse, SummaryToolResponse, SolverToolResponse, FlashcardsToolResponse
)
from app.agents.study_agent import StudyAgent
from app.utils.config import settings
from app.utils.errors import CompletionError, ConfigurationError
from app.utils.supabase_client import Identity
from app.routers.dependencies import get_client_key, get_identity, get_study_agent

logger = structlog.get_logger()
router = APIRouter(prefix="/tools", tags=["Study Tools"])

FAILURE_MESSAGES = {
    FeatureType.SOLVER: "Failed to solve problem",
    FeatureType.EXPLAINER: "Failed to explain topic",
    FeatureType.SUMMARIZER: "Failed to summarize text",
    FeatureType.QUESTIONS: "Failed to generate questions",
    FeatureType.FLASHCARDS: "Failed to generate flashcards",
}


async def _run_tool(
    feature: FeatureType,
    body: ToolRequest,
    identity: Optional[Identity],
    client_key: Optional[str],
    agent: StudyAgent
) -> ToolResponse:
    if len(body.input) > settings.max_content_length:
        raise HTTPException(
            status_code=413,
            detail=f"Input too long. Maximum {settings.max_content_length} characters allowed."
        )

    request = CompletionRequest(feature=feature, **body.model_dump())
    try:
        return await agent.run(request, identity=identity, client_key=client_key)
    except ConfigurationError as e:
        logger.error("Study tool misconfigured", feature=feature.value, error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    except CompletionError as e:
        logger.error("Study tool failed", feature=feature.value, error=str(e))
        raise HTTPException(
            status_code=502,
            detail=FAILURE_MESSAGES.get(feature, "Failed to generate response. Please try again.")
        )


@router.post("/summarize", response_model=SummaryToolResponse)
async def summarize(
    body: ToolRequest,
    identity: Optional[Identity] = Depends(get_identity),
    client_key: Optional[str] = Depends(get_client_key),
    agent: StudyAgent = Depends(get_study_agent)
):
    """
    Summarize a passage into main idea, key terms, key points and connections

    - **input**: the text to summarize (required)
    - **summaryLength**: brief, detailed or key-points
    """
    return await _run_tool(FeatureType.SUMMARIZER, body, identity, client_key, agent)


@router.post("/solve", response_model=SolverToolResponse)
async def solve(
    body: ToolRequest,
    identity: Optional[Identity] = Depends(get_identity),
    client_key: Optional[str] = Depends(get_client_key),
    agent: StudyAgent = Depends(get_study_agent)
):
    """Step-by-step solution with goal, process and result per step"""
    return await _run_tool(FeatureType.SOLVER, body, identity, client_key, agent)


@router.post("/flashcards", response_model=FlashcardsToolResponse)
async def flashcards(
    body: ToolRequest,
    identity: Optional[Identity] = Depends(get_identity),
    client_key: Optional[str] = Depends(get_client_key),
    agent: StudyAgent = Depends(get_study_agent)
):
    """Front/back flashcards; the input is the full card-generation prompt"""
    return await _run_tool(FeatureType.FLASHCARDS, body, identity, client_key, agent)


@router.post("/{feature}", response_model=ToolResponse)
async def run_feature(
    feature: FeatureType,
    body: ToolRequest,
    identity: Optional[Identity] = Depends(get_identity),
    client_key: Optional[str] = Depends(get_client_key),
    agent: StudyAgent = Depends(get_study_agent)
):
    """Any other study tool; the raw reply is returned for display"""
    return await _run_tool(feature, body, identity, client_key, agent)
