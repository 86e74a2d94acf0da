from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
import structlog
from app.models import DeleteSessionResponse, FeatureType, HistoryResponse, SummaryData
from app.agents.history import StudyHistory
from app.agents.response_parser import load_summary
from app.utils.errors import ConfigurationError, SessionStoreError
from app.utils.session_store import SessionStore
from app.utils.supabase_client import Identity
from app.routers.dependencies import get_identity, get_session_store

logger = structlog.get_logger()
router = APIRouter(prefix="/history", tags=["History"])


async def _history_page(store: SessionStore, identity: Optional[Identity],
                        feature: Optional[FeatureType] = None) -> HistoryResponse:
    history = StudyHistory(store, identity, feature=feature)
    await history.load()
    entries = history.entries()
    return HistoryResponse(
        authenticated=identity is not None,
        feature=feature,
        sessions=entries,
        total=len(entries),
        error=history.error
    )


@router.get("", response_model=HistoryResponse)
async def list_history(
    identity: Optional[Identity] = Depends(get_identity),
    store: SessionStore = Depends(get_session_store)
):
    """Most recent study sessions across all tools, newest first"""
    return await _history_page(store, identity)


@router.get("/session/{session_id}/summary", response_model=SummaryData)
async def get_session_summary(
    session_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store: SessionStore = Depends(get_session_store)
):
    """Structured summary stored by a summarizer session"""
    if identity is None:
        raise HTTPException(status_code=401, detail="Sign in to view saved sessions")
    try:
        session = await store.get(identity, session_id)
    except (SessionStoreError, ConfigurationError) as e:
        logger.error("Session fetch failed", session_id=session_id, error=str(e))
        raise HTTPException(status_code=502, detail="Failed to load session")

    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    if session.feature_type != FeatureType.SUMMARIZER.value:
        raise HTTPException(status_code=400, detail="Session is not a summary")
    return load_summary(session.output_text)


@router.get("/{feature}", response_model=HistoryResponse)
async def list_feature_history(
    feature: FeatureType,
    identity: Optional[Identity] = Depends(get_identity),
    store: SessionStore = Depends(get_session_store)
):
    """Most recent sessions of one tool, newest first"""
    return await _history_page(store, identity, feature=feature)


@router.delete("/{session_id}", response_model=DeleteSessionResponse)
async def delete_session(
    session_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store: SessionStore = Depends(get_session_store)
):
    """Delete one of the caller's sessions"""
    if identity is None:
        raise HTTPException(status_code=401, detail="Sign in to manage history")

    history = StudyHistory(store, identity)
    if not await history.delete(session_id):
        raise HTTPException(status_code=502, detail="Failed to delete session")

    logger.info("Session removed from history", session_id=session_id)
    return DeleteSessionResponse(success=True, deleted_id=session_id)
