from fastapi import Header
from typing import Optional
import structlog
from app.utils.errors import ConfigurationError, SessionStoreError
from app.utils.session_store import SessionStore
from app.utils.supabase_client import Identity, SupabaseClient
from app.agents.study_agent import StudyAgent, study_agent

logger = structlog.get_logger()

supabase_client = SupabaseClient()


def get_study_agent() -> StudyAgent:
    return study_agent


def get_session_store() -> SessionStore:
    return study_agent.session_store


async def get_identity(authorization: Optional[str] = Header(default=None)) -> Optional[Identity]:
    """Resolve the bearer token to a user; anonymous when absent or unusable"""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization[len("bearer "):].strip()
    if not token:
        return None
    try:
        return await supabase_client.get_user(token)
    except (SessionStoreError, ConfigurationError) as e:
        logger.warning("Could not resolve identity, continuing anonymously", error=str(e))
        return None


def get_client_key(x_client_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_client_id
