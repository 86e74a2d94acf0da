from datetime import datetime
from typing import List, Optional
import structlog
from app.utils.errors import ConfigurationError, SessionStoreError
from app.utils.session_store import SessionStore
from app.utils.supabase_client import Identity
from app.models import FeatureType, HistoryEntry, StudySession

logger = structlog.get_logger()

FEATURE_NAMES = {
    FeatureType.SOLVER.value: "Problem Solver",
    FeatureType.EXPLAINER.value: "Concept Explainer",
    FeatureType.SUMMARIZER.value: "Summarizer",
    FeatureType.QUESTIONS.value: "Question Generator",
    FeatureType.PLANNER.value: "Study Planner",
    FeatureType.FLASHCARDS.value: "Flashcards",
    FeatureType.NOTES.value: "Study Notes",
    FeatureType.CHAT.value: "Study Chat",
}

PREVIEW_LENGTH = 200
LOAD_ERROR = "Failed to load history"


def truncate_text(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


def format_date(value: datetime) -> str:
    """e.g. 'Jan 5, 2026, 3:04 PM'"""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.strftime('%b')} {value.day}, {value.year}, {hour}:{value.minute:02d} {suffix}"


def feature_name(feature_type: str) -> str:
    return FEATURE_NAMES.get(feature_type, feature_type.replace("-", " ").title())


class StudyHistory:
    """The user's list of past sessions, as shown on a history page"""

    def __init__(self, store: SessionStore, identity: Optional[Identity], feature: Optional[FeatureType] = None):
        self.store = store
        self.identity = identity
        self.feature = feature
        self.sessions: List[StudySession] = []
        self.expanded_id: Optional[str] = None
        self.error: Optional[str] = None

    async def load(self) -> List[StudySession]:
        self.error = None
        if self.identity is None:
            self.sessions = []
            return self.sessions
        try:
            if self.feature is None:
                self.sessions = await self.store.list_recent(self.identity)
            else:
                self.sessions = await self.store.list_by_feature(self.identity, self.feature)
        except (SessionStoreError, ConfigurationError) as e:
            logger.error("Fetch error", error=str(e))
            self.error = LOAD_ERROR
        return self.sessions

    async def delete(self, session_id: str) -> bool:
        """Delete one session; the list only changes when the store call succeeds"""
        try:
            deleted = await self.store.delete(self.identity, session_id)
        except (SessionStoreError, ConfigurationError) as e:
            logger.warning("Delete failed", session_id=session_id, error=str(e))
            return False
        if not deleted:
            return False

        self.sessions = [s for s in self.sessions if s.id != session_id]
        if self.expanded_id == session_id:
            self.expanded_id = None
        return True

    def toggle(self, session_id: str) -> None:
        self.expanded_id = None if self.expanded_id == session_id else session_id

    def entries(self) -> List[HistoryEntry]:
        return [
            HistoryEntry(
                id=s.id,
                feature_type=s.feature_type,
                feature_name=feature_name(s.feature_type),
                subject_label=s.subject.replace("-", " ") if s.subject else None,
                created_at=s.created_at,
                created_at_display=format_date(s.created_at),
                input_preview=s.input_text if s.id == self.expanded_id else truncate_text(s.input_text),
                input_text=s.input_text,
                output_text=s.output_text,
                expanded=s.id == self.expanded_id,
            )
            for s in self.sessions
        ]
