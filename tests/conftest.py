import pytest
from datetime import datetime, timezone
from typing import List, Optional
from app.models import FeatureType, NewStudySession, StudySession
from app.utils.errors import CompletionError, SessionStoreError
from app.utils.supabase_client import Identity


class FakeCompletionClient:
    """Returns canned replies and records every prompt it was sent"""

    def __init__(self, reply: str = "A reply", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate_completion(self, request, prompt):
        self.calls.append((request, prompt))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeSessionStore:
    """In-memory stand-in for SessionStore"""

    def __init__(self, sessions: Optional[List[StudySession]] = None,
                 fail_insert=False, fail_select=False, fail_delete=False):
        self.sessions = list(sessions or [])
        self.fail_insert = fail_insert
        self.fail_select = fail_select
        self.fail_delete = fail_delete
        self.inserted: List[NewStudySession] = []
        self.delete_calls: List[str] = []
        self.select_calls = []

    async def insert(self, identity, session):
        if identity is None:
            return None
        if self.fail_insert:
            raise SessionStoreError("insert failed")
        self.inserted.append(session)
        stored = make_session(str(len(self.inserted)), session.feature_type.value,
                              session.input_text, session.output_text, session.subject)
        self.sessions.insert(0, stored)
        return stored

    async def list_recent(self, identity, limit=None):
        self.select_calls.append(("recent", limit))
        if self.fail_select:
            raise SessionStoreError("select failed")
        return list(self.sessions[:limit or 50])

    async def list_by_feature(self, identity, feature, limit=None):
        self.select_calls.append((feature.value, limit))
        if self.fail_select:
            raise SessionStoreError("select failed")
        return [s for s in self.sessions if s.feature_type == feature.value][:limit or 20]

    async def get(self, identity, session_id):
        if identity is None:
            return None
        return next((s for s in self.sessions if s.id == session_id), None)

    async def delete(self, identity, session_id):
        if identity is None:
            return False
        self.delete_calls.append(session_id)
        if self.fail_delete:
            raise SessionStoreError("delete failed")
        self.sessions = [s for s in self.sessions if s.id != session_id]
        return True


def make_session(session_id, feature_type="solver", input_text="2x + 5 = 15",
                 output_text="x = 5", subject=None, created_at=None):
    return StudySession(
        id=session_id,
        feature_type=feature_type,
        subject=subject,
        input_text=input_text,
        output_text=output_text,
        created_at=created_at or datetime(2026, 1, 5, 15, 4, tzinfo=timezone.utc),
    )


@pytest.fixture
def identity():
    return Identity(user_id="user-1", access_token="token-1", email="student@example.com")


@pytest.fixture
def fake_store():
    return FakeSessionStore([
        make_session("a", FeatureType.SOLVER.value),
        make_session("b", FeatureType.SUMMARIZER.value, output_text='{"mainIdea": "Idea"}', subject="brief"),
        make_session("c", FeatureType.EXPLAINER.value, subject="high"),
    ])


@pytest.fixture
def fake_completion():
    return FakeCompletionClient()


@pytest.fixture
def failing_completion():
    return FakeCompletionClient(error=CompletionError("Groq API error: rate limited"))
