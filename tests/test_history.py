import httpx
import pytest
from datetime import datetime
from app.agents.history import StudyHistory, format_date, truncate_text, LOAD_ERROR
from app.models import FeatureType
from app.utils.session_store import SessionStore
from app.utils.supabase_client import SupabaseClient
from conftest import FakeSessionStore, make_session


@pytest.mark.asyncio
async def test_load_recent_sessions(fake_store, identity):
    history = StudyHistory(fake_store, identity)

    sessions = await history.load()

    assert [s.id for s in sessions] == ["a", "b", "c"]
    assert fake_store.select_calls == [("recent", None)]
    assert history.error is None


@pytest.mark.asyncio
async def test_load_feature_sessions(fake_store, identity):
    history = StudyHistory(fake_store, identity, feature=FeatureType.SUMMARIZER)

    sessions = await history.load()

    assert [s.id for s in sessions] == ["b"]
    assert fake_store.select_calls == [("summarizer", None)]


@pytest.mark.asyncio
async def test_anonymous_history_is_empty(fake_store):
    history = StudyHistory(fake_store, None)

    assert await history.load() == []
    assert fake_store.select_calls == []


@pytest.mark.asyncio
async def test_load_failure_sets_error(identity):
    history = StudyHistory(FakeSessionStore(fail_select=True), identity)

    assert await history.load() == []
    assert history.error == LOAD_ERROR


@pytest.mark.asyncio
async def test_non_json_store_reply_sets_error(identity):
    supabase = SupabaseClient(url="https://project.supabase.co", anon_key="anon-key",
                              transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>gateway</html>")))
    history = StudyHistory(SessionStore(supabase), identity)

    assert await history.load() == []
    assert history.error == LOAD_ERROR


@pytest.mark.asyncio
async def test_delete_removes_exactly_one_entry(fake_store, identity):
    history = StudyHistory(fake_store, identity)
    await history.load()
    history.toggle("b")

    assert await history.delete("b") is True

    assert fake_store.delete_calls == ["b"]
    assert [s.id for s in history.sessions] == ["a", "c"]
    assert history.expanded_id is None


@pytest.mark.asyncio
async def test_failed_delete_leaves_list_unchanged(identity):
    store = FakeSessionStore([make_session("a"), make_session("b")], fail_delete=True)
    history = StudyHistory(store, identity)
    await history.load()

    assert await history.delete("a") is False

    assert store.delete_calls == ["a"]
    assert [s.id for s in history.sessions] == ["a", "b"]


@pytest.mark.asyncio
async def test_anonymous_delete_is_skipped(fake_store, identity):
    history = StudyHistory(fake_store, identity)
    await history.load()
    history.identity = None

    assert await history.delete("a") is False
    assert fake_store.delete_calls == []
    assert len(history.sessions) == 3


@pytest.mark.asyncio
async def test_entries_render_names_and_previews(identity):
    long_input = "x" * 250
    store = FakeSessionStore([
        make_session("a", "social-studies-quiz", input_text="short", subject="social-studies"),
        make_session("b", FeatureType.QUESTIONS.value, input_text=long_input),
    ])
    history = StudyHistory(store, identity)
    await history.load()

    entries = history.entries()
    assert entries[0].feature_name == "Social Studies Quiz"
    assert entries[0].subject_label == "social studies"
    assert entries[0].created_at_display == "Jan 5, 2026, 3:04 PM"
    assert entries[1].feature_name == "Question Generator"
    assert entries[1].input_preview == "x" * 200 + "..."

    history.toggle("b")
    assert history.entries()[1].input_preview == long_input
    assert history.entries()[1].expanded is True
    history.toggle("b")
    assert history.expanded_id is None


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("abcdefghij", 10) == "abcdefghij"
    assert truncate_text("abcdefghijk", 10) == "abcdefghij..."


def test_format_date_morning_and_midnight():
    assert format_date(datetime(2026, 3, 9, 9, 5)) == "Mar 9, 2026, 9:05 AM"
    assert format_date(datetime(2026, 3, 9, 0, 30)) == "Mar 9, 2026, 12:30 AM"
    assert format_date(datetime(2026, 3, 9, 12, 0)) == "Mar 9, 2026, 12:00 PM"
