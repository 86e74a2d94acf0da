import json
import httpx
import pytest
from app.agents.request_sequencer import RequestSequencer
from app.agents.study_agent import StudyAgent, build_completion_client, session_subject
from app.models import CompletionRequest, FeatureType, FlashcardsToolResponse, SummaryToolResponse, SolverToolResponse
from app.utils.edge_function_client import EdgeFunctionClient
from app.utils.errors import CompletionError, ConfigurationError
from app.utils.openai_client import OpenAIClient
from app.utils.session_store import SessionStore
from app.utils.supabase_client import SupabaseClient
from conftest import FakeCompletionClient, FakeSessionStore

SUMMARY_REPLY = """Main Idea: Rivers shape landscapes.
Key Terms:
- Erosion: wearing away of rock
Key Points:
- Rivers carry sediment"""


@pytest.mark.asyncio
async def test_summarizer_run_parses_and_persists_serialized_summary(identity):
    store = FakeSessionStore()
    completion = FakeCompletionClient(SUMMARY_REPLY)
    agent = StudyAgent(completion, store)

    result = await agent.run(
        CompletionRequest(feature=FeatureType.SUMMARIZER, input="A passage about rivers", summaryLength="brief"),
        identity=identity
    )

    assert isinstance(result, SummaryToolResponse)
    assert result.summary.main_idea == "Rivers shape landscapes."
    assert result.response == SUMMARY_REPLY
    assert result.session_saved is True

    saved = store.inserted[0]
    assert saved.feature_type == FeatureType.SUMMARIZER
    assert saved.subject == "brief"
    assert saved.input_text == "A passage about rivers"
    assert json.loads(saved.output_text)["keyTerms"] == [{"term": "Erosion", "definition": "wearing away of rock"}]

    _, prompt = completion.calls[0]
    assert "Main Idea:" in prompt and "A passage about rivers" in prompt


@pytest.mark.asyncio
async def test_solver_run_returns_steps_and_keeps_raw_output(identity):
    store = FakeSessionStore()
    reply = "Step 1: Add\nResult: 2\nFinal Answer: 2"
    agent = StudyAgent(FakeCompletionClient(reply), store)

    result = await agent.run(CompletionRequest(feature="solver", input="1 + 1", subject="math"), identity=identity)

    assert isinstance(result, SolverToolResponse)
    assert result.solution.final_answer == "2"
    assert store.inserted[0].output_text == reply
    assert store.inserted[0].subject == "math"


@pytest.mark.asyncio
async def test_flashcards_run_returns_cards_and_keeps_raw_output(identity):
    store = FakeSessionStore()
    reply = "Card 1\nFront: Atom\nBack: Smallest unit of an element"
    agent = StudyAgent(FakeCompletionClient(reply), store)

    result = await agent.run(CompletionRequest(feature="flashcards", input="Make 1 card"), identity=identity)

    assert isinstance(result, FlashcardsToolResponse)
    assert [(c.front, c.back) for c in result.cards] == [("Atom", "Smallest unit of an element")]
    assert store.inserted[0].output_text == reply


@pytest.mark.asyncio
async def test_anonymous_run_is_not_persisted(fake_completion):
    store = FakeSessionStore()
    agent = StudyAgent(fake_completion, store)

    result = await agent.run(CompletionRequest(feature="explainer", input="gravity"))

    assert result.success is True
    assert result.session_saved is False
    assert store.inserted == []


@pytest.mark.asyncio
async def test_persistence_failure_does_not_block_result(identity, fake_completion):
    agent = StudyAgent(fake_completion, FakeSessionStore(fail_insert=True))

    result = await agent.run(CompletionRequest(feature="questions", input="cells"), identity=identity)

    assert result.response == "A reply"
    assert result.session_saved is False


@pytest.mark.asyncio
async def test_completion_error_propagates_and_nothing_is_saved(identity, failing_completion):
    store = FakeSessionStore()
    agent = StudyAgent(failing_completion, store)

    with pytest.raises(CompletionError):
        await agent.run(CompletionRequest(feature="summarizer", input="text"), identity=identity)
    assert store.inserted == []


@pytest.mark.asyncio
async def test_superseded_request_is_flagged_stale(identity):
    sequencer = RequestSequencer()
    agent = StudyAgent(None, FakeSessionStore(), sequencer)

    class NewerSubmissionDuringCall(FakeCompletionClient):
        async def generate_completion(self, request, prompt):
            # a second submission arrives while the first is in flight
            sequencer.issue(f"{identity.user_id}:{request.feature.value}")
            return await super().generate_completion(request, prompt)

    agent._completion_client = NewerSubmissionDuringCall("old answer")
    first = await agent.run(CompletionRequest(feature="explainer", input="atoms"), identity=identity)

    agent._completion_client = FakeCompletionClient("new answer")
    second = await agent.run(CompletionRequest(feature="explainer", input="atoms"), identity=identity)

    assert first.stale is True
    assert first.sequence == 0
    assert second.stale is False
    assert second.sequence == 2


@pytest.mark.asyncio
async def test_client_sequence_numbers_are_respected(fake_completion):
    sequencer = RequestSequencer()
    agent = StudyAgent(fake_completion, FakeSessionStore(), sequencer)
    sequencer.issue("tab-1:chat", 7)

    result = await agent.run(CompletionRequest(feature="chat", input="hi", sequence=5), client_key="tab-1")

    assert result.stale is True
    assert result.sequence == 5


@pytest.mark.asyncio
async def test_unkeyed_requests_are_never_stale(fake_completion):
    agent = StudyAgent(fake_completion, FakeSessionStore())

    result = await agent.run(CompletionRequest(feature="chat", input="hi", sequence=3))

    assert result.stale is False
    assert result.sequence == 3


def test_session_subject_per_feature():
    assert session_subject(CompletionRequest(feature="explainer", input="x", gradeLevel="middle")) == "middle"
    assert session_subject(CompletionRequest(feature="summarizer", input="x", subject="math")) is None
    assert session_subject(CompletionRequest(feature="questions", input="x", subject="ela")) == "ela"


def test_build_completion_client_by_provider():
    assert isinstance(build_completion_client("groq"), OpenAIClient)
    assert isinstance(build_completion_client("edge_function"), EdgeFunctionClient)
    with pytest.raises(ConfigurationError):
        build_completion_client("carrier-pigeon")


def test_request_validation():
    with pytest.raises(ValueError):
        CompletionRequest(feature="solver", input="   ")
    with pytest.raises(ValueError):
        CompletionRequest(feature="astrology", input="stars")


@pytest.mark.asyncio
@pytest.mark.parametrize("stored_reply", [
    httpx.Response(201, text=""),
    httpx.Response(201, json=[{"id": 1}]),
])
async def test_malformed_store_reply_does_not_block_result(identity, stored_reply):
    supabase = SupabaseClient(url="https://project.supabase.co", anon_key="anon-key",
                              transport=httpx.MockTransport(lambda r: stored_reply))
    agent = StudyAgent(FakeCompletionClient("Main Idea: X."), SessionStore(supabase))

    result = await agent.run(CompletionRequest(feature="summarizer", input="text"), identity=identity)

    assert result.summary.main_idea == "X."
    assert result.session_saved is False
