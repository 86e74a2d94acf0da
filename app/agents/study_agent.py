import time
from typing import Optional, Union
import structlog
from app.utils.config import settings
from app.utils.errors import ConfigurationError, SessionStoreError
from app.utils.openai_client import OpenAIClient
from app.utils.edge_function_client import EdgeFunctionClient
from app.utils.session_store import SessionStore
from app.utils.supabase_client import Identity
from app.agents.prompt_builder import build_prompt
from app.agents.request_sequencer import RequestSequencer, Ticket
from app.agents.response_parser import parse_flashcards, parse_summary, parse_solver_steps, serialize_summary
from app.models import (
    CompletionRequest, FeatureType, NewStudySession,
    ToolResponse, SummaryToolResponse, SolverToolResponse, FlashcardsToolResponse
)

logger = structlog.get_logger()

CompletionClient = Union[OpenAIClient, EdgeFunctionClient]


def build_completion_client(provider: Optional[str] = None) -> CompletionClient:
    provider = provider or settings.completion_provider
    if provider == "groq":
        return OpenAIClient()
    if provider == "edge_function":
        return EdgeFunctionClient()
    raise ConfigurationError(f"Unknown completion provider: {provider}")


def session_subject(request: CompletionRequest) -> Optional[str]:
    """The modifier stored in a session's subject column"""
    if request.feature == FeatureType.EXPLAINER:
        modifier = request.grade_level
    elif request.feature == FeatureType.SUMMARIZER:
        modifier = request.summary_length
    else:
        modifier = request.subject
    return modifier.value if modifier is not None else None


class StudyAgent:
    """Runs one study tool invocation: prompt, completion, parsing, persistence"""

    def __init__(
        self,
        completion_client: Optional[CompletionClient] = None,
        session_store: Optional[SessionStore] = None,
        sequencer: Optional[RequestSequencer] = None
    ):
        self._completion_client = completion_client
        self.session_store = session_store or SessionStore()
        self.sequencer = sequencer or RequestSequencer()

    @property
    def completion_client(self) -> CompletionClient:
        if self._completion_client is None:
            self._completion_client = build_completion_client()
        return self._completion_client

    async def complete(self, request: CompletionRequest) -> str:
        """Build the prompt and return the raw completion text.

        CompletionError and ConfigurationError propagate to the caller.
        """
        prompt = build_prompt(
            request.feature,
            request.input,
            subject=request.subject,
            grade_level=request.grade_level,
            summary_length=request.summary_length,
            question_count=request.question_count,
            question_type=request.question_type,
        )
        logger.info("Requesting completion",
                   feature=request.feature.value,
                   input_length=len(request.input))
        return await self.completion_client.generate_completion(request, prompt)

    async def run(
        self,
        request: CompletionRequest,
        identity: Optional[Identity] = None,
        client_key: Optional[str] = None
    ) -> ToolResponse:
        start_time = time.time()
        ticket = self._issue_ticket(request, identity, client_key)

        raw_response = await self.complete(request)

        summary = solution = cards = None
        output_text = raw_response
        if request.feature == FeatureType.SUMMARIZER:
            summary = parse_summary(raw_response)
            output_text = serialize_summary(summary)
        elif request.feature == FeatureType.SOLVER:
            solution = parse_solver_steps(raw_response)
        elif request.feature == FeatureType.FLASHCARDS:
            cards = parse_flashcards(raw_response)

        saved = await self.save_session(identity, NewStudySession(
            feature_type=request.feature,
            subject=session_subject(request),
            input_text=request.input,
            output_text=output_text,
        ))

        stale = ticket is not None and not self.sequencer.is_current(ticket)
        if stale:
            logger.info("Discarding stale completion", feature=request.feature.value, sequence=ticket.sequence)

        processing_time = time.time() - start_time
        logger.info("Study tool completed",
                   feature=request.feature.value,
                   processing_time=processing_time,
                   session_saved=saved)

        common = dict(
            success=True,
            message="Response generated successfully",
            feature=request.feature,
            response=raw_response,
            processing_time=processing_time,
            session_saved=saved,
            sequence=ticket.sequence if ticket is not None else request.sequence,
            stale=stale,
        )
        if summary is not None:
            return SummaryToolResponse(summary=summary, **common)
        if solution is not None:
            return SolverToolResponse(solution=solution, **common)
        if cards is not None:
            return FlashcardsToolResponse(cards=cards, **common)
        return ToolResponse(**common)

    async def save_session(self, identity: Optional[Identity], session: NewStudySession) -> bool:
        """Persist a session; failures are logged, never raised"""
        if identity is None:
            return False
        try:
            stored = await self.session_store.insert(identity, session)
        except (SessionStoreError, ConfigurationError) as e:
            logger.warning("Failed to save session", feature=session.feature_type.value, error=str(e))
            return False
        return stored is not None

    def _issue_ticket(
        self,
        request: CompletionRequest,
        identity: Optional[Identity],
        client_key: Optional[str]
    ) -> Optional[Ticket]:
        caller = identity.user_id if identity is not None else client_key
        if not caller:
            return None
        return self.sequencer.issue(f"{caller}:{request.feature.value}", request.sequence)


# Global study agent instance
study_agent = StudyAgent()
