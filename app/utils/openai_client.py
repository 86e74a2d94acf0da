import openai
from typing import Optional
import structlog
from app.utils.config import settings
from app.utils.errors import CompletionError, ConfigurationError
from app.agents.prompt_builder import get_system_prompt
from app.models import CompletionRequest

logger = structlog.get_logger()

NO_RESPONSE = "No response generated."


class OpenAIClient:
    """OpenAI SDK client pointed at Groq's OpenAI-compatible endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client=None
    ):
        self.api_key = api_key or settings.groq_api_key
        self.base_url = base_url or settings.groq_base_url
        self.model = model or settings.completion_model
        self._client = client

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("GROQ_API_KEY not configured")
            self._client = openai.AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=settings.completion_timeout,
                max_retries=0
            )
        return self._client

    async def generate_completion(
        self,
        request: CompletionRequest,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> str:
        """Send the composed prompt with the feature's system instruction"""
        messages = [
            {"role": "system", "content": get_system_prompt(request.feature)},
            {"role": "user", "content": prompt},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens or settings.completion_max_tokens,
                temperature=settings.completion_temperature if temperature is None else temperature
            )
        except openai.OpenAIError as e:
            logger.error("Completion API error", feature=request.feature.value, error=str(e))
            raise CompletionError(f"Completion API error: {str(e)}") from e

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip() or NO_RESPONSE
