import httpx
from typing import Any, Dict, Optional
import structlog
from app.utils.config import settings
from app.utils.errors import CompletionError, ConfigurationError
from app.utils.openai_client import NO_RESPONSE
from app.models import CompletionRequest

logger = structlog.get_logger()


class EdgeFunctionClient:
    """Client for the Supabase Edge Function that proxies the completion service"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        function_name: str = "ai",
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url or settings.supabase_url
        self.api_key = api_key or settings.supabase_anon_key
        self.function_name = function_name
        self._transport = transport

    @property
    def endpoint(self) -> str:
        if not self.base_url or not self.api_key:
            raise ConfigurationError("Supabase configuration missing.")
        return f"{self.base_url.rstrip('/')}/functions/v1/{self.function_name}"

    @staticmethod
    def build_payload(request: CompletionRequest, prompt: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"feature": request.feature.value, "input": prompt}
        modifiers = request.model_dump(
            by_alias=True,
            mode="json",
            exclude_none=True,
            include={"subject", "grade_level", "summary_length", "question_count", "question_type"}
        )
        payload.update(modifiers)
        return payload

    async def generate_completion(self, request: CompletionRequest, prompt: str) -> str:
        """POST the feature and composed prompt, return the reply text"""
        endpoint = self.endpoint
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=settings.completion_timeout, transport=self._transport) as client:
                response = await client.post(endpoint, headers=headers, json=self.build_payload(request, prompt))
        except httpx.HTTPError as e:
            logger.error("Edge function transport error", feature=request.feature.value, error=str(e))
            raise CompletionError(f"AI request failed: {str(e)}") from e

        if not response.is_success:
            logger.error("Edge function error",
                        feature=request.feature.value,
                        status_code=response.status_code)
            raise CompletionError(f"AI request failed: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError("AI request failed: invalid JSON response") from e

        if not isinstance(data, dict):
            raise CompletionError("AI request failed: unexpected response shape")
        if data.get("error"):
            raise CompletionError(str(data["error"]))

        return data.get("response") or NO_RESPONSE
