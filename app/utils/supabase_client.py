import httpx
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import structlog
from app.utils.config import settings
from app.utils.errors import ConfigurationError, SessionStoreError

logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """An authenticated caller; its presence enables persistence"""
    user_id: str
    access_token: str
    email: Optional[str] = None


class SupabaseClient:
    """Thin REST wrapper around the Supabase project (PostgREST + auth)"""

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url or settings.supabase_url
        self.anon_key = anon_key or settings.supabase_anon_key
        self.timeout = timeout or settings.supabase_timeout
        self._transport = transport

    def _config(self) -> Tuple[str, str]:
        if not self.url or not self.anon_key:
            raise ConfigurationError("Supabase configuration missing.")
        return self.url.rstrip("/"), self.anon_key

    def headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        _, key = self._config()
        return {
            "apikey": key,
            "Authorization": f"Bearer {access_token or key}",
            "Content-Type": "application/json",
        }

    def rest_url(self, table: str) -> str:
        base, _ = self._config()
        return f"{base}/rest/v1/{table}"

    def http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get_user(self, access_token: str) -> Optional[Identity]:
        """Resolve an access token to its user; None when the token is rejected"""
        base, _ = self._config()
        try:
            async with self.http() as client:
                response = await client.get(f"{base}/auth/v1/user", headers=self.headers(access_token))
        except httpx.HTTPError as e:
            raise SessionStoreError(f"Auth request failed: {str(e)}") from e

        if response.status_code in (401, 403):
            logger.info("Access token rejected", status_code=response.status_code)
            return None
        if not response.is_success:
            raise SessionStoreError(f"Auth request failed: {response.status_code} {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise SessionStoreError(f"Auth service returned invalid JSON: {str(e)}") from e
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            return None
        return Identity(user_id=str(user_id), access_token=access_token, email=data.get("email"))
