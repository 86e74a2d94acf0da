"""Persistence of study sessions in the Supabase ``study_sessions`` table.

Rows are scoped to their owner by the table's row-level security policy,
so every request carries the caller's access token and no filtering by
user happens here. Callers without an identity get no persistence: reads
return nothing, writes and deletes are skipped.
"""
import httpx
from typing import Any, Dict, List, Optional
import structlog
from pydantic import ValidationError
from app.utils.config import settings
from app.utils.errors import SessionStoreError
from app.utils.supabase_client import Identity, SupabaseClient
from app.models import FeatureType, NewStudySession, StudySession

logger = structlog.get_logger()


class SessionStore:
    def __init__(self, supabase: Optional[SupabaseClient] = None, table: Optional[str] = None):
        self.supabase = supabase or SupabaseClient()
        self.table = table or settings.sessions_table

    async def _request(
        self,
        method: str,
        identity: Identity,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Dict[str, Any]] = None,
        prefer: Optional[str] = None
    ) -> httpx.Response:
        headers = self.supabase.headers(identity.access_token)
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with self.supabase.http() as client:
                response = await client.request(
                    method, self.supabase.rest_url(self.table), params=params, json=json, headers=headers
                )
        except httpx.HTTPError as e:
            logger.error("Session store transport error", method=method, error=str(e))
            raise SessionStoreError(f"Session store request failed: {str(e)}") from e

        if not response.is_success:
            logger.error("Session store error", method=method, status_code=response.status_code)
            raise SessionStoreError(f"Session store error: {response.status_code} {response.text}")
        return response

    @staticmethod
    def _rows(response: httpx.Response) -> List[StudySession]:
        """Decode a PostgREST row list; malformed payloads become SessionStoreError"""
        try:
            data = response.json()
            if not isinstance(data, list):
                raise SessionStoreError("Session store returned an unexpected payload")
            return [StudySession.model_validate(row) for row in data]
        except (ValueError, ValidationError) as e:
            logger.error("Session store returned malformed rows", status_code=response.status_code, error=str(e))
            raise SessionStoreError(f"Session store returned malformed rows: {str(e)}") from e

    async def insert(self, identity: Optional[Identity], session: NewStudySession) -> Optional[StudySession]:
        """Insert one session row; returns the stored row, or None when anonymous"""
        if identity is None:
            logger.debug("No identity, skipping session save", feature=session.feature_type.value)
            return None

        row = session.model_dump(mode="json")
        row["user_id"] = identity.user_id
        response = await self._request("POST", identity, json=row, prefer="return=representation")

        rows = self._rows(response)
        return rows[0] if rows else None

    async def list_recent(self, identity: Optional[Identity], limit: Optional[int] = None) -> List[StudySession]:
        """Newest sessions across all features"""
        return await self._select(identity, limit or settings.history_limit)

    async def list_by_feature(
        self,
        identity: Optional[Identity],
        feature: FeatureType,
        limit: Optional[int] = None
    ) -> List[StudySession]:
        """Newest sessions of one feature"""
        return await self._select(identity, limit or settings.feature_history_limit, feature=feature)

    async def _select(
        self,
        identity: Optional[Identity],
        limit: int,
        feature: Optional[FeatureType] = None
    ) -> List[StudySession]:
        if identity is None:
            return []

        params = {"select": "*", "order": "created_at.desc", "limit": str(limit)}
        if feature is not None:
            params["feature_type"] = f"eq.{feature.value}"
        response = await self._request("GET", identity, params=params)
        return self._rows(response)

    async def get(self, identity: Optional[Identity], session_id: str) -> Optional[StudySession]:
        if identity is None:
            return None
        response = await self._request("GET", identity, params={"select": "*", "id": f"eq.{session_id}"})
        rows = self._rows(response)
        return rows[0] if rows else None

    async def delete(self, identity: Optional[Identity], session_id: str) -> bool:
        """Delete one session by id; False when anonymous"""
        if identity is None:
            return False
        await self._request("DELETE", identity, params={"id": f"eq.{session_id}"})
        logger.info("Session deleted", session_id=session_id)
        return True
