"""Supabase auth and row-store client.

Every call is made with the caller's own access token so that the project's
row-level security policies decide what the caller may read or write.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from protohub.config import Settings
from protohub.errors import CatalogError

logger = logging.getLogger(__name__)


class SupabaseClient:
    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        projects_table: str = "projects",
        entries_table: str = "context_entries",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url.strip().rstrip("/")
        self._anon_key = anon_key.strip()
        self._projects_table = projects_table
        self._entries_table = entries_table
        self._timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> SupabaseClient:
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            projects_table=settings.supabase_projects_table,
            entries_table=settings.supabase_entries_table,
            timeout_s=settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        return bool(self._url and self._anon_key)

    def _headers(self, access_token: str) -> dict[str, str]:
        return {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport)

    async def get_user(self, access_token: str) -> dict[str, Any] | None:
        """Resolve a session token to its user, or None when the session is invalid."""
        if not self.enabled:
            return None
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self._url}/auth/v1/user", headers=self._headers(access_token)
                )
        except httpx.HTTPError as exc:
            logger.warning("Supabase auth lookup failed: %s", exc)
            return None
        if response.status_code in {401, 403}:
            return None
        if not response.is_success:
            logger.warning("Supabase auth lookup returned %d", response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Supabase auth lookup returned a non-JSON body")
            return None
        if not isinstance(payload, dict) or not payload.get("id"):
            return None
        return payload

    async def _select(
        self, table: str, params: dict[str, str], access_token: str
    ) -> list[dict[str, Any]]:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self._url}/rest/v1/{table}",
                    params=params,
                    headers=self._headers(access_token),
                )
        except httpx.HTTPError as exc:
            raise CatalogError(f"Supabase request failed: {exc}") from exc
        if not response.is_success:
            raise CatalogError(
                f"Supabase select on {table} failed: {response.status_code}",
                status_code=500,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogError(f"Supabase select on {table} returned invalid JSON") from exc
        if not isinstance(payload, list):
            raise CatalogError(f"Supabase select on {table} returned a non-list payload")
        return [row for row in payload if isinstance(row, dict)]

    async def get_project(self, project_id: str, access_token: str) -> dict[str, Any] | None:
        rows = await self._select(
            self._projects_table,
            {"id": f"eq.{project_id}", "select": "*", "limit": "1"},
            access_token,
        )
        return rows[0] if rows else None

    async def list_context_entries(
        self, project_id: str, access_token: str
    ) -> list[dict[str, Any]]:
        return await self._select(
            self._entries_table,
            {"project_id": f"eq.{project_id}", "select": "*", "order": "created_at.desc"},
            access_token,
        )

    async def update_project_url(self, project_id: str, url: str, access_token: str) -> int:
        """Set ``external_url`` on one project row; returns the number of rows changed."""
        if not self.enabled:
            raise CatalogError("Supabase is not configured")
        headers = self._headers(access_token)
        headers["Prefer"] = "return=representation"
        try:
            async with self._client() as client:
                response = await client.patch(
                    f"{self._url}/rest/v1/{self._projects_table}",
                    params={"id": f"eq.{project_id}"},
                    json={"external_url": url},
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise CatalogError(f"Supabase request failed: {exc}") from exc
        if not response.is_success:
            raise CatalogError(
                f"Supabase update of project {project_id} failed: {response.status_code}"
            )
        try:
            rows = response.json()
        except ValueError:
            return 0
        return len(rows) if isinstance(rows, list) else 0
