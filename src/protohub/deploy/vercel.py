"""Vercel deployments API client."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from protohub.config import Settings
from protohub.deploy.types import DeploymentRequest, DeploymentResult
from protohub.errors import ConfigError, UpstreamError

logger = logging.getLogger(__name__)


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _error_message(payload: dict[str, Any]) -> str:
    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return "Deployment failed"


class VercelClient:
    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.vercel.com",
        team_id: str = "",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token.strip():
            raise ConfigError("Vercel token not configured")
        self._token = token.strip()
        self._base_url = base_url.rstrip("/")
        self._team_id = team_id.strip()
        self._timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> VercelClient:
        return cls(
            settings.vercel_token,
            base_url=settings.vercel_api_base_url,
            team_id=settings.vercel_team_id,
            timeout_s=settings.http_timeout_seconds,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def build_body(request: DeploymentRequest) -> dict[str, object]:
        return {
            "name": request.target_name,
            "files": [
                {
                    "file": entry.relative_path,
                    "data": base64.b64encode(entry.content).decode("ascii"),
                    "encoding": "base64",
                }
                for entry in request.files
            ],
            # let Vercel detect the framework
            "projectSettings": {"framework": None},
        }

    async def submit(self, request: DeploymentRequest) -> DeploymentResult:
        """Create one deployment with every file inline."""
        params = {"teamId": self._team_id} if self._team_id else None
        body = self.build_body(request)
        logger.info(
            "Deploying %d files to Vercel as %s", len(request.files), request.target_name
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self._base_url}/v13/deployments",
                    params=params,
                    json=body,
                    headers=self._headers(),
                )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Vercel request failed: {exc}", status_code=500) from exc

        payload = _safe_json(response)
        if not response.is_success:
            logger.error(
                "Vercel deployment error (%d): %s", response.status_code, payload or response.text
            )
            raise UpstreamError(
                _error_message(payload),
                status_code=500,
                upstream_status=response.status_code,
            )
        url = str(payload.get("url") or "").strip()
        deployment_id = str(payload.get("id") or "").strip()
        if not url:
            raise UpstreamError("Vercel response missing deployment url", status_code=500)
        return DeploymentResult(live_url=f"https://{url}", deployment_id=deployment_id)

    async def health_check(self) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self._base_url}/v2/user", headers=self._headers()
                )
        except httpx.HTTPError:
            return False
        return response.is_success
