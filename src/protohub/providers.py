"""Builds the external service clients used by request handlers."""

from dataclasses import dataclass

import httpx

from protohub.config import Settings, get_settings
from protohub.deploy.github_source import GitHubSource
from protohub.deploy.vercel import VercelClient
from protohub.store.supabase import SupabaseClient


@dataclass(slots=True)
class Providers:
    settings: Settings
    transport: httpx.AsyncBaseTransport | None = None

    def github(self) -> GitHubSource:
        return GitHubSource.from_settings(self.settings, transport=self.transport)

    def vercel(self) -> VercelClient:
        """Raises ConfigError when VERCEL_TOKEN is unset."""
        return VercelClient.from_settings(self.settings, transport=self.transport)

    def store(self) -> SupabaseClient:
        return SupabaseClient.from_settings(self.settings, transport=self.transport)


def get_providers() -> Providers:
    return Providers(settings=get_settings())
